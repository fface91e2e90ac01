import json
import pathlib

import pytest

import table_card_engine.cli
import table_card_engine.render


cli = table_card_engine.cli


#============================================
def test_build_config_overrides() -> None:
	args = cli.parse_args(
		[
			"calibrate",
			"-o", "out.pdf",
			"-R",
			"-f",
			"--crop-offset-x", "1.5",
			"--size", "chineseName=100",
			"--tracking", "englishName=bad",
			"--font", "englishCompany=inherit",
		]
	)
	config = cli.build_config(args)
	assert not config.rotate_for_print
	assert config.show_fold_line
	assert config.show_crop_marks
	assert (config.crop_offset_mm.x, config.crop_offset_mm.y) == (1.5, 0.0)
	assert config.styles.chineseName.size_pt == 100.0
	assert config.styles.englishName.tracking_em == 0.0
	assert config.styles.englishCompany.font_family == "inherit"


#============================================
def test_unknown_field_is_rejected() -> None:
	args = cli.parse_args(["calibrate", "-o", "out.pdf", "--size", "nickname=12"])
	with pytest.raises(SystemExit):
		cli.build_config(args)


#============================================
def test_preset_then_render(tmp_path: pathlib.Path) -> None:
	"""
	Save a preset, then render a roster with it.
	"""
	data_dir = str(tmp_path / "data")
	cli.main(["-d", data_dir, "presets", "save", "Gala", "-K", "--size", "englishName=60"])
	db = json.loads((tmp_path / "data" / "db.json").read_text(encoding="utf-8"))
	assert db["presets"][0]["name"] == "Gala"
	assert db["presets"][0]["settings"]["showCropMarks"] is False

	roster_path = tmp_path / "roster.xlsx"
	cli.main(["template", "-o", str(roster_path)])
	assert roster_path.exists()

	output_path = tmp_path / "cards.pdf"
	preview_path = tmp_path / "preview.png"
	cli.main(
		[
			"-d", data_dir,
			"render", str(roster_path), str(roster_path),
			"-o", str(output_path),
			"-s", "Gala",
			"-p", str(preview_path),
		]
	)
	assert len(table_card_engine.render.read_page_sizes_mm(output_path)) == 2
	assert preview_path.exists()
	manifest = json.loads((tmp_path / "cards.pdf.json").read_text(encoding="utf-8"))
	assert manifest["layout"]["showCropMarks"] is False
	assert manifest["layout"]["fontSize"]["englishName"] == 60.0


#============================================
def test_missing_preset_exits(tmp_path: pathlib.Path) -> None:
	args = cli.parse_args(["-d", str(tmp_path), "calibrate", "-o", "out.pdf", "-s", "Nope"])
	with pytest.raises(SystemExit):
		cli.build_config(args)


#============================================
def test_font_upload_rejects_bad_extension(tmp_path: pathlib.Path, capsys) -> None:
	bad_file = tmp_path / "notes.txt"
	bad_file.write_text("text", encoding="utf-8")
	cli.main(["-d", str(tmp_path / "data"), "fonts", "upload", str(bad_file)])
	captured = capsys.readouterr()
	assert "Rejected notes.txt" in captured.out
	cli.main(["-d", str(tmp_path / "data"), "fonts", "list"])
	assert "Fonts: 0" in capsys.readouterr().out
