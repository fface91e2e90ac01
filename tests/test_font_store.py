import os
import pathlib

import pytest

import table_card_engine.config
import table_card_engine.font_store
import table_card_engine.presets


font_store = table_card_engine.font_store


#============================================
@pytest.mark.parametrize(
	"original, expected",
	[
		("My Font-Bold.ttf", "My_Font_Bold.ttf"),
		("思源黑体.otf", "思源黑体.otf"),
		("../../etc/evil.woff", "evil.woff"),
		("a+b (1).woff2", "a_b__1_.woff2"),
	],
)
def test_sanitize_font_filename(original: str, expected: str) -> None:
	assert font_store.sanitize_font_filename(original) == expected


#============================================
def test_display_name_stops_at_first_dot() -> None:
	assert font_store.font_display_name("Brand.Bold.ttf") == "Brand"
	assert font_store.font_display_name("TableCardCN.otf") == "TableCardCN"


#============================================
def test_upload_rejects_unsupported_extension(tmp_path: pathlib.Path) -> None:
	"""
	Rejected uploads write nothing.
	"""
	store = font_store.FontStore(tmp_path / "fonts")
	with pytest.raises(font_store.UnsupportedFontFormat):
		store.upload(b"data", "notes.txt")
	assert not (tmp_path / "fonts").exists()
	assert store.list() == []


#============================================
def test_upload_list_delete(tmp_path: pathlib.Path) -> None:
	store = font_store.FontStore(tmp_path / "fonts")
	entry = store.upload(b"font bytes", "Brand Font.woff2")
	assert entry.fileName == "Brand_Font.woff2"
	assert entry.name == "Brand_Font"
	assert entry.url.startswith("file:")
	(tmp_path / "fonts" / "readme.txt").write_text("ignored", encoding="utf-8")
	assert [font.fileName for font in store.list()] == ["Brand_Font.woff2"]

	store.delete("Brand_Font.woff2")
	assert store.list() == []
	store.delete("Brand_Font.woff2")


#============================================
def test_name_collision_supersedes_older_file(tmp_path: pathlib.Path) -> None:
	"""
	The newest file wins the display name; the older file stays on disk.
	"""
	store = font_store.FontStore(tmp_path / "fonts")
	older = store.upload(b"old", "Brand.woff")
	newer = store.upload(b"new", "Brand.woff2")
	older_path = store.path_for(older.fileName)
	os.utime(older_path, (1000000000, 1000000000))

	catalog = store.catalog()
	assert catalog["Brand"].fileName == newer.fileName
	assert [font.fileName for font in store.superseded()] == [older.fileName]
	assert older_path.exists()


#============================================
def test_unloadable_fonts_stay_pending(tmp_path: pathlib.Path) -> None:
	"""
	Files ReportLab cannot register are left out of the ready set.
	"""
	store = font_store.FontStore(tmp_path / "fonts")
	store.upload(b"not a real font", "Broken.ttf")
	store.upload(b"web font", "Web.woff2")
	assert store.load_ready_fonts() == frozenset()


#============================================
def test_unreadable_directory_raises_shared_store_error(tmp_path: pathlib.Path) -> None:
	"""
	Font store I/O failures use the same retryable error as the preset store.
	"""
	not_a_directory = tmp_path / "fonts"
	not_a_directory.write_text("file in the way", encoding="utf-8")
	store = font_store.FontStore(not_a_directory)
	with pytest.raises(table_card_engine.config.StoreUnavailable) as error:
		store.list()
	assert error.value.retryable
	assert font_store.StoreUnavailable is table_card_engine.presets.StoreUnavailable


#============================================
def test_missing_directory_lists_nothing(tmp_path: pathlib.Path) -> None:
	store = font_store.FontStore(tmp_path / "absent")
	assert store.list() == []
	assert store.catalog() == {}
	assert store.load_ready_fonts() == frozenset()
