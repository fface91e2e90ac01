"""
CLI entry points for table card rendering.
"""

# Standard Library
import argparse
import os
import pathlib
import time

# local repo modules
import table_card_engine as tce
import table_card_engine.config
import table_card_engine.font_store
import table_card_engine.page
import table_card_engine.presets
import table_card_engine.preview
import table_card_engine.render
import table_card_engine.roster


LayoutConfig = tce.config.LayoutConfig
FIELD_NAMES = tce.config.FIELD_NAMES

DATA_DIR_ENV = "TABLE_CARD_DATA_DIR"
DEFAULT_DATA_DIR = "data"
PRESETS_FILE_NAME = "db.json"
FONTS_DIR_NAME = "fonts"
PREVIEW_PIXELS_PER_MM = 2.0


#============================================
def data_dir(args: argparse.Namespace) -> pathlib.Path:
	"""
	Resolve the data directory from args or the environment.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Data directory path.
	"""
	if getattr(args, "data_dir", None):
		return pathlib.Path(args.data_dir)
	return pathlib.Path(os.environ.get(DATA_DIR_ENV, DEFAULT_DATA_DIR))


#============================================
def preset_store(args: argparse.Namespace) -> tce.presets.PresetStore:
	return tce.presets.PresetStore(data_dir(args) / PRESETS_FILE_NAME)


#============================================
def font_store(args: argparse.Namespace) -> tce.font_store.FontStore:
	return tce.font_store.FontStore(data_dir(args) / FONTS_DIR_NAME)


#============================================
def parse_field_assignments(values: list[str] | None, numeric: bool) -> dict:
	"""
	Parse repeated FIELD=VALUE options.

	Args:
		values: Raw option values.
		numeric: Coerce values to numbers, bad input becoming 0.

	Returns:
		Dict of field name to value.
	"""
	result = {}
	for raw in values or []:
		if "=" not in raw:
			raise SystemExit(f"Expected FIELD=VALUE, got {raw!r}")
		field, value = raw.split("=", 1)
		field = field.strip()
		if field not in FIELD_NAMES:
			raise SystemExit(f"Unknown field {field!r}; expected one of {', '.join(FIELD_NAMES)}")
		result[field] = tce.config.coerce_number(value) if numeric else value.strip()
	return result


#============================================
def build_config(args: argparse.Namespace) -> LayoutConfig:
	"""
	Build a layout config from defaults, an optional preset, and flags.

	Args:
		args: Parsed argparse namespace.

	Returns:
		LayoutConfig.
	"""
	config = tce.config.default_layout_config()
	if args.preset:
		store = preset_store(args)
		preset = store.get(args.preset) or store.find_by_name(args.preset)
		if preset is None:
			raise SystemExit(f"Preset not found: {args.preset}")
		print(f"Preset: {preset.name} ({preset.id})")
		config = preset.settings

	updates = {}
	if args.rotate_for_print is not None:
		updates["rotate_for_print"] = args.rotate_for_print
	if args.show_crop_marks is not None:
		updates["show_crop_marks"] = args.show_crop_marks
	if args.show_fold_line is not None:
		updates["show_fold_line"] = args.show_fold_line
	if args.widening is not None:
		updates["enable_two_char_widening"] = args.widening
	if args.spacing is not None:
		updates["global_spacing_pt"] = tce.config.coerce_number(args.spacing)
	if args.preview_scale is not None:
		updates["preview_scale"] = args.preview_scale
	if args.crop_offset_x is not None or args.crop_offset_y is not None:
		offset = config.crop_offset_mm
		updates["crop_offset_mm"] = tce.config.CropOffset(
			x=offset.x if args.crop_offset_x is None else tce.config.coerce_number(args.crop_offset_x),
			y=offset.y if args.crop_offset_y is None else tce.config.coerce_number(args.crop_offset_y),
		)
	if updates:
		config = config.with_updates(**updates)

	style_options = (
		("size_pt", parse_field_assignments(args.sizes, True)),
		("offset_pt", parse_field_assignments(args.offsets, True)),
		("tracking_em", parse_field_assignments(args.tracking, True)),
		("font_family", parse_field_assignments(args.fonts, False)),
	)
	for attribute, assignments in style_options:
		for field, value in assignments.items():
			config = config.with_field_style(field, **{attribute: value})
	return config


#============================================
def add_layout_arguments(parser: argparse.ArgumentParser) -> None:
	"""
	Add layout override options to a subcommand parser.

	Args:
		parser: Subcommand parser.
	"""
	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-s", "--preset", dest="preset", default=None, help="Preset id or name to start from.")
	layout_group.add_argument("-r", "--rotate", dest="rotate_for_print", action="store_true", help="Rotate the card to fit the page.")
	layout_group.add_argument("-R", "--no-rotate", dest="rotate_for_print", action="store_false", help="Keep the card unrotated and scale it to fit.")
	layout_group.add_argument("-k", "--crop-marks", dest="show_crop_marks", action="store_true", help="Draw crop marks.")
	layout_group.add_argument("-K", "--no-crop-marks", dest="show_crop_marks", action="store_false", help="Omit crop marks.")
	layout_group.add_argument("-f", "--fold-line", dest="show_fold_line", action="store_true", help="Draw the fold guide.")
	layout_group.add_argument("-F", "--no-fold-line", dest="show_fold_line", action="store_false", help="Omit the fold guide.")
	layout_group.add_argument("-w", "--widening", dest="widening", action="store_true", help="Widen two-character names.")
	layout_group.add_argument("-W", "--no-widening", dest="widening", action="store_false", help="Disable two-character widening.")
	layout_group.add_argument("--crop-offset-x", dest="crop_offset_x", default=None, help="Crop mark calibration offset, mm.")
	layout_group.add_argument("--crop-offset-y", dest="crop_offset_y", default=None, help="Crop mark calibration offset, mm.")
	layout_group.add_argument("--spacing", dest="spacing", default=None, help="Gap between fields, pt.")
	layout_group.add_argument("--preview-scale", dest="preview_scale", default=None, help="Screen preview zoom, 0.3 to 1.0.")

	field_group = parser.add_argument_group("Fields")
	field_group.add_argument("--size", dest="sizes", action="append", metavar="FIELD=PT", help="Font size for a field.")
	field_group.add_argument("--offset", dest="offsets", action="append", metavar="FIELD=PT", help="Vertical offset for a field.")
	field_group.add_argument("--tracking", dest="tracking", action="append", metavar="FIELD=EM", help="Letter spacing for a field.")
	field_group.add_argument("--font", dest="fonts", action="append", metavar="FIELD=FAMILY", help="Font family for a field.")
	parser.set_defaults(
		rotate_for_print=None,
		show_crop_marks=None,
		show_fold_line=None,
		widening=None,
	)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render folding table cards onto A3 sheets.")
	parser.add_argument("-d", "--data-dir", dest="data_dir", default=None, help=f"Preset and font storage (default ${DATA_DIR_ENV} or ./data).")
	subparsers = parser.add_subparsers(dest="command", required=True)

	render_parser = subparsers.add_parser("render", help="Render a roster to PDF.")
	render_parser.add_argument("inputs", nargs="+", help="Roster files (.xlsx or .csv), concatenated in order.")
	output_group = render_parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("-p", "--preview", dest="preview_path", default=None, help="Write a wireframe screen preview PNG.")
	output_group.add_argument("-t", "--title", dest="title", default=None, help="PDF document title.")
	output_group.add_argument("-j", "--workers", dest="workers", type=int, default=1, help="Threads used to compose pages.")
	add_layout_arguments(render_parser)

	preview_parser = subparsers.add_parser("preview", help="Write a wireframe screen preview PNG.")
	preview_parser.add_argument("inputs", nargs="+", help="Roster files (.xlsx or .csv), concatenated in order.")
	preview_parser.add_argument("-o", "--output", dest="preview_path", required=True, help="Output PNG path.")
	add_layout_arguments(preview_parser)

	calibrate_parser = subparsers.add_parser("calibrate", help="Write a crop mark calibration sheet.")
	calibrate_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	add_layout_arguments(calibrate_parser)

	template_parser = subparsers.add_parser("template", help="Write a roster import template.")
	template_parser.add_argument("-o", "--output", dest="output_path", default="桌卡导入模板.xlsx", help="Output .xlsx path.")

	presets_parser = subparsers.add_parser("presets", help="Manage saved presets.")
	presets_sub = presets_parser.add_subparsers(dest="presets_command", required=True)
	presets_sub.add_parser("list", help="List presets.")
	save_parser = presets_sub.add_parser("save", help="Save the layout options as a preset.")
	save_parser.add_argument("name", help="Preset name; an existing preset with this name is overwritten.")
	add_layout_arguments(save_parser)
	delete_preset_parser = presets_sub.add_parser("delete", help="Delete a preset.")
	delete_preset_parser.add_argument("preset_id", help="Preset id.")

	fonts_parser = subparsers.add_parser("fonts", help="Manage uploaded fonts.")
	fonts_sub = fonts_parser.add_subparsers(dest="fonts_command", required=True)
	fonts_sub.add_parser("list", help="List fonts.")
	upload_parser = fonts_sub.add_parser("upload", help="Upload font files.")
	upload_parser.add_argument("files", nargs="+", help="Font files (.ttf .otf .woff .woff2).")
	delete_font_parser = fonts_sub.add_parser("delete", help="Delete a font file.")
	delete_font_parser.add_argument("file_name", help="Stored font filename.")

	args = parser.parse_args(argv)
	return args


#============================================
def load_records(inputs: list[str]) -> list[tce.config.CardRecord]:
	"""
	Import roster files, appending each file's records in order.

	Args:
		inputs: Roster file paths.

	Returns:
		CardRecords in page order.
	"""
	records = []
	for input_path in inputs:
		imported = tce.roster.read_roster(pathlib.Path(input_path))
		print(f"Records from {input_path}: {len(imported)}")
		records.extend(imported)
	return records


#============================================
def write_preview(pages: list, config: LayoutConfig, preview_path: pathlib.Path) -> None:
	blocks = [tce.preview.for_screen(page, config.preview_scale) for page in pages]
	image = tce.preview.render_preview_image(blocks, PREVIEW_PIXELS_PER_MM)
	image.save(preview_path)
	print(f"Preview written: {preview_path} (scale {config.preview_scale:g})")


#============================================
def run_preview(args: argparse.Namespace) -> None:
	records = load_records(args.inputs)
	ready_fonts = font_store(args).load_ready_fonts()
	config = build_config(args)
	pages = tce.page.compose_pages(records, config, ready_fonts)
	write_preview(pages, config, pathlib.Path(args.preview_path))
	fallback_pages = sum(1 for page in pages if page.uses_fallback_fonts)
	if fallback_pages > 0:
		print(f"Pages using fallback font metrics: {fallback_pages}")


#============================================
def run_render(args: argparse.Namespace) -> None:
	"""
	Render roster files to a PDF.

	Args:
		args: Parsed argparse namespace.
	"""
	start_time = time.perf_counter()
	print("Table card pipeline")
	print(f"Output PDF: {args.output_path}")

	records = load_records(args.inputs)

	fonts = font_store(args)
	ready_fonts = fonts.load_ready_fonts(verbose=True)
	for orphan in fonts.superseded():
		print(f"Superseded font file kept on disk: {orphan.fileName}")

	config = build_config(args)
	print(f"Rotate for print: {config.rotate_for_print}")
	print(f"Fit scale: {tce.page.compute_fit_scale(config):.4f}")
	print(f"Crop marks: {config.show_crop_marks} offset=({config.crop_offset_mm.x:g}, {config.crop_offset_mm.y:g}) mm")
	print(f"Fold line: {config.show_fold_line}")

	compose_start = time.perf_counter()
	pages = tce.page.compose_pages(records, config, ready_fonts, workers=args.workers)
	compose_end = time.perf_counter()

	output_path = pathlib.Path(args.output_path)
	result = tce.render.render_pages_to_pdf(pages, output_path, title=args.title, verbose=True)
	render_end = time.perf_counter()
	print(f"Pages written: {result.pages}")
	if result.provisional_pages > 0:
		print(f"Pages using fallback font metrics: {result.provisional_pages}")

	sizes = tce.render.read_page_sizes_mm(output_path)
	mismatched = [
		index for index, (width, height) in enumerate(sizes, start=1)
		if abs(width - result.page_width_mm) > 0.01 or abs(height - result.page_height_mm) > 0.01
	]
	if mismatched:
		print(f"Page size mismatch on pages: {mismatched}")
	else:
		print(f"Page size: {result.page_width_mm:g} x {result.page_height_mm:g} mm, print at 100% with no margins")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	tce.render.write_manifest(pathlib.Path(manifest_path), records, result, config, ready_fonts)
	print(f"Manifest written: {manifest_path}")

	if args.preview_path:
		write_preview(pages, config, pathlib.Path(args.preview_path))

	total_time = time.perf_counter() - start_time
	print(
		"Timing: compose={:.2f}s render={:.2f}s total={:.2f}s".format(
			compose_end - compose_start,
			render_end - compose_end,
			total_time,
		)
	)


#============================================
def run_calibrate(args: argparse.Namespace) -> None:
	config = build_config(args)
	output_path = pathlib.Path(args.output_path)
	tce.render.render_calibration_pdf(config, output_path)
	print(f"Calibration sheet written: {output_path}")
	print("Print at 100% scale with no margins, measure the crop marks, then adjust --crop-offset-x/-y.")


#============================================
def run_presets(args: argparse.Namespace) -> None:
	store = preset_store(args)
	if args.presets_command == "list":
		presets = store.list()
		print(f"Presets: {len(presets)}")
		for preset in presets:
			print(f"{preset.id}\t{preset.name}")
	elif args.presets_command == "save":
		preset = store.save_named(args.name, build_config(args))
		print(f"Preset saved: {preset.name} ({preset.id})")
	elif args.presets_command == "delete":
		store.delete(args.preset_id)
		print(f"Preset deleted: {args.preset_id}")


#============================================
def run_fonts(args: argparse.Namespace) -> None:
	store = font_store(args)
	if args.fonts_command == "list":
		fonts = store.list()
		print(f"Fonts: {len(fonts)}")
		for font in fonts:
			print(f"{font.name}\t{font.fileName}\t{font.url}")
	elif args.fonts_command == "upload":
		for file_path in args.files:
			path = pathlib.Path(file_path)
			try:
				font = store.upload(path.read_bytes(), path.name)
			except tce.font_store.UnsupportedFontFormat as error:
				print(f"Rejected {path.name}: {error}")
				continue
			print(f"Font uploaded: {font.name} ({font.fileName})")
	elif args.fonts_command == "delete":
		store.delete(args.file_name)
		print(f"Font deleted: {args.file_name}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	if args.command == "render":
		run_render(args)
	elif args.command == "preview":
		run_preview(args)
	elif args.command == "calibrate":
		run_calibrate(args)
	elif args.command == "template":
		tce.roster.write_template(pathlib.Path(args.output_path))
		print(f"Template written: {args.output_path}")
	elif args.command == "presets":
		run_presets(args)
	elif args.command == "fonts":
		run_fonts(args)
