"""
Print surface: draw composed pages onto physical-size PDF pages.
"""

# Standard Library
import dataclasses
import datetime
import json
import pathlib

# PIP3 modules
import pypdf
import reportlab.lib.units
import reportlab.pdfgen.canvas

# local repo modules
import table_card_engine as tce
import table_card_engine.config
import table_card_engine.page


CardRecord = tce.config.CardRecord
LayoutConfig = tce.config.LayoutConfig
PageCanvas = tce.page.PageCanvas

PAGE_WIDTH_MM = tce.config.PAGE_WIDTH_MM
PAGE_HEIGHT_MM = tce.config.PAGE_HEIGHT_MM
CROP_MARK_STROKE_MM = tce.config.CROP_MARK_STROKE_MM
FOLD_LINE_STROKE_MM = tce.config.FOLD_LINE_STROKE_MM
FOLD_LINE_DASH_MM = tce.config.FOLD_LINE_DASH_MM

MM = reportlab.lib.units.mm
PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 10
RULER_LENGTH_MM = 100.0
RULER_TICK_MM = 10.0
CALIBRATION_FONT = "Helvetica"
CALIBRATION_FONT_SIZE = 9


@dataclasses.dataclass
class RenderResult:
	pages: int
	provisional_pages: int
	page_width_mm: float
	page_height_mm: float


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def default_document_title(now: datetime.datetime | None = None) -> str:
	"""
	Build the default output document title.

	Args:
		now: Timestamp, defaults to the current time.

	Returns:
		Title like Zhuoka_20240131_0915.
	"""
	if now is None:
		now = datetime.datetime.now()
	return now.strftime("Zhuoka_%Y%m%d_%H%M")


#============================================
def to_pdf_point(x_mm: float, y_mm: float, page_height_mm: float) -> tuple[float, float]:
	"""
	Convert a top-left origin mm point into PDF user space.

	Args:
		x_mm: X in mm from the left edge.
		y_mm: Y in mm from the top edge.
		page_height_mm: Page height in mm.

	Returns:
		(x, y) in points, origin bottom-left.
	"""
	return (x_mm * MM, (page_height_mm - y_mm) * MM)


#============================================
def draw_text_runs(pdf: reportlab.pdfgen.canvas.Canvas, page: PageCanvas) -> None:
	"""
	Draw every text run of both faces.

	Args:
		pdf: ReportLab canvas.
		page: Composed page.
	"""
	for face in (page.face_pair.back, page.face_pair.front):
		rotation = page.rotation_deg + face.rotation_deg
		for field in face.fields:
			for run in field.runs:
				block_x, block_y = face.to_block(run.x_mm, run.baseline_mm)
				page_x, page_y = page.to_page(block_x, block_y)
				pdf_x, pdf_y = to_pdf_point(page_x, page_y, page.height_mm)
				pdf.saveState()
				pdf.translate(pdf_x, pdf_y)
				pdf.rotate(-rotation)
				pdf.scale(page.fit_scale, page.fit_scale)
				text = pdf.beginText(0.0, 0.0)
				text.setFont(field.font_name, field.size_pt)
				text.setCharSpace(field.char_space_pt)
				text.textOut(run.text)
				pdf.setFillColorRGB(0.0, 0.0, 0.0)
				pdf.drawText(text)
				pdf.restoreState()


#============================================
def draw_crop_marks(pdf: reportlab.pdfgen.canvas.Canvas, page: PageCanvas) -> None:
	"""
	Draw the page's crop marks.

	Args:
		pdf: ReportLab canvas.
		page: Composed page.
	"""
	if not page.crop_marks:
		return
	pdf.saveState()
	pdf.setStrokeColorRGB(0.0, 0.0, 0.0)
	pdf.setLineWidth(CROP_MARK_STROKE_MM * MM)
	for mark in page.crop_marks:
		for start, end in mark.strokes:
			x0, y0 = to_pdf_point(*page.to_page(*start), page.height_mm)
			x1, y1 = to_pdf_point(*page.to_page(*end), page.height_mm)
			pdf.line(x0, y0, x1, y1)
	pdf.restoreState()


#============================================
def draw_fold_line(pdf: reportlab.pdfgen.canvas.Canvas, page: PageCanvas) -> None:
	"""
	Draw the dashed fold guide.

	Args:
		pdf: ReportLab canvas.
		page: Composed page.
	"""
	fold = page.fold_line
	if fold is None:
		return
	x0, y0 = to_pdf_point(*page.to_page(fold.x0_mm, fold.y_mm), page.height_mm)
	x1, y1 = to_pdf_point(*page.to_page(fold.x1_mm, fold.y_mm), page.height_mm)
	dash_mm, gap_mm = FOLD_LINE_DASH_MM
	pdf.saveState()
	pdf.setStrokeColorRGB(0.4, 0.4, 0.4)
	pdf.setLineWidth(FOLD_LINE_STROKE_MM * MM)
	pdf.setDash([dash_mm * MM, gap_mm * MM], 0)
	pdf.line(x0, y0, x1, y1)
	pdf.restoreState()


#============================================
def draw_page_canvas(pdf: reportlab.pdfgen.canvas.Canvas, page: PageCanvas) -> None:
	"""
	Draw one composed page onto the current PDF page.

	Args:
		pdf: ReportLab canvas sized to the page.
		page: Composed page.
	"""
	draw_text_runs(pdf, page)
	draw_crop_marks(pdf, page)
	draw_fold_line(pdf, page)


#============================================
def new_pdf_canvas(output_path: pathlib.Path, title: str | None) -> reportlab.pdfgen.canvas.Canvas:
	"""
	Create a ReportLab canvas at the physical page size.

	Args:
		output_path: Output PDF path.
		title: Document title.

	Returns:
		ReportLab canvas.
	"""
	pdf = reportlab.pdfgen.canvas.Canvas(
		str(output_path),
		pagesize=(PAGE_WIDTH_MM * MM, PAGE_HEIGHT_MM * MM),
		pageCompression=1,
	)
	pdf.setTitle(title or default_document_title())
	return pdf


#============================================
def render_pages_to_pdf(
	pages: list[PageCanvas],
	output_path: pathlib.Path,
	title: str | None = None,
	verbose: bool = False,
) -> RenderResult:
	"""
	Render composed pages to a PDF, one page per record in order.

	Args:
		pages: Composed pages.
		output_path: Output PDF path.
		title: Document title.
		verbose: Print a progress bar.

	Returns:
		RenderResult.
	"""
	pdf = new_pdf_canvas(output_path, title)
	total = len(pages)
	provisional_pages = 0
	for index, page in enumerate(pages, start=1):
		draw_page_canvas(pdf, page)
		pdf.showPage()
		if page.uses_fallback_fonts:
			provisional_pages += 1
		if verbose and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
			print_progress("Pages", index, total)
	if verbose and total > 0:
		print()
	pdf.save()
	return RenderResult(
		pages=total,
		provisional_pages=provisional_pages,
		page_width_mm=PAGE_WIDTH_MM,
		page_height_mm=PAGE_HEIGHT_MM,
	)


#============================================
def draw_ruler(
	pdf: reportlab.pdfgen.canvas.Canvas,
	start: tuple[float, float],
	horizontal: bool,
) -> None:
	"""
	Draw a 100 mm ruler with 10 mm ticks.

	Args:
		pdf: ReportLab canvas.
		start: Ruler start in page mm, top-left origin.
		horizontal: Ruler direction.
	"""
	start_x, start_y = start
	if horizontal:
		end = (start_x + RULER_LENGTH_MM, start_y)
	else:
		end = (start_x, start_y + RULER_LENGTH_MM)
	x0, y0 = to_pdf_point(start_x, start_y, PAGE_HEIGHT_MM)
	x1, y1 = to_pdf_point(end[0], end[1], PAGE_HEIGHT_MM)
	pdf.line(x0, y0, x1, y1)
	ticks = int(RULER_LENGTH_MM // RULER_TICK_MM)
	for index in range(ticks + 1):
		step = index * RULER_TICK_MM
		tick = 3.0 if index % 5 else 6.0
		if horizontal:
			tx0, ty0 = to_pdf_point(start_x + step, start_y, PAGE_HEIGHT_MM)
			tx1, ty1 = to_pdf_point(start_x + step, start_y + tick, PAGE_HEIGHT_MM)
		else:
			tx0, ty0 = to_pdf_point(start_x, start_y + step, PAGE_HEIGHT_MM)
			tx1, ty1 = to_pdf_point(start_x + tick, start_y + step, PAGE_HEIGHT_MM)
		pdf.line(tx0, ty0, tx1, ty1)
	label_x, label_y = to_pdf_point(start_x + 2.0, start_y - 2.0, PAGE_HEIGHT_MM)
	pdf.drawString(label_x, label_y, f"{RULER_LENGTH_MM:.0f} mm")


#============================================
def draw_calibration_page(pdf: reportlab.pdfgen.canvas.Canvas, config: LayoutConfig) -> PageCanvas:
	"""
	Draw a calibration sheet for measuring printer drift.

	The sheet carries the configured crop marks, a fold guide, 100 mm
	rulers to check the print scale, and the expected distance from the
	top-left crop mark to the page edges.

	Args:
		pdf: ReportLab canvas.
		config: Layout configuration.

	Returns:
		The blank PageCanvas used for the marks.
	"""
	calibration_config = config.with_updates(show_crop_marks=True, show_fold_line=True)
	page = tce.page.render_record(CardRecord(id="calibration"), calibration_config)
	draw_page_canvas(pdf, page)

	pdf.saveState()
	pdf.setStrokeColorRGB(0.0, 0.0, 0.0)
	pdf.setLineWidth(0.2 * MM)
	pdf.setFont(CALIBRATION_FONT, CALIBRATION_FONT_SIZE)
	center_x = PAGE_WIDTH_MM / 2.0
	center_y = PAGE_HEIGHT_MM / 2.0
	draw_ruler(pdf, (center_x - RULER_LENGTH_MM / 2.0, center_y - 20.0), True)
	draw_ruler(pdf, (center_x - 40.0, center_y - RULER_LENGTH_MM / 2.0 + 10.0), False)

	lines = [
		"Calibration: print at 100% scale, no margins.",
		f"Fit scale {page.fit_scale:.4f}, rotation {page.rotation_deg} deg",
		f"Crop offset x={config.crop_offset_mm.x:g} mm y={config.crop_offset_mm.y:g} mm",
	]
	for mark in page.crop_marks:
		for start, end in mark.strokes:
			tip_x, tip_y = page.to_page(*end)
			anchor_x, anchor_y = page.to_page(*start)
			if mark.corner == "top_left":
				lines.append(
					f"Mark stroke {anchor_x:.1f},{anchor_y:.1f} -> {tip_x:.1f},{tip_y:.1f} mm from top-left"
				)
	text_x, text_y = to_pdf_point(center_x - 45.0, center_y + 45.0, PAGE_HEIGHT_MM)
	text = pdf.beginText(text_x, text_y)
	text.setFont(CALIBRATION_FONT, CALIBRATION_FONT_SIZE)
	for line in lines:
		text.textLine(line)
	pdf.drawText(text)
	pdf.restoreState()
	return page


#============================================
def render_calibration_pdf(config: LayoutConfig, output_path: pathlib.Path) -> RenderResult:
	"""
	Write a single calibration sheet PDF.

	Args:
		config: Layout configuration.
		output_path: Output PDF path.

	Returns:
		RenderResult.
	"""
	pdf = new_pdf_canvas(output_path, "Zhuoka_calibration")
	draw_calibration_page(pdf, config)
	pdf.showPage()
	pdf.save()
	return RenderResult(
		pages=1,
		provisional_pages=0,
		page_width_mm=PAGE_WIDTH_MM,
		page_height_mm=PAGE_HEIGHT_MM,
	)


#============================================
def read_page_sizes_mm(path: pathlib.Path) -> list[tuple[float, float]]:
	"""
	Read back the physical size of each page of a PDF.

	Args:
		path: PDF path.

	Returns:
		List of (width, height) in mm.
	"""
	reader = pypdf.PdfReader(str(path))
	sizes = []
	for page in reader.pages:
		width = float(page.mediabox.width) / MM
		height = float(page.mediabox.height) / MM
		sizes.append((width, height))
	return sizes


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	records: list[CardRecord],
	result: RenderResult,
	config: LayoutConfig,
	ready_fonts: frozenset[str],
) -> None:
	"""
	Write a manifest JSON file describing a render.

	Args:
		manifest_path: Output path.
		records: Rendered records in page order.
		result: Render result.
		config: Layout configuration.
		ready_fonts: Font families that were loaded.
	"""
	data = {
		"pages": result.pages,
		"provisional_pages": result.provisional_pages,
		"page_size_mm": [result.page_width_mm, result.page_height_mm],
		"fit_scale": tce.page.compute_fit_scale(config),
		"records": [record.id for record in records],
		"ready_fonts": sorted(ready_fonts),
		"layout": tce.config.layout_config_to_dict(config),
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=False)
