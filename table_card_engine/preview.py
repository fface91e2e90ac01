"""
Screen preview scaling.

The preview zoom is presentation only: pages keep their physical layout,
and each block's reserved height is corrected with a negative bottom
margin so that scaled pages stack without gaps or overlaps.
"""

# Standard Library
import dataclasses

# PIP3 modules
import PIL.Image
import PIL.ImageDraw

# local repo modules
import table_card_engine as tce
import table_card_engine.config
import table_card_engine.fonts
import table_card_engine.page


PageCanvas = tce.page.PageCanvas

PAGE_WIDTH_MM = tce.config.PAGE_WIDTH_MM
PAGE_HEIGHT_MM = tce.config.PAGE_HEIGHT_MM
MM_PER_POINT = tce.config.MM_PER_POINT
FOLD_LINE_DASH_MM = tce.config.FOLD_LINE_DASH_MM

BACKGROUND_COLOR = (241, 245, 249)
PAGE_COLOR = (255, 255, 255)
PAGE_OUTLINE_COLOR = (148, 163, 184)
MARK_COLOR = (0, 0, 0)
FOLD_COLOR = (100, 116, 139)
PROVISIONAL_TEXT_COLOR = (252, 211, 77)
TEXT_COLOR = (71, 85, 105)


@dataclasses.dataclass(frozen=True)
class ScreenBlock:
	page: PageCanvas
	preview_scale: float
	margin_bottom_mm: float
	width_mm: float = PAGE_WIDTH_MM
	height_mm: float = PAGE_HEIGHT_MM
	transform_origin: str = "top"

	@property
	def visual_height_mm(self) -> float:
		return self.height_mm * self.preview_scale

	@property
	def footprint_mm(self) -> float:
		return self.height_mm + self.margin_bottom_mm


#============================================
def compute_margin_compensation(preview_scale: float) -> float:
	"""
	Compute the bottom margin that cancels the space lost to scaling.

	Args:
		preview_scale: Preview zoom factor.

	Returns:
		Bottom margin in mm, zero or negative.
	"""
	return -PAGE_HEIGHT_MM * (1.0 - preview_scale)


#============================================
def for_screen(page: PageCanvas, preview_scale: float) -> ScreenBlock:
	"""
	Wrap a page canvas for on-screen display.

	Args:
		page: Composed page, left untouched.
		preview_scale: Preview zoom factor.

	Returns:
		ScreenBlock.
	"""
	scale = tce.config.clamp_preview_scale(preview_scale)
	return ScreenBlock(
		page=page,
		preview_scale=scale,
		margin_bottom_mm=compute_margin_compensation(scale),
	)


#============================================
def stack_offsets(blocks: list[ScreenBlock]) -> list[float]:
	"""
	Compute the top edge of each block in a vertical screen stack.

	Args:
		blocks: Screen blocks in page order.

	Returns:
		Top offsets in mm.
	"""
	offsets = []
	cursor = 0.0
	for block in blocks:
		offsets.append(cursor)
		cursor += block.footprint_mm
	return offsets


#============================================
def _run_outline(page: PageCanvas, face, field, run) -> list[tuple[float, float]]:
	"""
	Compute the page-space outline of one text run.
	"""
	ascent, descent = tce.fonts.ascent_descent(field.font_name, field.size_pt)
	top = run.baseline_mm - ascent * MM_PER_POINT
	bottom = run.baseline_mm - descent * MM_PER_POINT
	left = run.x_mm
	right = run.x_mm + run.width_mm
	outline = []
	for x_mm, y_mm in ((left, top), (right, top), (right, bottom), (left, bottom)):
		block_x, block_y = face.to_block(x_mm, y_mm)
		outline.append(page.to_page(block_x, block_y))
	return outline


#============================================
def _draw_dashed_line(
	draw: PIL.ImageDraw.ImageDraw,
	start: tuple[float, float],
	end: tuple[float, float],
	dash: float,
	gap: float,
	fill: tuple[int, int, int],
) -> None:
	length = ((end[0] - start[0]) ** 2 + (end[1] - start[1]) ** 2) ** 0.5
	if length <= 0.0:
		return
	step_x = (end[0] - start[0]) / length
	step_y = (end[1] - start[1]) / length
	position = 0.0
	while position < length:
		stop = min(length, position + dash)
		draw.line(
			[
				(start[0] + step_x * position, start[1] + step_y * position),
				(start[0] + step_x * stop, start[1] + step_y * stop),
			],
			fill=fill,
			width=1,
		)
		position += dash + gap


#============================================
def render_preview_image(blocks: list[ScreenBlock], pixels_per_mm: float = 1.0) -> PIL.Image.Image:
	"""
	Draw a wireframe preview of stacked screen blocks.

	Text runs are drawn as boxes; runs measured with fallback metrics are
	highlighted.

	Args:
		blocks: Screen blocks in page order.
		pixels_per_mm: Raster resolution.

	Returns:
		RGB image.
	"""
	offsets = stack_offsets(blocks)
	total_mm = 0.0
	if blocks:
		total_mm = offsets[-1] + blocks[-1].visual_height_mm
	width_px = max(1, int(round(PAGE_WIDTH_MM * pixels_per_mm)))
	height_px = max(1, int(round(total_mm * pixels_per_mm)))
	image = PIL.Image.new("RGB", (width_px, height_px), BACKGROUND_COLOR)
	draw = PIL.ImageDraw.Draw(image)

	for block, top_mm in zip(blocks, offsets):
		scale = block.preview_scale
		left_mm = (block.width_mm - block.width_mm * scale) / 2.0

		def to_pixels(point: tuple[float, float]) -> tuple[float, float]:
			return (
				(left_mm + point[0] * scale) * pixels_per_mm,
				(top_mm + point[1] * scale) * pixels_per_mm,
			)

		page = block.page
		draw.rectangle(
			[to_pixels((0.0, 0.0)), to_pixels((page.width_mm, page.height_mm))],
			fill=PAGE_COLOR,
			outline=PAGE_OUTLINE_COLOR,
		)
		for face in (page.face_pair.back, page.face_pair.front):
			for field in face.fields:
				color = PROVISIONAL_TEXT_COLOR if field.provisional_font else TEXT_COLOR
				for run in field.runs:
					outline = [to_pixels(point) for point in _run_outline(page, face, field, run)]
					draw.polygon(outline, outline=color)
		for mark in page.crop_marks:
			for start, end in mark.strokes:
				draw.line(
					[to_pixels(page.to_page(*start)), to_pixels(page.to_page(*end))],
					fill=MARK_COLOR,
					width=1,
				)
		if page.fold_line is not None:
			fold = page.fold_line
			start = to_pixels(page.to_page(fold.x0_mm, fold.y_mm))
			end = to_pixels(page.to_page(fold.x1_mm, fold.y_mm))
			dash_mm, gap_mm = FOLD_LINE_DASH_MM
			dash_px = dash_mm * scale * pixels_per_mm
			gap_px = gap_mm * scale * pixels_per_mm
			_draw_dashed_line(draw, start, end, dash_px, gap_px, FOLD_COLOR)
	return image
