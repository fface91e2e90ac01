"""
Place a face-pair onto a fixed physical page.
"""

# Standard Library
import concurrent.futures
import dataclasses

# local repo modules
import table_card_engine as tce
import table_card_engine.config
import table_card_engine.face


CardRecord = tce.config.CardRecord
LayoutConfig = tce.config.LayoutConfig
FacePair = tce.face.FacePair

PAGE_WIDTH_MM = tce.config.PAGE_WIDTH_MM
PAGE_HEIGHT_MM = tce.config.PAGE_HEIGHT_MM
NATIVE_CONTENT_WIDTH_MM = tce.config.NATIVE_CONTENT_WIDTH_MM
CROP_MARK_LENGTH_MM = tce.config.CROP_MARK_LENGTH_MM
CROP_MARK_EDGE_CLEARANCE_MM = tce.config.CROP_MARK_EDGE_CLEARANCE_MM

# corner name -> outward (x, y) direction, y down
CORNER_DIRECTIONS = {
	"top_left": (-1.0, -1.0),
	"top_right": (1.0, -1.0),
	"bottom_left": (-1.0, 1.0),
	"bottom_right": (1.0, 1.0),
}

Point = tuple[float, float]
Segment = tuple[Point, Point]


@dataclasses.dataclass(frozen=True)
class CropMark:
	corner: str
	x_mm: float
	y_mm: float
	strokes: tuple[Segment, ...]


@dataclasses.dataclass(frozen=True)
class FoldLine:
	y_mm: float
	x0_mm: float
	x1_mm: float


@dataclasses.dataclass(frozen=True)
class PageCanvas:
	record_id: str
	face_pair: FacePair
	fit_scale: float
	rotation_deg: int
	crop_marks: tuple[CropMark, ...]
	fold_line: FoldLine | None
	width_mm: float = PAGE_WIDTH_MM
	height_mm: float = PAGE_HEIGHT_MM

	@property
	def block_width_mm(self) -> float:
		return self.face_pair.width_mm

	@property
	def block_height_mm(self) -> float:
		return self.face_pair.height_mm

	@property
	def uses_fallback_fonts(self) -> bool:
		return self.face_pair.uses_fallback_fonts

	def to_page(self, x_mm: float, y_mm: float) -> Point:
		"""
		Map a block-frame point onto the page.

		The block is scaled by the fit-scale and turned clockwise by the
		rotation, both about its center, which sits on the page center.

		Args:
			x_mm: Block-frame x in mm.
			y_mm: Block-frame y in mm, downward.

		Returns:
			Page (x, y) in mm, origin top-left, y downward.
		"""
		dx = (x_mm - self.block_width_mm / 2.0) * self.fit_scale
		dy = (y_mm - self.block_height_mm / 2.0) * self.fit_scale
		turns = (self.rotation_deg // 90) % 4
		for _ in range(turns):
			dx, dy = -dy, dx
		return (self.width_mm / 2.0 + dx, self.height_mm / 2.0 + dy)

	def content_bounds(self) -> tuple[float, float, float, float]:
		"""
		Compute the page-space bounding box of the face-pair block.

		Returns:
			Bounding box (x0, y0, x1, y1) in mm.
		"""
		corners = [
			self.to_page(0.0, 0.0),
			self.to_page(self.block_width_mm, 0.0),
			self.to_page(0.0, self.block_height_mm),
			self.to_page(self.block_width_mm, self.block_height_mm),
		]
		x_values = [point[0] for point in corners]
		y_values = [point[1] for point in corners]
		return (min(x_values), min(y_values), max(x_values), max(y_values))


#============================================
def compute_fit_scale(config: LayoutConfig) -> float:
	"""
	Compute the uniform scale applied to the face-pair on the page.

	Rotated output already fits the page. Unrotated output is wider than
	the page and is shrunk to the page width.

	Args:
		config: Layout configuration.

	Returns:
		Fit scale.
	"""
	if config.rotate_for_print:
		return 1.0
	return PAGE_WIDTH_MM / NATIVE_CONTENT_WIDTH_MM


#============================================
def compute_rotation(config: LayoutConfig) -> int:
	"""
	Compute the block rotation in degrees clockwise.

	Args:
		config: Layout configuration.

	Returns:
		90 when rotating for print, else 0.
	"""
	if config.rotate_for_print:
		return 90
	return 0


#============================================
def compute_outer_margins(
	config: LayoutConfig,
	block_width_mm: float,
	block_height_mm: float,
) -> tuple[float, float]:
	"""
	Compute the page margin beyond each block edge, in block millimetres.

	Args:
		config: Layout configuration.
		block_width_mm: Block width.
		block_height_mm: Block height.

	Returns:
		Tuple of (margin beyond the left/right edges, margin beyond the
		top/bottom edges).
	"""
	fit_scale = compute_fit_scale(config)
	# a quarter turn lays the block x axis along the page height
	if compute_rotation(config) % 180 == 90:
		extent_x, extent_y = PAGE_HEIGHT_MM, PAGE_WIDTH_MM
	else:
		extent_x, extent_y = PAGE_WIDTH_MM, PAGE_HEIGHT_MM
	room_x = (extent_x / fit_scale - block_width_mm) / 2.0
	room_y = (extent_y / fit_scale - block_height_mm) / 2.0
	return (max(0.0, room_x), max(0.0, room_y))


#============================================
def _place_mark_axis(
	corner: float,
	sign: float,
	offset: float,
	room: float,
	clearance: float,
) -> tuple[float, float]:
	"""
	Place one axis of a crop mark.

	Returns:
		Tuple of (anchor coordinate, signed stroke extent along the axis).
	"""
	if offset + CROP_MARK_LENGTH_MM + clearance <= room:
		return (corner + sign * offset, sign * CROP_MARK_LENGTH_MM)
	outward = min(offset, room - clearance)
	return (corner + sign * outward, -sign * CROP_MARK_LENGTH_MM)


#============================================
def compute_crop_marks(
	config: LayoutConfig,
	block_width_mm: float,
	block_height_mm: float,
) -> tuple[CropMark, ...]:
	"""
	Compute corner crop marks in the block frame.

	Each mark is anchored at a block corner moved outward by the
	calibration offset, and has one stroke along each edge pointing away
	from the block. Along an axis where the page margin is too narrow for
	that, the anchor is held inside the page edge and the stroke points
	back along the block edge instead, so every mark stays printable.

	Args:
		config: Layout configuration.
		block_width_mm: Block width.
		block_height_mm: Block height.

	Returns:
		Tuple of CropMark entries, empty when crop marks are off.
	"""
	if not config.show_crop_marks:
		return ()
	offset = config.crop_offset_mm
	room_x, room_y = compute_outer_margins(config, block_width_mm, block_height_mm)
	clearance = CROP_MARK_EDGE_CLEARANCE_MM / compute_fit_scale(config)
	corners = {
		"top_left": (0.0, 0.0),
		"top_right": (block_width_mm, 0.0),
		"bottom_left": (0.0, block_height_mm),
		"bottom_right": (block_width_mm, block_height_mm),
	}
	marks = []
	for corner, (corner_x, corner_y) in corners.items():
		sign_x, sign_y = CORNER_DIRECTIONS[corner]
		anchor_x, reach_x = _place_mark_axis(corner_x, sign_x, offset.x, room_x, clearance)
		anchor_y, reach_y = _place_mark_axis(corner_y, sign_y, offset.y, room_y, clearance)
		horizontal = ((anchor_x, anchor_y), (anchor_x + reach_x, anchor_y))
		vertical = ((anchor_x, anchor_y), (anchor_x, anchor_y + reach_y))
		marks.append(
			CropMark(
				corner=corner,
				x_mm=anchor_x,
				y_mm=anchor_y,
				strokes=(horizontal, vertical),
			)
		)
	return tuple(marks)


#============================================
def compute_fold_line(face_pair: FacePair) -> FoldLine:
	"""
	Compute the fold guide between the two faces.

	Args:
		face_pair: Composed faces.

	Returns:
		FoldLine across the block at the boundary between the faces.
	"""
	upper, lower = sorted((face_pair.front, face_pair.back), key=lambda face: face.y_mm)
	fold_y = (upper.y_mm + upper.height_mm + lower.y_mm) / 2.0
	return FoldLine(y_mm=fold_y, x0_mm=0.0, x1_mm=face_pair.width_mm)


#============================================
def compose_page(face_pair: FacePair, config: LayoutConfig) -> PageCanvas:
	"""
	Place one face-pair onto a page canvas.

	Args:
		face_pair: Composed faces.
		config: Layout configuration.

	Returns:
		PageCanvas of fixed physical size.
	"""
	fold_line = None
	if config.show_fold_line:
		fold_line = compute_fold_line(face_pair)
	return PageCanvas(
		record_id=face_pair.record_id,
		face_pair=face_pair,
		fit_scale=compute_fit_scale(config),
		rotation_deg=compute_rotation(config),
		crop_marks=compute_crop_marks(config, face_pair.width_mm, face_pair.height_mm),
		fold_line=fold_line,
	)


#============================================
def render_record(
	record: CardRecord,
	config: LayoutConfig,
	ready_fonts: frozenset[str] = frozenset(),
) -> PageCanvas:
	"""
	Compose faces and page for one record.

	Args:
		record: Card record.
		config: Layout configuration.
		ready_fonts: Font families that have finished loading.

	Returns:
		PageCanvas.
	"""
	face_pair = tce.face.compose(record, config, ready_fonts)
	return compose_page(face_pair, config)


#============================================
def compose_pages(
	records: list[CardRecord],
	config: LayoutConfig,
	ready_fonts: frozenset[str] = frozenset(),
	workers: int = 1,
) -> list[PageCanvas]:
	"""
	Compose one page per record, keeping record order.

	Args:
		records: Card records in page order.
		config: Layout configuration.
		ready_fonts: Font families that have finished loading.
		workers: Thread count; pages are independent.

	Returns:
		List of PageCanvas in the same order as records.
	"""
	ready = frozenset(ready_fonts)
	if workers <= 1 or len(records) <= 1:
		return [render_record(record, config, ready) for record in records]
	with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
		return list(executor.map(lambda record: render_record(record, config, ready), records))
