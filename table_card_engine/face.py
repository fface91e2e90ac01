"""
Compose the two mirrored faces of a folding table card.
"""

# Standard Library
import dataclasses

# local repo modules
import table_card_engine as tce
import table_card_engine.config
import table_card_engine.fonts
import table_card_engine.typography


CardRecord = tce.config.CardRecord
LayoutConfig = tce.config.LayoutConfig

FIELD_NAMES = tce.config.FIELD_NAMES
WIDENING_FIELDS = tce.config.WIDENING_FIELDS
WRAPPED_FIELDS = tce.config.WRAPPED_FIELDS
LINE_HEIGHT_FACTOR = tce.config.LINE_HEIGHT_FACTOR
WRAP_WIDTH_FACTOR = tce.config.WRAP_WIDTH_FACTOR
NATIVE_CONTENT_WIDTH_MM = tce.config.NATIVE_CONTENT_WIDTH_MM
NATIVE_CONTENT_HEIGHT_MM = tce.config.NATIVE_CONTENT_HEIGHT_MM
MM_PER_POINT = tce.config.MM_PER_POINT

FACE_WIDTH_MM = NATIVE_CONTENT_WIDTH_MM
FACE_HEIGHT_MM = NATIVE_CONTENT_HEIGHT_MM / 2.0


@dataclasses.dataclass(frozen=True)
class RenderedRun:
	text: str
	x_mm: float
	baseline_mm: float
	width_mm: float


@dataclasses.dataclass(frozen=True)
class RenderedField:
	field: str
	text: str
	font_family: str
	font_name: str
	provisional_font: bool
	size_pt: float
	tracking_em: float
	margin_compensation_em: float
	vertical_offset_pt: float
	box_top_mm: float
	box_height_mm: float
	runs: tuple[RenderedRun, ...]

	@property
	def char_space_pt(self) -> float:
		return self.tracking_em * self.size_pt


@dataclasses.dataclass(frozen=True)
class RenderedFace:
	side: str
	x_mm: float
	y_mm: float
	width_mm: float
	height_mm: float
	rotation_deg: int
	fields: tuple[RenderedField, ...]

	@property
	def center(self) -> tuple[float, float]:
		return (self.x_mm + self.width_mm / 2.0, self.y_mm + self.height_mm / 2.0)

	@property
	def uses_fallback_fonts(self) -> bool:
		return any(field.provisional_font for field in self.fields)

	def field(self, name: str) -> RenderedField:
		for rendered in self.fields:
			if rendered.field == name:
				return rendered
		raise KeyError(name)

	def to_block(self, x_mm: float, y_mm: float) -> tuple[float, float]:
		"""
		Map a face-local point into the face-pair block frame.

		The face rotation turns the point about the face center.

		Args:
			x_mm: Face-local x in mm.
			y_mm: Face-local y in mm, downward.

		Returns:
			Block-frame (x, y) in mm.
		"""
		block_x = self.x_mm + x_mm
		block_y = self.y_mm + y_mm
		if self.rotation_deg % 360 == 180:
			center_x, center_y = self.center
			return (2.0 * center_x - block_x, 2.0 * center_y - block_y)
		return (block_x, block_y)


@dataclasses.dataclass(frozen=True)
class FacePair:
	record_id: str
	front: RenderedFace
	back: RenderedFace
	width_mm: float = NATIVE_CONTENT_WIDTH_MM
	height_mm: float = NATIVE_CONTENT_HEIGHT_MM

	@property
	def uses_fallback_fonts(self) -> bool:
		return self.front.uses_fallback_fonts or self.back.uses_fallback_fonts


#============================================
def _layout_field(
	field: str,
	text: str,
	config: LayoutConfig,
	ready_fonts: frozenset[str],
	face_width_mm: float,
) -> tuple[dict, list[str], float]:
	"""
	Resolve typography and line breaks for one field.

	Returns:
		Tuple of (field attributes, lines, box height in points).
	"""
	style = config.styles.get(field)
	size_pt = max(0.0, style.size_pt)
	widening = config.enable_two_char_widening and field in WIDENING_FIELDS
	typo = tce.typography.resolve(text, style, widening)
	font_name, provisional = tce.fonts.resolve_font(style.font_family, text, ready_fonts)

	if not text:
		lines: list[str] = []
	elif field in WRAPPED_FIELDS:
		max_width_pt = face_width_mm * WRAP_WIDTH_FACTOR / MM_PER_POINT
		lines = tce.fonts.wrap_text(text, font_name, size_pt, typo.tracking_em, max_width_pt)
	else:
		lines = [text]

	attributes = {
		"field": field,
		"text": text,
		"font_family": style.font_family,
		"font_name": font_name,
		"provisional_font": provisional,
		"size_pt": size_pt,
		"tracking_em": typo.tracking_em,
		"margin_compensation_em": typo.margin_compensation_em,
		"vertical_offset_pt": tce.typography.resolve_vertical_offset(field, style),
	}
	box_height_pt = LINE_HEIGHT_FACTOR * size_pt * len(lines)
	return (attributes, lines, box_height_pt)


#============================================
def compose_face(
	record: CardRecord,
	config: LayoutConfig,
	ready_fonts: frozenset[str],
	side: str,
	x_mm: float,
	y_mm: float,
	rotation_deg: int,
	width_mm: float = FACE_WIDTH_MM,
	height_mm: float = FACE_HEIGHT_MM,
) -> RenderedFace:
	"""
	Lay out the four stacked fields of one face.

	Fields are stacked top to bottom with a uniform gap, the stack is
	centered in the face, each line is centered horizontally, and each
	field is then shifted down by its vertical offset.

	Args:
		record: Card record.
		config: Layout configuration.
		ready_fonts: Font families that have finished loading.
		side: "front" or "back".
		x_mm: Face left edge in the block frame.
		y_mm: Face top edge in the block frame.
		rotation_deg: Presentation rotation about the face center.
		width_mm: Face width.
		height_mm: Face height.

	Returns:
		RenderedFace with face-local run positions.
	"""
	gap_pt = config.global_spacing_pt
	laid_out = []
	total_height_pt = gap_pt * (len(FIELD_NAMES) - 1)
	for field in FIELD_NAMES:
		text = str(record.text_for(field) or "")
		entry = _layout_field(field, text, config, ready_fonts, width_mm)
		laid_out.append(entry)
		total_height_pt += entry[2]

	face_width_pt = width_mm / MM_PER_POINT
	cursor_pt = height_mm / MM_PER_POINT / 2.0 - total_height_pt / 2.0
	fields = []
	for attributes, lines, box_height_pt in laid_out:
		size_pt = attributes["size_pt"]
		line_height_pt = LINE_HEIGHT_FACTOR * size_pt
		shift_pt = attributes["vertical_offset_pt"]
		font_name = attributes["font_name"]
		runs = []
		if lines:
			ascent, descent = tce.fonts.ascent_descent(font_name, size_pt)
			half_leading = (line_height_pt - (ascent - descent)) / 2.0
			for index, line in enumerate(lines):
				width_pt = tce.fonts.measure_run(line, font_name, size_pt, attributes["tracking_em"])
				line_top_pt = cursor_pt + index * line_height_pt
				baseline_pt = line_top_pt + half_leading + ascent + shift_pt
				runs.append(
					RenderedRun(
						text=line,
						x_mm=(face_width_pt - width_pt) / 2.0 * MM_PER_POINT,
						baseline_mm=baseline_pt * MM_PER_POINT,
						width_mm=width_pt * MM_PER_POINT,
					)
				)
		fields.append(
			RenderedField(
				box_top_mm=(cursor_pt + shift_pt) * MM_PER_POINT,
				box_height_mm=box_height_pt * MM_PER_POINT,
				runs=tuple(runs),
				**attributes,
			)
		)
		cursor_pt += box_height_pt + gap_pt

	return RenderedFace(
		side=side,
		x_mm=x_mm,
		y_mm=y_mm,
		width_mm=width_mm,
		height_mm=height_mm,
		rotation_deg=rotation_deg,
		fields=tuple(fields),
	)


#============================================
def compose(
	record: CardRecord,
	config: LayoutConfig,
	ready_fonts: frozenset[str] = frozenset(),
) -> FacePair:
	"""
	Compose the front and back faces for one record.

	The back face occupies the upper half of the block turned 180 degrees,
	so both faces read upright once the sheet is folded on the midline.

	Args:
		record: Card record.
		config: Layout configuration.
		ready_fonts: Font families that have finished loading.

	Returns:
		FacePair.
	"""
	back = compose_face(record, config, ready_fonts, "back", 0.0, 0.0, 180)
	front = compose_face(record, config, ready_fonts, "front", 0.0, FACE_HEIGHT_MM, 0)
	return FacePair(record_id=record.id, front=front, back=back)
