"""
Per-field tracking and vertical offset resolution.
"""

# Standard Library
import dataclasses
import re

# local repo modules
import table_card_engine as tce
import table_card_engine.config


FieldStyle = tce.config.FieldStyle
FIELD_BASELINE_PT = tce.config.FIELD_BASELINE_PT

# the whole trimmed string must be two CJK Unified Ideographs
TWO_CHAR_IDEOGRAPH_PATTERN = re.compile(r"[\u4e00-\u9fff]{2}")


@dataclasses.dataclass(frozen=True)
class ResolvedTypography:
	tracking_em: float
	margin_compensation_em: float


#============================================
def is_two_char_ideograph_name(text: str) -> bool:
	"""
	Check whether text is exactly two CJK ideographs after trimming.

	Args:
		text: Field text.

	Returns:
		True for a two-ideograph name.
	"""
	if not text:
		return False
	return TWO_CHAR_IDEOGRAPH_PATTERN.fullmatch(text.strip()) is not None


#============================================
def resolve(text: str, style: FieldStyle, widening: bool) -> ResolvedTypography:
	"""
	Resolve effective tracking for one text field.

	Two-ideograph names are widened to (1 + 2 * tracking) em so they occupy
	the same column width as three-ideograph names. The margin compensation
	always equals the tracking and is applied as a negative trailing margin
	to cancel the gap letter-spacing leaves after the last glyph.

	Args:
		text: Field text.
		style: Field style.
		widening: Whether two-char widening is enabled for this field.

	Returns:
		ResolvedTypography.
	"""
	tracking = style.tracking_em
	if widening and text and is_two_char_ideograph_name(text):
		tracking = 1.0 + 2.0 * style.tracking_em
	return ResolvedTypography(tracking_em=tracking, margin_compensation_em=tracking)


#============================================
def resolve_vertical_offset(field: str, style: FieldStyle) -> float:
	"""
	Compute the vertical shift of a field in points.

	Args:
		field: Field name.
		style: Field style.

	Returns:
		Offset in points, positive downward.
	"""
	return style.offset_pt + FIELD_BASELINE_PT[field]
