"""
Shared configuration, constants and value types.
"""

# Standard Library
import dataclasses
import math
import uuid


MM_PER_POINT = 25.4 / 72.0

# target paper, portrait
PAGE_WIDTH_MM = 297.0
PAGE_HEIGHT_MM = 420.0

# empirical footprint of the unrotated face-pair
NATIVE_CONTENT_WIDTH_MM = 357.0

NOMINAL_CROP_MARGIN_X_MM = 32.5
NOMINAL_CROP_MARGIN_Y_MM = 13.5
NATIVE_CONTENT_HEIGHT_MM = PAGE_WIDTH_MM - 2.0 * NOMINAL_CROP_MARGIN_X_MM
CROP_MARK_LENGTH_MM = (PAGE_HEIGHT_MM - NATIVE_CONTENT_WIDTH_MM) / 2.0 - NOMINAL_CROP_MARGIN_Y_MM
CROP_MARK_STROKE_MM = 0.25
# minimum gap between any crop mark and the paper edge
CROP_MARK_EDGE_CLEARANCE_MM = 3.0
FOLD_LINE_STROKE_MM = 0.2
FOLD_LINE_DASH_MM = (3.0, 2.0)

PREVIEW_SCALE_MIN = 0.30
PREVIEW_SCALE_MAX = 1.00

LINE_HEIGHT_FACTOR = 1.1
WRAP_WIDTH_FACTOR = 0.8

FIELD_NAMES = (
	"chineseName",
	"englishName",
	"chineseCompany",
	"englishCompany",
)
WIDENING_FIELDS = frozenset({"chineseName"})
WRAPPED_FIELDS = frozenset({"chineseCompany", "englishCompany"})

# positive moves the line down
FIELD_BASELINE_PT = {
	"chineseName": 25.0,
	"englishName": 12.0,
	"chineseCompany": -5.0,
	"englishCompany": -10.0,
}

DEFAULT_FONT_SIZES = {
	"chineseName": 120.0,
	"englishName": 90.0,
	"chineseCompany": 48.0,
	"englishCompany": 36.0,
}
DEFAULT_OFFSETS = {
	"chineseName": 0.0,
	"englishName": 0.0,
	"chineseCompany": 0.0,
	"englishCompany": 0.0,
}
DEFAULT_FONT_FAMILIES = {
	"chineseName": "TableCardCN",
	"englishName": "TableCardEN",
	"chineseCompany": "TableCardCN",
	"englishCompany": "TableCardEN",
}
DEFAULT_LETTER_SPACINGS = {
	"chineseName": 0.1,
	"englishName": 0.05,
	"chineseCompany": 0.0,
	"englishCompany": 0.0,
}
DEFAULT_GLOBAL_SPACING_PT = 21.0
DEFAULT_PREVIEW_SCALE = 0.75

BLANK_CARD_TEXT = {
	"chineseName": "姓名",
	"englishName": "Name",
	"chineseCompany": "所在单位/部门",
	"englishCompany": "Organization Name",
}


@dataclasses.dataclass(frozen=True)
class FieldStyle:
	size_pt: float
	offset_pt: float
	font_family: str
	tracking_em: float


@dataclasses.dataclass(frozen=True)
class FieldStyles:
	chineseName: FieldStyle
	englishName: FieldStyle
	chineseCompany: FieldStyle
	englishCompany: FieldStyle

	def get(self, field: str) -> FieldStyle:
		if field not in FIELD_NAMES:
			raise KeyError(field)
		return getattr(self, field)


@dataclasses.dataclass(frozen=True)
class CropOffset:
	x: float = 0.0
	y: float = 0.0


@dataclasses.dataclass(frozen=True)
class LayoutConfig:
	styles: FieldStyles
	enable_two_char_widening: bool = True
	global_spacing_pt: float = DEFAULT_GLOBAL_SPACING_PT
	show_crop_marks: bool = True
	crop_offset_mm: CropOffset = dataclasses.field(default_factory=CropOffset)
	show_fold_line: bool = False
	rotate_for_print: bool = True
	preview_scale: float = DEFAULT_PREVIEW_SCALE

	def __post_init__(self) -> None:
		object.__setattr__(self, "preview_scale", clamp_preview_scale(self.preview_scale))

	def with_updates(self, **changes) -> "LayoutConfig":
		"""
		Return a copy with top-level settings replaced.
		"""
		return dataclasses.replace(self, **changes)

	def with_field_style(self, field: str, **changes) -> "LayoutConfig":
		"""
		Return a copy with one field's style replaced.
		"""
		style = dataclasses.replace(self.styles.get(field), **changes)
		styles = dataclasses.replace(self.styles, **{field: style})
		return dataclasses.replace(self, styles=styles)


@dataclasses.dataclass(frozen=True)
class CardRecord:
	id: str
	chineseName: str = ""
	englishName: str = ""
	chineseCompany: str = ""
	englishCompany: str = ""

	def text_for(self, field: str) -> str:
		if field not in FIELD_NAMES:
			raise KeyError(field)
		return getattr(self, field)


@dataclasses.dataclass(frozen=True)
class Preset:
	id: str
	name: str
	settings: LayoutConfig


@dataclasses.dataclass(frozen=True)
class CustomFont:
	name: str
	fileName: str
	url: str


class StoreUnavailable(RuntimeError):
	"""
	A preset or font store could not be read or written. Safe to retry.
	"""

	retryable = True


#============================================
def new_record_id() -> str:
	"""
	Generate a short opaque id for records and presets.

	Returns:
		Nine character id string.
	"""
	return uuid.uuid4().hex[:9]


#============================================
def coerce_number(value, default: float = 0.0) -> float:
	"""
	Convert user input to a float, substituting a default on failure.

	Args:
		value: Raw value (number, string, or None).
		default: Value used when parsing fails.

	Returns:
		Finite float.
	"""
	if isinstance(value, bool):
		return float(value)
	if isinstance(value, (int, float)):
		number = float(value)
	elif isinstance(value, str):
		try:
			number = float(value.strip())
		except ValueError:
			return default
	else:
		return default
	if not math.isfinite(number):
		return default
	return number


#============================================
def clamp_preview_scale(value) -> float:
	"""
	Clamp a preview scale into the allowed range.

	Args:
		value: Raw preview scale.

	Returns:
		Preview scale within [PREVIEW_SCALE_MIN, PREVIEW_SCALE_MAX].
	"""
	scale = coerce_number(value, DEFAULT_PREVIEW_SCALE)
	if scale == 0.0:
		scale = DEFAULT_PREVIEW_SCALE
	return min(PREVIEW_SCALE_MAX, max(PREVIEW_SCALE_MIN, scale))


#============================================
def default_field_styles() -> FieldStyles:
	"""
	Build the default four-field style set.

	Returns:
		FieldStyles with default sizes, offsets, families and tracking.
	"""
	styles = {}
	for field in FIELD_NAMES:
		styles[field] = FieldStyle(
			size_pt=DEFAULT_FONT_SIZES[field],
			offset_pt=DEFAULT_OFFSETS[field],
			font_family=DEFAULT_FONT_FAMILIES[field],
			tracking_em=DEFAULT_LETTER_SPACINGS[field],
		)
	return FieldStyles(**styles)


#============================================
def default_layout_config() -> LayoutConfig:
	"""
	Build the default layout configuration.

	Returns:
		LayoutConfig.
	"""
	return LayoutConfig(styles=default_field_styles())


#============================================
def _field_map(settings: dict, key: str) -> dict:
	value = settings.get(key)
	if isinstance(value, dict):
		return value
	return {}


#============================================
def _stored_number(values: dict, key: str, default: float) -> float:
	"""
	Read a stored number: absent keys take the default, bad values become 0.
	"""
	value = values.get(key)
	if value is None:
		return default
	return coerce_number(value)


#============================================
def layout_config_from_dict(settings: dict | None) -> LayoutConfig:
	"""
	Build a LayoutConfig from stored preset settings.

	Older presets may lack newer keys; every missing value is replaced by
	its default rather than failing the load. A stored number that does not
	parse is read as 0.

	Args:
		settings: Settings dict using the stored camelCase keys.

	Returns:
		LayoutConfig.
	"""
	if not isinstance(settings, dict):
		settings = {}
	sizes = _field_map(settings, "fontSize")
	offsets = _field_map(settings, "offsets")
	families = _field_map(settings, "fontFamilies")
	spacings = _field_map(settings, "letterSpacings")

	styles = {}
	for field in FIELD_NAMES:
		family = families.get(field)
		if not isinstance(family, str) or not family.strip():
			family = DEFAULT_FONT_FAMILIES[field]
		styles[field] = FieldStyle(
			size_pt=_stored_number(sizes, field, DEFAULT_FONT_SIZES[field]),
			offset_pt=_stored_number(offsets, field, DEFAULT_OFFSETS[field]),
			font_family=family,
			tracking_em=_stored_number(spacings, field, DEFAULT_LETTER_SPACINGS[field]),
		)

	crop = _field_map(settings, "cropOffset")
	crop_offset = CropOffset(
		x=_stored_number(crop, "x", 0.0),
		y=_stored_number(crop, "y", 0.0),
	)

	def flag(key: str, default: bool) -> bool:
		value = settings.get(key)
		if not isinstance(value, bool):
			return default
		return value

	return LayoutConfig(
		styles=FieldStyles(**styles),
		enable_two_char_widening=flag("enableTwoCharWidening", True),
		global_spacing_pt=_stored_number(settings, "globalSpacing", DEFAULT_GLOBAL_SPACING_PT),
		show_crop_marks=flag("showCropMarks", True),
		crop_offset_mm=crop_offset,
		show_fold_line=flag("showFoldLine", False),
		rotate_for_print=flag("rotateForPrint", True),
		preview_scale=clamp_preview_scale(settings.get("previewScale")),
	)


#============================================
def layout_config_to_dict(config: LayoutConfig) -> dict:
	"""
	Serialize a LayoutConfig using the stored camelCase keys.

	Args:
		config: Layout configuration.

	Returns:
		JSON-ready dict.
	"""
	styles = config.styles
	return {
		"fontSize": {field: styles.get(field).size_pt for field in FIELD_NAMES},
		"offsets": {field: styles.get(field).offset_pt for field in FIELD_NAMES},
		"fontFamilies": {field: styles.get(field).font_family for field in FIELD_NAMES},
		"letterSpacings": {field: styles.get(field).tracking_em for field in FIELD_NAMES},
		"enableTwoCharWidening": config.enable_two_char_widening,
		"globalSpacing": config.global_spacing_pt,
		"showCropMarks": config.show_crop_marks,
		"showFoldLine": config.show_fold_line,
		"cropOffset": {"x": config.crop_offset_mm.x, "y": config.crop_offset_mm.y},
		"rotateForPrint": config.rotate_for_print,
		"previewScale": config.preview_scale,
	}


#============================================
def points_to_mm(value: float) -> float:
	"""
	Convert points to millimetres.

	Args:
		value: Points value.

	Returns:
		Millimetre value.
	"""
	return value * MM_PER_POINT
