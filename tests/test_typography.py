import pytest

import table_card_engine.config
import table_card_engine.typography


typography = table_card_engine.typography
FieldStyle = table_card_engine.config.FieldStyle


#============================================
def _style(tracking_em: float, offset_pt: float = 0.0) -> FieldStyle:
	return FieldStyle(size_pt=120.0, offset_pt=offset_pt, font_family="TableCardCN", tracking_em=tracking_em)


#============================================
@pytest.mark.parametrize("text", ["张三", " 李四 ", "王五\n"])
@pytest.mark.parametrize("tracking", [0.0, 0.1, 0.25, -0.05])
def test_two_ideograph_names_are_widened(text: str, tracking: float) -> None:
	"""
	Two-ideograph names get (1 + 2t) em of tracking.
	"""
	resolved = typography.resolve(text, _style(tracking), widening=True)
	assert resolved.tracking_em == pytest.approx(1.0 + 2.0 * tracking)


#============================================
@pytest.mark.parametrize(
	"text",
	["", "张", "张三丰", "张 三", "Li", "San Zhang", "张a", "１２", "。、"],
)
def test_other_text_keeps_base_tracking(text: str) -> None:
	"""
	Anything that is not exactly two ideographs keeps its base tracking.
	"""
	resolved = typography.resolve(text, _style(0.1), widening=True)
	assert resolved.tracking_em == pytest.approx(0.1)


#============================================
def test_widening_disabled_keeps_base_tracking() -> None:
	resolved = typography.resolve("张三", _style(0.1), widening=False)
	assert resolved.tracking_em == pytest.approx(0.1)


#============================================
@pytest.mark.parametrize("text", ["", "张三", "张三丰", "Sample Org"])
@pytest.mark.parametrize("widening", [True, False])
def test_margin_compensation_matches_tracking(text: str, widening: bool) -> None:
	"""
	The trailing margin compensation always equals the resolved tracking.
	"""
	resolved = typography.resolve(text, _style(0.1), widening=widening)
	assert resolved.margin_compensation_em == resolved.tracking_em


#============================================
def test_vertical_offset_adds_field_baseline() -> None:
	"""
	Each field shifts by its user offset plus its fixed baseline anchor.
	"""
	assert typography.resolve_vertical_offset("chineseName", _style(0.0, 4.0)) == pytest.approx(29.0)
	assert typography.resolve_vertical_offset("englishName", _style(0.0, 0.0)) == pytest.approx(12.0)
	assert typography.resolve_vertical_offset("chineseCompany", _style(0.0, 0.0)) == pytest.approx(-5.0)
	assert typography.resolve_vertical_offset("englishCompany", _style(0.0, -2.0)) == pytest.approx(-12.0)


#============================================
def test_two_char_pattern_requires_full_match() -> None:
	assert typography.is_two_char_ideograph_name("张三")
	assert not typography.is_two_char_ideograph_name("张三。")
	assert not typography.is_two_char_ideograph_name("")
