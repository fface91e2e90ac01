import pytest

import table_card_engine.config
import table_card_engine.page
import table_card_engine.preview


config_module = table_card_engine.config
preview = table_card_engine.preview


#============================================
def _page(**changes) -> table_card_engine.page.PageCanvas:
	config = config_module.default_layout_config()
	if changes:
		config = config.with_updates(**changes)
	record = config_module.CardRecord(id="p", chineseName="张三", englishName="San Zhang")
	return table_card_engine.page.render_record(record, config)


#============================================
def test_margin_compensation_values() -> None:
	assert preview.compute_margin_compensation(0.75) == pytest.approx(-105.0)
	assert preview.compute_margin_compensation(1.0) == 0.0
	assert preview.compute_margin_compensation(0.3) == pytest.approx(-294.0)


#============================================
@pytest.mark.parametrize("scale", [0.3, 0.5, 0.75, 1.0])
def test_scaled_blocks_stack_without_gaps(scale: float) -> None:
	"""
	Each block's footprint equals its visual height, so pages abut.
	"""
	block = preview.for_screen(_page(), scale)
	assert block.footprint_mm == pytest.approx(block.visual_height_mm)
	assert block.transform_origin == "top"
	blocks = [block, block, block]
	offsets = preview.stack_offsets(blocks)
	assert offsets[1] - offsets[0] == pytest.approx(420.0 * scale)
	assert offsets[2] - offsets[1] == pytest.approx(420.0 * scale)


#============================================
def test_preview_scale_is_clamped() -> None:
	assert preview.for_screen(_page(), 0.1).preview_scale == pytest.approx(0.3)
	assert preview.for_screen(_page(), 2.5).preview_scale == pytest.approx(1.0)
	assert preview.for_screen(_page(), 0).preview_scale == pytest.approx(0.75)


#============================================
def test_preview_leaves_page_untouched() -> None:
	"""
	The zoom never changes physical layout.
	"""
	page = _page()
	small = preview.for_screen(page, 0.3)
	large = preview.for_screen(page, 1.0)
	assert small.page is page
	assert large.page is page
	assert (small.width_mm, small.height_mm) == (297.0, 420.0)
	assert _page(preview_scale=0.3) == _page(preview_scale=1.0)


#============================================
def test_preview_image_dimensions() -> None:
	page = _page(show_fold_line=True)
	blocks = [preview.for_screen(page, 0.5), preview.for_screen(page, 0.5)]
	image = preview.render_preview_image(blocks, pixels_per_mm=1.0)
	assert image.size == (297, 420)
	assert image.mode == "RGB"


#============================================
def test_preview_image_draws_crop_marks() -> None:
	page = _page()
	block = preview.for_screen(page, 1.0)
	image = preview.render_preview_image([block], pixels_per_mm=1.0)
	anchor_x, anchor_y = page.to_page(page.crop_marks[0].x_mm, page.crop_marks[0].y_mm)
	window = image.crop(
		(int(anchor_x) - 2, int(anchor_y) - 2, int(anchor_x) + 3, int(anchor_y) + 3)
	)
	assert preview.MARK_COLOR in [color for _count, color in window.getcolors()]
