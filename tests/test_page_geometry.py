import pytest

import table_card_engine.config
import table_card_engine.face
import table_card_engine.page


config_module = table_card_engine.config
page_module = table_card_engine.page

PAGE_WIDTH_MM = config_module.PAGE_WIDTH_MM
PAGE_HEIGHT_MM = config_module.PAGE_HEIGHT_MM
EPSILON = 0.001


#============================================
def build_default_config(**changes) -> config_module.LayoutConfig:
	"""
	Build a default LayoutConfig for tests.
	"""
	config = config_module.default_layout_config()
	if changes:
		config = config.with_updates(**changes)
	return config


#============================================
def _record(name: str = "张三", record_id: str = "r1") -> config_module.CardRecord:
	return config_module.CardRecord(
		id=record_id,
		chineseName=name,
		englishName="San Zhang",
		chineseCompany="示例单位",
		englishCompany="Sample Org",
	)


#============================================
def _mark(page: page_module.PageCanvas, corner: str) -> page_module.CropMark:
	for mark in page.crop_marks:
		if mark.corner == corner:
			return mark
	raise KeyError(corner)


#============================================
def test_fit_scale_follows_rotation_flag() -> None:
	assert page_module.compute_fit_scale(build_default_config(rotate_for_print=True)) == 1.0
	unrotated = page_module.compute_fit_scale(build_default_config(rotate_for_print=False))
	assert unrotated == pytest.approx(297.0 / 357.0)
	assert unrotated == pytest.approx(0.8319, abs=0.0001)


#============================================
@pytest.mark.parametrize("rotate", [True, False])
def test_fit_scale_ignores_record_content(rotate: bool) -> None:
	config = build_default_config(rotate_for_print=rotate)
	short = page_module.render_record(config_module.CardRecord(id="a"), config)
	long_text = "International Association of Research Laboratories and Applied Sciences"
	long = page_module.render_record(
		config_module.CardRecord(id="b", chineseName="欧阳诸葛长名", englishCompany=long_text),
		config,
	)
	assert short.fit_scale == long.fit_scale


#============================================
@pytest.mark.parametrize("rotate", [True, False])
@pytest.mark.parametrize("preview_scale", [0.3, 0.75, 1.0])
def test_page_size_is_constant(rotate: bool, preview_scale: float) -> None:
	config = build_default_config(rotate_for_print=rotate, preview_scale=preview_scale)
	page = page_module.render_record(_record(), config)
	assert (page.width_mm, page.height_mm) == (PAGE_WIDTH_MM, PAGE_HEIGHT_MM)


#============================================
@pytest.mark.parametrize("rotate", [True, False])
def test_content_block_within_page(rotate: bool) -> None:
	"""
	Ensure the face-pair block lies on-page in both print modes.
	"""
	page = page_module.render_record(_record(), build_default_config(rotate_for_print=rotate))
	x0, y0, x1, y1 = page.content_bounds()
	assert -EPSILON <= x0 < x1 <= PAGE_WIDTH_MM + EPSILON
	assert -EPSILON <= y0 < y1 <= PAGE_HEIGHT_MM + EPSILON
	center_x = (x0 + x1) / 2.0
	center_y = (y0 + y1) / 2.0
	assert center_x == pytest.approx(PAGE_WIDTH_MM / 2.0)
	assert center_y == pytest.approx(PAGE_HEIGHT_MM / 2.0)


#============================================
def test_rotated_block_footprint() -> None:
	page = page_module.render_record(_record(), build_default_config(rotate_for_print=True))
	x0, y0, x1, y1 = page.content_bounds()
	assert x0 == pytest.approx(32.5)
	assert x1 == pytest.approx(PAGE_WIDTH_MM - 32.5)
	assert y1 - y0 == pytest.approx(config_module.NATIVE_CONTENT_WIDTH_MM)


#============================================
def test_unrotated_block_spans_page_width() -> None:
	page = page_module.render_record(_record(), build_default_config(rotate_for_print=False))
	x0, _y0, x1, _y1 = page.content_bounds()
	assert x0 == pytest.approx(0.0)
	assert x1 == pytest.approx(PAGE_WIDTH_MM)


#============================================
def test_nominal_crop_mark_distances() -> None:
	"""
	Default marks sit 32.5 mm from the side edges and reach 13.5 mm from
	the top and bottom edges.
	"""
	page = page_module.render_record(_record(), build_default_config())
	tips_y = []
	for mark in page.crop_marks:
		anchor_x, _anchor_y = page.to_page(mark.x_mm, mark.y_mm)
		side_distance = min(anchor_x, PAGE_WIDTH_MM - anchor_x)
		assert side_distance == pytest.approx(32.5)
		for _start, end in mark.strokes:
			tips_y.append(page.to_page(*end)[1])
	assert min(tips_y) == pytest.approx(13.5)
	assert PAGE_HEIGHT_MM - max(tips_y) == pytest.approx(13.5)


#============================================
@pytest.mark.parametrize("rotate", [True, False])
@pytest.mark.parametrize(
	"offset",
	[(0.0, 0.0), (2.0, 1.5), (10.0, 10.0), (25.0, 25.0), (-3.0, -3.0)],
)
def test_crop_marks_stay_on_page(rotate: bool, offset: tuple[float, float]) -> None:
	"""
	Every crop mark stroke endpoint lies strictly inside the paper.
	"""
	crop_offset = config_module.CropOffset(x=offset[0], y=offset[1])
	config = build_default_config(rotate_for_print=rotate, crop_offset_mm=crop_offset)
	page = page_module.render_record(_record(), config)
	assert len(page.crop_marks) == 4
	clearance = config_module.CROP_MARK_EDGE_CLEARANCE_MM
	for mark in page.crop_marks:
		for start, end in mark.strokes:
			for point in (start, end):
				x_mm, y_mm = page.to_page(*point)
				assert clearance - EPSILON <= x_mm <= PAGE_WIDTH_MM - clearance + EPSILON
				assert clearance - EPSILON <= y_mm <= PAGE_HEIGHT_MM - clearance + EPSILON


#============================================
def test_unrotated_marks_sit_on_block_top_and_bottom_edges() -> None:
	"""
	With the block spanning the page width, the marks along the long edge
	point inward and still trace the horizontal cut lines.
	"""
	config = build_default_config(rotate_for_print=False)
	page = page_module.render_record(_record(), config)
	_x0, y0, _x1, y1 = page.content_bounds()
	for mark in page.crop_marks:
		sign_x, sign_y = page_module.CORNER_DIRECTIONS[mark.corner]
		horizontal, vertical = mark.strokes
		cut_y = y0 if sign_y < 0 else y1
		assert page.to_page(*horizontal[0])[1] == pytest.approx(cut_y)
		assert page.to_page(*horizontal[1])[1] == pytest.approx(cut_y)
		# horizontal strokes run back toward the block center
		assert (horizontal[1][0] - horizontal[0][0]) * sign_x < 0.0
		# vertical strokes still point away from the block
		assert (vertical[1][1] - vertical[0][1]) * sign_y > 0.0


#============================================
def test_crop_offset_moves_corners_outward() -> None:
	"""
	Each corner moves by the same magnitude, away from the block center.
	"""
	offset = config_module.CropOffset(x=2.0, y=1.5)
	config = build_default_config(crop_offset_mm=offset)
	pair = table_card_engine.face.compose(_record(), config)
	marks = {mark.corner: mark for mark in page_module.compute_crop_marks(config, pair.width_mm, pair.height_mm)}
	assert (marks["top_left"].x_mm, marks["top_left"].y_mm) == pytest.approx((-2.0, -1.5))
	assert (marks["top_right"].x_mm, marks["top_right"].y_mm) == pytest.approx((pair.width_mm + 2.0, -1.5))
	assert (marks["bottom_left"].x_mm, marks["bottom_left"].y_mm) == pytest.approx((-2.0, pair.height_mm + 1.5))
	assert (marks["bottom_right"].x_mm, marks["bottom_right"].y_mm) == pytest.approx(
		(pair.width_mm + 2.0, pair.height_mm + 1.5)
	)


#============================================
def test_crop_strokes_point_away_from_block() -> None:
	page = page_module.render_record(_record(), build_default_config())
	for mark in page.crop_marks:
		sign_x, sign_y = page_module.CORNER_DIRECTIONS[mark.corner]
		horizontal, vertical = mark.strokes
		assert (horizontal[1][0] - horizontal[0][0]) * sign_x == pytest.approx(config_module.CROP_MARK_LENGTH_MM)
		assert (vertical[1][1] - vertical[0][1]) * sign_y == pytest.approx(config_module.CROP_MARK_LENGTH_MM)


#============================================
def test_crop_marks_off() -> None:
	page = page_module.render_record(_record(), build_default_config(show_crop_marks=False))
	assert page.crop_marks == ()


#============================================
def test_fold_line_at_block_midline() -> None:
	"""
	The fold guide sits between the faces and ignores crop offsets.
	"""
	offset = config_module.CropOffset(x=5.0, y=5.0)
	page = page_module.render_record(_record(), build_default_config(show_fold_line=True, crop_offset_mm=offset))
	fold = page.fold_line
	assert fold is not None
	assert fold.y_mm == pytest.approx(page.block_height_mm / 2.0)
	assert fold.x0_mm == 0.0
	assert fold.x1_mm == pytest.approx(page.block_width_mm)
	# rotated 90 degrees the fold runs down the page center
	start = page.to_page(fold.x0_mm, fold.y_mm)
	end = page.to_page(fold.x1_mm, fold.y_mm)
	assert start[0] == pytest.approx(PAGE_WIDTH_MM / 2.0)
	assert end[0] == pytest.approx(PAGE_WIDTH_MM / 2.0)


#============================================
def test_fold_line_off_by_default() -> None:
	page = page_module.render_record(_record(), build_default_config())
	assert page.fold_line is None


#============================================
def test_reordering_keeps_page_geometry() -> None:
	"""
	Page order follows record order; each page depends only on its record.
	"""
	config = build_default_config()
	records = [_record("张三", "a"), _record("欧阳娜娜", "b"), _record("李四", "c")]
	forward = page_module.compose_pages(records, config)
	backward = page_module.compose_pages(list(reversed(records)), config)
	assert [page.record_id for page in forward] == ["a", "b", "c"]
	assert [page.record_id for page in backward] == ["c", "b", "a"]
	by_id = {page.record_id: page for page in backward}
	for page in forward:
		assert page == by_id[page.record_id]


#============================================
def test_threaded_composition_keeps_order() -> None:
	config = build_default_config()
	records = [_record("张三", str(index)) for index in range(12)]
	serial = page_module.compose_pages(records, config, workers=1)
	threaded = page_module.compose_pages(records, config, workers=4)
	assert serial == threaded
