"""
Font resolution and text metrics.

A field names a font family. The family is used only when it is in the
caller's font-ready set and registered with ReportLab; otherwise the field
is measured and drawn with a fallback face, and flagged so the caller can
render again once the font has loaded.
"""

# Standard Library
import pathlib
import re

# PIP3 modules
import reportlab.pdfbase.cidfonts
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts


FALLBACK_CJK_FONT = "STSong-Light"
FALLBACK_SERIF_FONT = "Times-Roman"
FALLBACK_SANS_FONT = "Helvetica"

SYSTEM_FAMILY = "inherit"
SERIF_FAMILIES = frozenset({"TableCardEN"})

# fonts ReportLab can embed directly
REGISTERABLE_EXTENSIONS = frozenset({".ttf", ".otf"})

CJK_CHAR_PATTERN = re.compile(r"[\u3000-\u303f\u3400-\u4dbf\u4e00-\u9fff\uff00-\uffef]")


#============================================
def ensure_fallback_fonts() -> None:
	"""
	Register the CJK fallback font with ReportLab if needed.
	"""
	if FALLBACK_CJK_FONT in reportlab.pdfbase.pdfmetrics.getRegisteredFontNames():
		return
	font = reportlab.pdfbase.cidfonts.UnicodeCIDFont(FALLBACK_CJK_FONT)
	reportlab.pdfbase.pdfmetrics.registerFont(font)


#============================================
def is_registered(font_name: str) -> bool:
	"""
	Check whether a font name is known to ReportLab.

	Args:
		font_name: Font name.

	Returns:
		True if registered or a standard font.
	"""
	if font_name in reportlab.pdfbase.pdfmetrics.getRegisteredFontNames():
		return True
	return font_name in reportlab.pdfbase.pdfmetrics.standardFonts


#============================================
def contains_cjk(text: str) -> bool:
	"""
	Check whether text contains CJK characters or punctuation.

	Args:
		text: Input text.

	Returns:
		True if any CJK character is present.
	"""
	return CJK_CHAR_PATTERN.search(text or "") is not None


#============================================
def fallback_font_for(family: str, text: str) -> str:
	"""
	Pick the fallback face for a family.

	Args:
		family: Requested font family.
		text: Text that will be drawn.

	Returns:
		ReportLab font name.
	"""
	if contains_cjk(text):
		ensure_fallback_fonts()
		return FALLBACK_CJK_FONT
	if family in SERIF_FAMILIES:
		return FALLBACK_SERIF_FONT
	return FALLBACK_SANS_FONT


#============================================
def resolve_font(family: str, text: str, ready_fonts: frozenset[str]) -> tuple[str, bool]:
	"""
	Resolve a font family to a drawable font name.

	Args:
		family: Requested font family.
		text: Text that will be drawn.
		ready_fonts: Families whose font files have finished loading.

	Returns:
		Tuple of (font_name, is_provisional). Provisional means the family
		is still pending and a fallback face is standing in for it.
	"""
	if family in ready_fonts and is_registered(family):
		return (family, False)
	font_name = fallback_font_for(family, text)
	return (font_name, family != SYSTEM_FAMILY)


#============================================
def measure_run(text: str, font_name: str, size_pt: float, tracking_em: float) -> float:
	"""
	Measure the advance width of a tracked text run.

	Letter-spacing adds the tracking after every glyph including the last;
	the trailing margin compensation removes that last gap again.

	Args:
		text: Run text.
		font_name: ReportLab font name.
		size_pt: Font size in points.
		tracking_em: Effective tracking in em.

	Returns:
		Width in points.
	"""
	if not text:
		return 0.0
	glyph_width = reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, size_pt)
	char_space = tracking_em * size_pt
	return glyph_width + char_space * len(text) - char_space


#============================================
def ascent_descent(font_name: str, size_pt: float) -> tuple[float, float]:
	"""
	Get scaled ascent and descent for a font.

	Args:
		font_name: ReportLab font name.
		size_pt: Font size in points.

	Returns:
		Tuple of (ascent, descent) in points; descent is negative.
	"""
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(font_name) * size_pt / 1000.0
	descent = reportlab.pdfbase.pdfmetrics.getDescent(font_name) * size_pt / 1000.0
	return (ascent, descent)


#============================================
def wrap_text(
	text: str,
	font_name: str,
	size_pt: float,
	tracking_em: float,
	max_width_pt: float,
) -> list[str]:
	"""
	Greedily wrap text to a maximum width.

	Lines break at whitespace and between CJK characters. Latin words
	wider than the limit stay on their own line.

	Args:
		text: Input text.
		font_name: ReportLab font name.
		size_pt: Font size in points.
		tracking_em: Effective tracking in em.
		max_width_pt: Maximum line width in points.

	Returns:
		List of lines; a single empty line for empty text.
	"""
	units = split_break_units(text)
	if not units:
		return [""]
	lines: list[str] = []
	current = units[0][0]
	for unit, spaced in units[1:]:
		candidate = f"{current} {unit}" if spaced else current + unit
		if measure_run(candidate, font_name, size_pt, tracking_em) <= max_width_pt:
			current = candidate
		else:
			lines.append(current)
			current = unit
	lines.append(current)
	return lines


#============================================
def split_break_units(text: str) -> list[tuple[str, bool]]:
	"""
	Split text into the pieces a line may break between.

	Each CJK character is its own piece; other characters group into
	whitespace-delimited words.

	Args:
		text: Input text.

	Returns:
		List of (piece, preceded_by_space) tuples.
	"""
	units = []
	for word in text.split():
		spaced = True
		pending = ""
		for char in word:
			if contains_cjk(char):
				if pending:
					units.append((pending, spaced))
					spaced = False
					pending = ""
				units.append((char, spaced))
				spaced = False
			else:
				pending += char
		if pending:
			units.append((pending, spaced))
	return units


#============================================
def register_font_file(name: str, path: pathlib.Path) -> bool:
	"""
	Register a font file with ReportLab under a family name.

	Args:
		name: Family name to register.
		path: Font file path.

	Returns:
		True if the font is now drawable, False if ReportLab cannot load it.
	"""
	if path.suffix.lower() not in REGISTERABLE_EXTENSIONS:
		return False
	try:
		font = reportlab.pdfbase.ttfonts.TTFont(name, str(path))
	except reportlab.pdfbase.ttfonts.TTFError as error:
		print(f"Font {name} could not be loaded: {error}")
		return False
	reportlab.pdfbase.pdfmetrics.registerFont(font)
	return True
