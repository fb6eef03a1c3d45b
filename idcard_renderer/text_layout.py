"""
Text measurement, wrapping, and alignment shared by the raster and document renderers.

Line breaks are always computed with the built-in document faces at the
field's configured size, so every renderer draws the same lines.
"""

# Standard Library
import dataclasses

# PIP3 modules
import reportlab.pdfbase.pdfmetrics

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.geometry


TextFieldSpec = icr.geometry.TextFieldSpec

DEFAULT_FONT_REGULAR = icr.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = icr.config.DEFAULT_FONT_BOLD
LINE_HEIGHT_FACTOR = icr.config.LINE_HEIGHT_FACTOR


@dataclasses.dataclass(frozen=True)
class LinePlacement:
	"""
	One drawn line of text in a renderer's own coordinate system.

	field_x/field_y are the field origin; x/y are where this line is drawn
	after alignment and line stacking.
	"""
	field_id: str
	text: str
	field_x: float
	field_y: float
	x: float
	y: float
	font_size: float


@dataclasses.dataclass(frozen=True)
class CardPlacements:
	width: float
	height: float
	photo_box: tuple[float, float, float, float]
	lines: tuple[LinePlacement, ...]


#============================================
def document_font_name(font_weight: str) -> str:
	"""
	Map a field weight to a built-in document face.

	Args:
		font_weight: "normal" or "bold".

	Returns:
		ReportLab font name.
	"""
	if font_weight == "bold":
		return DEFAULT_FONT_BOLD
	return DEFAULT_FONT_REGULAR


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC" or "#ABC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.
	"""
	value = icr.geometry.normalize_color(value)
	red = int(value[1:3], 16) / 255.0
	green = int(value[3:5], 16) / 255.0
	blue = int(value[5:7], 16) / 255.0
	return (red, green, blue)


#============================================
def parse_hex_color_bytes(value: str) -> tuple[int, int, int]:
	"""
	Parse a hex color string into 8-bit RGB components.

	Args:
		value: Color string.

	Returns:
		Tuple of (r, g, b) in 0-255 range.
	"""
	value = icr.geometry.normalize_color(value)
	return (int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))


#============================================
def line_height(font_size: float) -> float:
	return font_size * LINE_HEIGHT_FACTOR


#============================================
def measure_text(text: str, font_weight: str, font_size: float) -> float:
	"""
	Measure a string with the built-in document face.

	Args:
		text: String to measure.
		font_weight: "normal" or "bold".
		font_size: Font size.

	Returns:
		Advance width in the same unit as font_size.
	"""
	font_name = document_font_name(font_weight)
	return reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, font_size)


#============================================
def align_offset(available: float, line_width: float, text_align: str) -> float:
	"""
	Compute the horizontal offset of a line inside its field.

	Args:
		available: Field width.
		line_width: Measured line width.
		text_align: "left", "center", or "right".

	Returns:
		Offset from the field's left edge.
	"""
	if text_align == "right":
		return max(0.0, available - line_width)
	if text_align == "center":
		return max(0.0, (available - line_width) / 2.0)
	return 0.0


#============================================
def _split_long_word(word: str, max_width: float, font_weight: str, font_size: float) -> list[str]:
	pieces: list[str] = []
	current = ""
	for char in word:
		candidate = current + char
		if current and measure_text(candidate, font_weight, font_size) > max_width:
			pieces.append(current)
			current = char
		else:
			current = candidate
	if current:
		pieces.append(current)
	return pieces


#============================================
def wrap_text(text: str, field: TextFieldSpec) -> list[str]:
	"""
	Break a value into the lines a field renders.

	Args:
		text: Field value.
		field: Field whose width, weight, and size drive wrapping.

	Returns:
		List of lines; empty when the value is blank.
	"""
	if not text or not text.strip():
		return []
	paragraphs = text.splitlines()
	if field.width is None:
		return [paragraph.strip() for paragraph in paragraphs if paragraph.strip()]

	lines: list[str] = []
	for paragraph in paragraphs:
		words = paragraph.split()
		if not words:
			continue
		current = ""
		for word in words:
			if measure_text(word, field.font_weight, field.font_size) > field.width:
				if current:
					lines.append(current)
					current = ""
				pieces = _split_long_word(word, field.width, field.font_weight, field.font_size)
				lines.extend(pieces[:-1])
				current = pieces[-1]
				continue
			candidate = word if not current else f"{current} {word}"
			if current and measure_text(candidate, field.font_weight, field.font_size) > field.width:
				lines.append(current)
				current = word
			else:
				current = candidate
		if current:
			lines.append(current)
	return lines
