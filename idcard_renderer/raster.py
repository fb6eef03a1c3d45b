"""
Raster renderer: template, photo, and text composed onto a JPEG.
"""

# Standard Library
import io
import logging

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.errors
import idcard_renderer.geometry
import idcard_renderer.imaging
import idcard_renderer.resolver
import idcard_renderer.text_layout


EncodeError = icr.errors.EncodeError
TemplateConfig = icr.geometry.TemplateConfig
RenderInput = icr.geometry.RenderInput
LinePlacement = icr.text_layout.LinePlacement
CardPlacements = icr.text_layout.CardPlacements

JPEG_QUALITY = icr.config.JPEG_QUALITY
FONT_FILES = icr.config.FONT_FILES
FALLBACK_FONT_FILES = icr.config.FALLBACK_FONT_FILES

logger = logging.getLogger(__name__)


#============================================
def load_font(font_family: str, font_weight: str, size: float) -> PIL.ImageFont.FreeTypeFont:
	"""
	Resolve a CSS-style font stack to a Pillow font.

	Args:
		font_family: Comma separated family stack, e.g. "Arial, sans-serif".
		font_weight: "normal" or "bold".
		size: Font size in surface pixels.

	Returns:
		First installed TrueType face from the stack, else Pillow's
		bundled default face at the same size.
	"""
	index = 1 if font_weight == "bold" else 0
	candidates: list[str] = []
	for family in (font_family or "").split(","):
		token = family.strip().strip("'\"").lower()
		files = FONT_FILES.get(token)
		if files is not None:
			candidates.append(files[index])
	candidates.append(FALLBACK_FONT_FILES[index])
	for filename in candidates:
		try:
			return PIL.ImageFont.truetype(filename, size)
		except OSError:
			continue
	logger.debug("No TrueType face for %r, using bundled default", font_family)
	return PIL.ImageFont.load_default(size)


#============================================
def compute_raster_placements(
	config: TemplateConfig,
	data: RenderInput,
	surface_size: tuple[int, int],
) -> CardPlacements:
	"""
	Compute where the raster renderer draws the photo and each text line.

	Args:
		config: Template configuration.
		data: Per-student values.
		surface_size: Drawing surface (width, height) in pixels.

	Returns:
		CardPlacements in top-left-origin surface pixels.
	"""
	layout = icr.resolver.resolve(config, "preview")
	surface_width, surface_height = surface_size
	scale = surface_width / layout.template_width
	to_pixels = icr.resolver.percent_to_pixels

	photo = layout.photo
	photo_box = (
		to_pixels(photo.left_percent, surface_width),
		to_pixels(photo.top_percent, surface_height),
		to_pixels(photo.width_percent, surface_width),
		to_pixels(photo.height_percent, surface_height),
	)

	lines: list[LinePlacement] = []
	for field, position in zip(config.text_fields, layout.text):
		wrapped = icr.text_layout.wrap_text(data.value_for(field.id), field)
		if not wrapped:
			continue
		font_size = position.font_size * scale
		font = load_font(field.font_family, field.font_weight, font_size)
		field_x = to_pixels(position.left_percent, surface_width)
		field_y = to_pixels(position.top_percent, surface_height)
		leading = icr.text_layout.line_height(font_size)
		for index, line in enumerate(wrapped):
			offset = 0.0
			if position.width_percent is not None:
				available = to_pixels(position.width_percent, surface_width)
				offset = icr.text_layout.align_offset(available, font.getlength(line), field.text_align)
			lines.append(
				LinePlacement(
					field_id=field.id,
					text=line,
					field_x=field_x,
					field_y=field_y,
					x=field_x + offset,
					y=field_y + index * leading,
					font_size=font_size,
				)
			)
	return CardPlacements(
		width=surface_width,
		height=surface_height,
		photo_box=photo_box,
		lines=tuple(lines),
	)


#============================================
def compose_card(
	config: TemplateConfig,
	data,
	template_bytes: bytes,
	photo_bytes: bytes | None = None,
) -> PIL.Image.Image:
	"""
	Compose a card image at the template's native resolution.

	Args:
		config: Template configuration.
		data: RenderInput or mapping of field id to value.
		template_bytes: Encoded template image.
		photo_bytes: Optional encoded student photo.

	Returns:
		RGB Pillow image sized to the decoded template.
	"""
	data = icr.geometry.coerce_render_input(data, photo_bytes)
	icr.geometry.validate_template_config(config)
	template = icr.imaging.decode_image(template_bytes, "template")
	icr.imaging.check_template_size(config, template)

	surface = PIL.Image.new("RGB", template.size, (255, 255, 255))
	surface.paste(template, (0, 0))
	placements = compute_raster_placements(config, data, surface.size)

	photo = icr.imaging.decode_photo(data.photo)
	if photo is not None:
		x, y, width, height = placements.photo_box
		size = (max(1, round(width)), max(1, round(height)))
		surface.paste(photo.resize(size, PIL.Image.Resampling.LANCZOS), (round(x), round(y)))

	draw = PIL.ImageDraw.Draw(surface)
	fields = {field.id: field for field in config.text_fields}
	for line in placements.lines:
		field = fields[line.field_id]
		font = load_font(field.font_family, field.font_weight, line.font_size)
		color = icr.text_layout.parse_hex_color_bytes(field.color)
		draw.text((line.x, line.y), line.text, font=font, fill=color, anchor="la")
	return surface


#============================================
def encode_jpeg(image: PIL.Image.Image, quality: int = JPEG_QUALITY) -> bytes:
	"""
	Encode an image as JPEG bytes.

	Args:
		image: Image to encode.
		quality: JPEG quality.

	Returns:
		JPEG bytes.
	"""
	buffer = io.BytesIO()
	try:
		image.save(buffer, format="JPEG", quality=quality)
	except (OSError, ValueError) as error:
		raise EncodeError(f"JPEG encoding failed: {error}") from error
	return buffer.getvalue()


#============================================
def render_card_jpeg(
	config: TemplateConfig,
	data,
	template_bytes: bytes,
	photo_bytes: bytes | None = None,
) -> bytes:
	"""
	Render one card to JPEG bytes.

	Args:
		config: Template configuration.
		data: RenderInput or mapping of field id to value.
		template_bytes: Encoded template image.
		photo_bytes: Optional encoded student photo.

	Returns:
		JPEG bytes at the decoded template's resolution.
	"""
	surface = compose_card(config, data, template_bytes, photo_bytes)
	return encode_jpeg(surface)
