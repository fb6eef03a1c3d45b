"""
Position resolver: template pixel geometry to percentage and target coordinates.

Percentages are computed the same way for every target. Only the absolute
coordinates differ: "preview" keeps the top-left pixel origin of the template,
"document" flips to a bottom-left origin where text is anchored at its
baseline. The flip lives in flip_to_bottom_left() and nowhere else.
"""

# Standard Library
import dataclasses

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.errors
import idcard_renderer.geometry


ConfigurationError = icr.errors.ConfigurationError
TemplateConfig = icr.geometry.TemplateConfig

LINE_HEIGHT_FACTOR = icr.config.LINE_HEIGHT_FACTOR
PERCENT = icr.config.PERCENT
RENDER_TARGETS = icr.config.RENDER_TARGETS


@dataclasses.dataclass(frozen=True)
class ResolvedPhotoPosition:
	left_percent: float
	top_percent: float
	width_percent: float
	height_percent: float
	absolute_x: float
	absolute_y: float
	absolute_width: float
	absolute_height: float


@dataclasses.dataclass(frozen=True)
class ResolvedTextPosition:
	id: str
	left_percent: float
	top_percent: float
	width_percent: float | None
	height_percent: float
	font_size: float
	font_weight: str
	absolute_x: float
	absolute_y: float
	absolute_width: float | None
	absolute_height: float


@dataclasses.dataclass(frozen=True)
class ResolvedLayout:
	target: str
	template_width: float
	template_height: float
	photo: ResolvedPhotoPosition
	text: tuple[ResolvedTextPosition, ...]

	def text_by_id(self, field_id: str) -> ResolvedTextPosition:
		for position in self.text:
			if position.id == field_id:
				return position
		raise KeyError(field_id)


#============================================
def to_percent(value: float, extent: float) -> float:
	"""
	Convert a pixel value to a percentage of an extent.

	Args:
		value: Pixel value.
		extent: Full template extent in the same axis.

	Returns:
		Percentage value.
	"""
	return value / extent * PERCENT


#============================================
def percent_to_pixels(percent: float, extent: float) -> float:
	"""
	Convert a percentage back onto a concrete surface extent.

	Args:
		percent: Percentage value.
		extent: Surface extent in pixels.

	Returns:
		Pixel value.
	"""
	return percent / PERCENT * extent


#============================================
def flip_to_bottom_left(y: float, element_height: float, template_height: float) -> float:
	"""
	Convert a top-left-origin y into a bottom-left-origin y.

	Args:
		y: Top edge of the element measured from the template top.
		element_height: Photo height, or font size for a text baseline.
		template_height: Template height.

	Returns:
		Bottom edge (or baseline) measured from the template bottom.
	"""
	return template_height - y - element_height


#============================================
def text_box_height(font_size: float, lines: int) -> float:
	"""
	Height of a text field's editing box.

	Args:
		font_size: Font size in template pixels.
		lines: Expected line count.

	Returns:
		Box height in template pixels.
	"""
	return font_size * LINE_HEIGHT_FACTOR * lines


#============================================
def check_dimensions(width: float, height: float) -> None:
	"""
	Fail fast on dimensions that would produce infinite percentages.

	Args:
		width: Template width.
		height: Template height.
	"""
	if not width > 0 or not height > 0:
		raise ConfigurationError(f"Template dimensions must be positive, got {width}x{height}")


#============================================
def resolve(config: TemplateConfig, target: str) -> ResolvedLayout:
	"""
	Resolve photo and text positions for a render target.

	Args:
		config: Template configuration.
		target: "preview" (top-left origin) or "document" (bottom-left origin).

	Returns:
		ResolvedLayout with percentage and absolute coordinates.
	"""
	if target not in RENDER_TARGETS:
		raise ConfigurationError(f"Unknown render target: {target!r}")
	width = config.template_dimensions.width
	height = config.template_dimensions.height
	check_dimensions(width, height)

	document = target == "document"
	photo = config.photo_placement
	photo_y = photo.y
	if document:
		photo_y = flip_to_bottom_left(photo.y, photo.height, height)
	resolved_photo = ResolvedPhotoPosition(
		left_percent=to_percent(photo.x, width),
		top_percent=to_percent(photo.y, height),
		width_percent=to_percent(photo.width, width),
		height_percent=to_percent(photo.height, height),
		absolute_x=photo.x,
		absolute_y=photo_y,
		absolute_width=photo.width,
		absolute_height=photo.height,
	)

	positions: list[ResolvedTextPosition] = []
	for field in config.text_fields:
		box_height = text_box_height(field.font_size, field.lines)
		text_y = field.y
		if document:
			text_y = flip_to_bottom_left(field.y, field.font_size, height)
		width_percent = None
		if field.width is not None:
			width_percent = to_percent(field.width, width)
		positions.append(
			ResolvedTextPosition(
				id=field.id,
				left_percent=to_percent(field.x, width),
				top_percent=to_percent(field.y, height),
				width_percent=width_percent,
				height_percent=to_percent(box_height, height),
				font_size=field.font_size,
				font_weight=field.font_weight,
				absolute_x=field.x,
				absolute_y=text_y,
				absolute_width=field.width,
				absolute_height=box_height,
			)
		)

	return ResolvedLayout(
		target=target,
		template_width=width,
		template_height=height,
		photo=resolved_photo,
		text=tuple(positions),
	)
