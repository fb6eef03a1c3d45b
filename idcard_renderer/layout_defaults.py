"""
Default photo and text placements for a freshly uploaded template.
"""

# Standard Library
import dataclasses

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.errors
import idcard_renderer.geometry
import idcard_renderer.imaging


ConfigurationError = icr.errors.ConfigurationError
PhotoPlacement = icr.geometry.PhotoPlacement
TextFieldSpec = icr.geometry.TextFieldSpec
TemplateConfig = icr.geometry.TemplateConfig
TemplateDimensions = icr.geometry.TemplateDimensions

DEFAULT_PHOTO_BOX = icr.config.DEFAULT_PHOTO_BOX
DEFAULT_TEXT_X = icr.config.DEFAULT_TEXT_X
DEFAULT_TEXT_FIELDS = icr.config.DEFAULT_TEXT_FIELDS
DEFAULT_ADDRESS_WIDTH = icr.config.DEFAULT_ADDRESS_WIDTH
DEFAULT_ADDRESS_LINES = icr.config.DEFAULT_ADDRESS_LINES
DEFAULT_FONT_FAMILY = icr.config.DEFAULT_FONT_FAMILY
DEFAULT_TEXT_COLOR = icr.config.DEFAULT_TEXT_COLOR
TEMPLATE_PRESETS = icr.config.TEMPLATE_PRESETS


@dataclasses.dataclass(frozen=True)
class DefaultLayout:
	photo_placement: PhotoPlacement
	text_fields: tuple[TextFieldSpec, ...]


#============================================
def generate_defaults(template_width: float, template_height: float) -> DefaultLayout:
	"""
	Propose a starting layout scaled to the template size.

	Args:
		template_width: Decoded template width in pixels.
		template_height: Decoded template height in pixels.

	Returns:
		DefaultLayout with whole-pixel positions.
	"""
	if not template_width > 0 or not template_height > 0:
		raise ConfigurationError(
			f"Template dimensions must be positive, got {template_width}x{template_height}"
		)
	photo_x, photo_y, photo_w, photo_h = DEFAULT_PHOTO_BOX
	photo = PhotoPlacement(
		x=round(photo_x * template_width),
		y=round(photo_y * template_height),
		width=max(1, round(photo_w * template_width)),
		height=max(1, round(photo_h * template_height)),
	)

	text_x = round(DEFAULT_TEXT_X * template_width)
	fields: list[TextFieldSpec] = []
	for field_id, label, y_fraction, weight, min_size, size_fraction in DEFAULT_TEXT_FIELDS:
		width = None
		lines = 1
		if field_id == "address":
			width = round(DEFAULT_ADDRESS_WIDTH * template_width)
			lines = DEFAULT_ADDRESS_LINES
		fields.append(
			TextFieldSpec(
				id=field_id,
				name=label,
				x=text_x,
				y=round(y_fraction * template_height),
				font_size=round(max(min_size, size_fraction * template_width)),
				font_weight=weight,
				color=DEFAULT_TEXT_COLOR,
				font_family=DEFAULT_FONT_FAMILY,
				text_align="left",
				width=width,
				lines=lines,
			)
		)
	return DefaultLayout(photo_placement=photo, text_fields=tuple(fields))


#============================================
def build_default_config(
	template_image_path: str,
	template_width: float,
	template_height: float,
) -> TemplateConfig:
	"""
	Wrap the default layout into a complete template config.

	Args:
		template_image_path: Storage path of the uploaded template.
		template_width: Template width in pixels.
		template_height: Template height in pixels.

	Returns:
		Validated TemplateConfig.
	"""
	defaults = generate_defaults(template_width, template_height)
	config = TemplateConfig(
		template_image_path=template_image_path,
		template_dimensions=TemplateDimensions(width=template_width, height=template_height),
		photo_placement=defaults.photo_placement,
		text_fields=defaults.text_fields,
	)
	icr.geometry.validate_template_config(config)
	return config


#============================================
def config_for_upload(template_image_path: str, image_bytes: bytes) -> TemplateConfig:
	"""
	Build a default config from the real size of an uploaded template.

	Args:
		template_image_path: Storage path of the uploaded template.
		image_bytes: Encoded template image.

	Returns:
		Validated TemplateConfig.
	"""
	width, height = icr.imaging.read_image_dimensions(image_bytes)
	return build_default_config(template_image_path, width, height)


#============================================
def config_for_preset(template_image_path: str, preset: str) -> TemplateConfig:
	"""
	Build a default config for one of the named card sizes.

	Args:
		template_image_path: Storage path of the template.
		preset: Key of TEMPLATE_PRESETS, e.g. "STANDARD_ID".

	Returns:
		Validated TemplateConfig.
	"""
	key = preset.strip().upper()
	if key not in TEMPLATE_PRESETS:
		raise ConfigurationError(f"Unknown template preset: {preset!r}")
	width, height, _label = TEMPLATE_PRESETS[key]
	return build_default_config(template_image_path, width, height)
