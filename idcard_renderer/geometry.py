"""
Template geometry model, validation, and JSON record conversion.
"""

# Standard Library
import collections.abc
import dataclasses
import json
import pathlib
import re

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.errors


ConfigurationError = icr.errors.ConfigurationError

SCHEMA_VERSION = icr.config.SCHEMA_VERSION
LEGACY_TEMPLATE_WIDTH = icr.config.LEGACY_TEMPLATE_WIDTH
LEGACY_TEMPLATE_HEIGHT = icr.config.LEGACY_TEMPLATE_HEIGHT
DEFAULT_FONT_FAMILY = icr.config.DEFAULT_FONT_FAMILY
DEFAULT_TEXT_COLOR = icr.config.DEFAULT_TEXT_COLOR
DEFAULT_TEXT_ALIGN = icr.config.DEFAULT_TEXT_ALIGN
DEFAULT_FONT_WEIGHT = icr.config.DEFAULT_FONT_WEIGHT
FONT_WEIGHTS = icr.config.FONT_WEIGHTS
TEXT_ALIGNS = icr.config.TEXT_ALIGNS

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclasses.dataclass(frozen=True)
class TemplateDimensions:
	width: float
	height: float


@dataclasses.dataclass(frozen=True)
class PhotoPlacement:
	x: float
	y: float
	width: float
	height: float


@dataclasses.dataclass(frozen=True)
class TextFieldSpec:
	id: str
	name: str
	x: float
	y: float
	font_size: float
	font_weight: str = DEFAULT_FONT_WEIGHT
	color: str = DEFAULT_TEXT_COLOR
	font_family: str = DEFAULT_FONT_FAMILY
	text_align: str = DEFAULT_TEXT_ALIGN
	width: float | None = None
	lines: int = 1


@dataclasses.dataclass(frozen=True)
class TemplateConfig:
	template_image_path: str
	template_dimensions: TemplateDimensions
	photo_placement: PhotoPlacement
	text_fields: tuple[TextFieldSpec, ...]


@dataclasses.dataclass(frozen=True)
class RenderInput:
	values: dict[str, str] = dataclasses.field(default_factory=dict)
	photo: bytes | None = None

	def value_for(self, field_id: str) -> str:
		return self.values.get(field_id, "")


#============================================
def normalize_color(value: str) -> str:
	"""
	Normalize a hex color string to #RRGGBB.

	Args:
		value: Color string like "#abc" or "#AABBCC".

	Returns:
		Upper-case #RRGGBB string.
	"""
	if not isinstance(value, str) or not HEX_COLOR_PATTERN.match(value.strip()):
		raise ConfigurationError(f"Invalid hex color: {value!r}")
	value = value.strip()
	if len(value) == 4:
		value = "#" + "".join(char * 2 for char in value[1:])
	return value.upper()


#============================================
def validate_template_config(config: TemplateConfig) -> None:
	"""
	Check structural invariants of a template configuration.

	Args:
		config: TemplateConfig to check.

	Raises:
		ConfigurationError: When the configuration cannot be rendered.
	"""
	dims = config.template_dimensions
	if not dims.width > 0 or not dims.height > 0:
		raise ConfigurationError(
			f"Template dimensions must be positive, got {dims.width}x{dims.height}"
		)

	photo = config.photo_placement
	if photo.x < 0 or photo.y < 0:
		raise ConfigurationError(f"Photo origin must be non-negative, got ({photo.x}, {photo.y})")
	if photo.width < 1 or photo.height < 1:
		raise ConfigurationError(
			f"Photo placement must be at least 1x1, got {photo.width}x{photo.height}"
		)

	if not config.text_fields:
		raise ConfigurationError("Template needs at least one text field")

	seen: set[str] = set()
	for field in config.text_fields:
		if not field.id or not field.id.strip():
			raise ConfigurationError(f"Text field {field.name!r} has no data key")
		if field.id in seen:
			raise ConfigurationError(f"Duplicate text field id: {field.id!r}")
		seen.add(field.id)
		if field.x < 0 or field.y < 0:
			raise ConfigurationError(f"Field {field.id!r} origin must be non-negative")
		if not field.font_size > 0:
			raise ConfigurationError(f"Field {field.id!r} font size must be positive")
		if field.font_weight not in FONT_WEIGHTS:
			raise ConfigurationError(f"Field {field.id!r} has unknown font weight {field.font_weight!r}")
		if field.text_align not in TEXT_ALIGNS:
			raise ConfigurationError(f"Field {field.id!r} has unknown alignment {field.text_align!r}")
		if field.width is not None and not field.width > 0:
			raise ConfigurationError(f"Field {field.id!r} wrap width must be positive")
		if field.lines < 1:
			raise ConfigurationError(f"Field {field.id!r} must span at least one line")
		normalize_color(field.color)


#============================================
def find_layout_issues(config: TemplateConfig) -> list[str]:
	"""
	List placements that fall outside the template bounds.

	Args:
		config: TemplateConfig to inspect.

	Returns:
		Human-readable issue strings, empty when the layout fits.
	"""
	issues: list[str] = []
	width = config.template_dimensions.width
	height = config.template_dimensions.height
	photo = config.photo_placement
	if photo.x + photo.width > width or photo.y + photo.height > height:
		issues.append(
			f"Photo box ({photo.x}, {photo.y}, {photo.width}x{photo.height}) "
			f"extends past the {width}x{height} template"
		)
	for field in config.text_fields:
		if field.x >= width or field.y >= height:
			issues.append(f"Field {field.id!r} starts outside the template at ({field.x}, {field.y})")
		elif field.width is not None and field.x + field.width > width:
			issues.append(f"Field {field.id!r} wrap width runs past the right edge")
	return issues


#============================================
def is_config_complete(config: TemplateConfig) -> bool:
	"""
	Check whether a config is usable for rendering.

	Args:
		config: TemplateConfig to check.

	Returns:
		True if the config is valid and references a template image.
	"""
	try:
		validate_template_config(config)
	except ConfigurationError:
		return False
	return bool(config.template_image_path and config.template_image_path.strip())


#============================================
def migrate_record(record: collections.abc.Mapping) -> dict:
	"""
	Upgrade a stored template record to the current schema version.

	Args:
		record: Raw record as read from storage.

	Returns:
		New dictionary in the current schema.
	"""
	migrated = dict(record)
	version = migrated.get("schemaVersion", 1)
	if isinstance(version, bool) or not isinstance(version, int) or not 1 <= version <= SCHEMA_VERSION:
		raise ConfigurationError(f"Unsupported template schema version: {version!r}")
	if version == 1:
		if not migrated.get("templateDimensions"):
			migrated["templateDimensions"] = {
				"width": LEGACY_TEMPLATE_WIDTH,
				"height": LEGACY_TEMPLATE_HEIGHT,
			}
		fields = []
		for field in migrated.get("textFields") or []:
			field = dict(field)
			field.setdefault("color", DEFAULT_TEXT_COLOR)
			field.setdefault("fontFamily", DEFAULT_FONT_FAMILY)
			field.setdefault("textAlign", DEFAULT_TEXT_ALIGN)
			field.setdefault("fontWeight", DEFAULT_FONT_WEIGHT)
			fields.append(field)
		migrated["textFields"] = fields
	migrated["schemaVersion"] = SCHEMA_VERSION
	return migrated


#============================================
def _require(record: collections.abc.Mapping, key: str, where: str):
	if key not in record or record[key] is None:
		raise ConfigurationError(f"Missing {key!r} in {where}")
	return record[key]


#============================================
def _number(value, key: str) -> float:
	if isinstance(value, bool):
		raise ConfigurationError(f"{key!r} must be a number, got {value!r}")
	try:
		return float(value)
	except (TypeError, ValueError) as error:
		raise ConfigurationError(f"{key!r} must be a number, got {value!r}") from error


#============================================
def text_field_from_dict(record: collections.abc.Mapping) -> TextFieldSpec:
	"""
	Build a TextFieldSpec from its JSON record.

	Args:
		record: Text field mapping with camelCase keys.

	Returns:
		TextFieldSpec.
	"""
	field_id = str(_require(record, "id", "text field"))
	where = f"text field {field_id!r}"
	width = record.get("width")
	lines = record.get("lines")
	return TextFieldSpec(
		id=field_id,
		name=str(record.get("name") or field_id),
		x=_number(_require(record, "x", where), "x"),
		y=_number(_require(record, "y", where), "y"),
		font_size=_number(_require(record, "fontSize", where), "fontSize"),
		font_weight=str(record.get("fontWeight") or DEFAULT_FONT_WEIGHT),
		color=normalize_color(record.get("color") or DEFAULT_TEXT_COLOR),
		font_family=str(record.get("fontFamily") or DEFAULT_FONT_FAMILY),
		text_align=str(record.get("textAlign") or DEFAULT_TEXT_ALIGN),
		width=None if width in (None, "") else _number(width, "width"),
		lines=1 if lines in (None, "") else int(_number(lines, "lines")),
	)


#============================================
def template_config_from_dict(record: collections.abc.Mapping) -> TemplateConfig:
	"""
	Build and validate a TemplateConfig from a stored record.

	Args:
		record: Record in any supported schema version.

	Returns:
		Validated TemplateConfig.
	"""
	if not isinstance(record, collections.abc.Mapping):
		raise ConfigurationError("Template record must be a mapping")
	record = migrate_record(record)
	dims = _require(record, "templateDimensions", "template")
	photo = _require(record, "photoPlacement", "template")
	config = TemplateConfig(
		template_image_path=str(record.get("templateImagePath") or ""),
		template_dimensions=TemplateDimensions(
			width=_number(_require(dims, "width", "templateDimensions"), "width"),
			height=_number(_require(dims, "height", "templateDimensions"), "height"),
		),
		photo_placement=PhotoPlacement(
			x=_number(_require(photo, "x", "photoPlacement"), "x"),
			y=_number(_require(photo, "y", "photoPlacement"), "y"),
			width=_number(_require(photo, "width", "photoPlacement"), "width"),
			height=_number(_require(photo, "height", "photoPlacement"), "height"),
		),
		text_fields=tuple(text_field_from_dict(field) for field in record.get("textFields") or []),
	)
	validate_template_config(config)
	return config


#============================================
def template_config_to_dict(config: TemplateConfig) -> dict:
	"""
	Convert a TemplateConfig into its JSON record.

	Args:
		config: TemplateConfig to convert.

	Returns:
		JSON-serializable dictionary.
	"""
	fields = []
	for field in config.text_fields:
		entry = {
			"id": field.id,
			"name": field.name,
			"x": field.x,
			"y": field.y,
			"fontSize": field.font_size,
			"fontWeight": field.font_weight,
			"color": field.color,
			"fontFamily": field.font_family,
			"textAlign": field.text_align,
		}
		if field.width is not None:
			entry["width"] = field.width
		if field.lines != 1:
			entry["lines"] = field.lines
		fields.append(entry)
	return {
		"schemaVersion": SCHEMA_VERSION,
		"templateImagePath": config.template_image_path,
		"templateDimensions": dataclasses.asdict(config.template_dimensions),
		"photoPlacement": dataclasses.asdict(config.photo_placement),
		"textFields": fields,
	}


#============================================
def load_template_config(path: pathlib.Path) -> TemplateConfig:
	"""
	Read a template config JSON file.

	Args:
		path: JSON file path.

	Returns:
		Validated TemplateConfig.
	"""
	with pathlib.Path(path).open("r", encoding="utf-8") as handle:
		try:
			record = json.load(handle)
		except json.JSONDecodeError as error:
			raise ConfigurationError(f"Template config {path} is not valid JSON: {error}") from error
	return template_config_from_dict(record)


#============================================
def save_template_config(config: TemplateConfig, path: pathlib.Path) -> None:
	"""
	Write a template config JSON file.

	Args:
		config: TemplateConfig to write.
		path: Output path.
	"""
	with pathlib.Path(path).open("w", encoding="utf-8") as handle:
		json.dump(template_config_to_dict(config), handle, indent=2, sort_keys=True)


#============================================
def coerce_render_input(data=None, photo: bytes | None = None) -> RenderInput:
	"""
	Turn per-student data into a RenderInput.

	Args:
		data: RenderInput, mapping of field id to value, or None.
		photo: Optional photo bytes, overriding any photo already in data.

	Returns:
		RenderInput with string values.
	"""
	if isinstance(data, RenderInput):
		if photo is None:
			return data
		return dataclasses.replace(data, photo=photo)
	values: dict[str, str] = {}
	for key, value in (data or {}).items():
		if value is None:
			continue
		if isinstance(value, (bytes, bytearray)):
			# form payloads carry the photo alongside the text values
			if key == "photo" and photo is None:
				photo = bytes(value)
			continue
		values[str(key)] = str(value).strip()
	return RenderInput(values=values, photo=photo)
