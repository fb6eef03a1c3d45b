"""
Preview renderer: percentage-positioned overlay boxes for on-screen editing.

Boxes are expressed as percentages of the template so they track the image
at any displayed size; only font sizes depend on the displayed width.
"""

# Standard Library
import dataclasses
import logging
import typing

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.errors
import idcard_renderer.geometry
import idcard_renderer.resolver


ConfigurationError = icr.errors.ConfigurationError
TemplateConfig = icr.geometry.TemplateConfig

PHOTO_PLACEHOLDER_LABEL = icr.config.PHOTO_PLACEHOLDER_LABEL

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PhotoOverlay:
	left_percent: float
	top_percent: float
	width_percent: float
	height_percent: float
	has_photo: bool
	label: str


@dataclasses.dataclass(frozen=True)
class TextOverlay:
	id: str
	text: str
	is_placeholder: bool
	left_percent: float
	top_percent: float
	width_percent: float | None
	height_percent: float
	font_size: float
	font_weight: str
	font_family: str
	color: str
	text_align: str
	wrap: bool


@dataclasses.dataclass(frozen=True)
class PreviewFrame:
	scale: float
	rendered_width: float | None
	photo: PhotoOverlay
	text: tuple[TextOverlay, ...]


#============================================
def render_preview(
	config: TemplateConfig,
	data=None,
	rendered_width: float | None = None,
) -> PreviewFrame:
	"""
	Build overlay boxes for the template as displayed on screen.

	Args:
		config: Template configuration.
		data: Optional RenderInput or mapping of live form values.
		rendered_width: Displayed width of the template image in pixels.

	Returns:
		PreviewFrame with percentage boxes and scaled font sizes.
	"""
	layout = icr.resolver.resolve(config, "preview")
	data = icr.geometry.coerce_render_input(data)
	scale = 1.0
	if rendered_width is not None:
		if not rendered_width > 0:
			raise ConfigurationError(f"Rendered width must be positive, got {rendered_width}")
		scale = rendered_width / layout.template_width

	has_photo = bool(data.photo)
	photo = PhotoOverlay(
		left_percent=layout.photo.left_percent,
		top_percent=layout.photo.top_percent,
		width_percent=layout.photo.width_percent,
		height_percent=layout.photo.height_percent,
		has_photo=has_photo,
		label="" if has_photo else PHOTO_PLACEHOLDER_LABEL,
	)

	overlays: list[TextOverlay] = []
	for field, position in zip(config.text_fields, layout.text):
		value = data.value_for(field.id)
		is_placeholder = not value
		overlays.append(
			TextOverlay(
				id=field.id,
				text=field.name if is_placeholder else value,
				is_placeholder=is_placeholder,
				left_percent=position.left_percent,
				top_percent=position.top_percent,
				width_percent=position.width_percent,
				height_percent=position.height_percent,
				font_size=position.font_size * scale,
				font_weight=field.font_weight,
				font_family=field.font_family,
				color=field.color,
				text_align=field.text_align,
				wrap=field.width is not None,
			)
		)
	return PreviewFrame(
		scale=scale,
		rendered_width=rendered_width,
		photo=photo,
		text=tuple(overlays),
	)


#============================================
def _css_percent(value: float) -> str:
	return f"{value:.4f}%"


#============================================
def frame_to_dict(frame: PreviewFrame) -> dict:
	"""
	Convert a preview frame into absolutely-positioned CSS style boxes.

	Args:
		frame: PreviewFrame to convert.

	Returns:
		JSON-serializable dictionary for UI overlay code.
	"""
	photo = frame.photo
	text_boxes = []
	for overlay in frame.text:
		style = {
			"left": _css_percent(overlay.left_percent),
			"top": _css_percent(overlay.top_percent),
			"fontSize": f"{overlay.font_size:.2f}px",
			"fontWeight": overlay.font_weight,
			"fontFamily": overlay.font_family,
			"color": overlay.color,
			"textAlign": overlay.text_align,
			"whiteSpace": "normal" if overlay.wrap else "nowrap",
		}
		if overlay.width_percent is not None:
			style["width"] = _css_percent(overlay.width_percent)
			style["minHeight"] = _css_percent(overlay.height_percent)
		text_boxes.append(
			{
				"id": overlay.id,
				"text": overlay.text,
				"placeholder": overlay.is_placeholder,
				"style": style,
			}
		)
	return {
		"scale": frame.scale,
		"renderedWidth": frame.rendered_width,
		"photo": {
			"hasPhoto": photo.has_photo,
			"label": photo.label,
			"style": {
				"left": _css_percent(photo.left_percent),
				"top": _css_percent(photo.top_percent),
				"width": _css_percent(photo.width_percent),
				"height": _css_percent(photo.height_percent),
			},
		},
		"textFields": text_boxes,
	}


class PreviewOverlay:
	"""
	Live preview that recomputes its frame when the displayed size or data changes.
	"""

	def __init__(self, config: TemplateConfig, data=None, rendered_width: float | None = None):
		self._config = config
		self._data = icr.geometry.coerce_render_input(data)
		self._rendered_width = rendered_width
		self._subscribers: list[typing.Callable[[PreviewFrame], None]] = []
		self._frame = render_preview(config, self._data, rendered_width)

	@property
	def frame(self) -> PreviewFrame:
		return self._frame

	def subscribe(self, callback: typing.Callable[[PreviewFrame], None]) -> typing.Callable[[], None]:
		"""
		Register a callback for new frames.

		Args:
			callback: Called with each recomputed PreviewFrame.

		Returns:
			Function that removes the subscription.
		"""
		self._subscribers.append(callback)

		def unsubscribe() -> None:
			if callback in self._subscribers:
				self._subscribers.remove(callback)

		return unsubscribe

	def set_rendered_width(self, rendered_width: float) -> bool:
		"""
		Update the displayed width of the template image.

		Args:
			rendered_width: New displayed width in pixels.

		Returns:
			True if a new frame was computed.
		"""
		if rendered_width == self._rendered_width:
			return False
		frame = render_preview(self._config, self._data, rendered_width)
		self._rendered_width = rendered_width
		logger.debug("Preview rescaled to %.1fpx (scale %.4f)", rendered_width, frame.scale)
		self._publish(frame)
		return True

	def set_data(self, data) -> None:
		"""
		Replace the live form values and recompute the frame.

		Args:
			data: RenderInput or mapping of field id to value.
		"""
		self._data = icr.geometry.coerce_render_input(data)
		self._publish(render_preview(self._config, self._data, self._rendered_width))

	def set_config(self, config: TemplateConfig) -> None:
		"""
		Swap in an edited template config and recompute the frame.

		Args:
			config: New template configuration.
		"""
		frame = render_preview(config, self._data, self._rendered_width)
		self._config = config
		self._publish(frame)

	def _publish(self, frame: PreviewFrame) -> None:
		self._frame = frame
		for callback in list(self._subscribers):
			callback(frame)
