import dataclasses

import pytest

import idcard_renderer.errors
import idcard_renderer.geometry as geometry
import idcard_renderer.layout_defaults as layout_defaults
import idcard_renderer.preview as preview
import idcard_renderer.resolver as resolver


ConfigurationError = idcard_renderer.errors.ConfigurationError


#============================================
def test_placeholders_without_data(basic_config) -> None:
	"""
	Empty data shows field names and the photo label.
	"""
	frame = preview.render_preview(basic_config)
	assert frame.scale == 1.0
	assert frame.photo.has_photo is False
	assert frame.photo.label == "Photo"
	name = frame.text[0]
	assert name.text == "Full Name"
	assert name.is_placeholder is True


#============================================
def test_values_replace_placeholders(basic_config, photo_bytes: bytes) -> None:
	frame = preview.render_preview(basic_config, {"name": "John Doe", "photo": photo_bytes})
	assert frame.text[0].text == "John Doe"
	assert frame.text[0].is_placeholder is False
	assert frame.photo.has_photo is True
	assert frame.photo.label == ""


#============================================
def test_half_width_display_halves_font(basic_config) -> None:
	"""
	Font sizes follow the displayed width; boxes stay in percent.
	"""
	frame = preview.render_preview(basic_config, rendered_width=428)
	assert frame.scale == pytest.approx(0.5)
	assert frame.text[0].font_size == pytest.approx(9.0)
	layout = resolver.resolve(basic_config, "preview")
	assert frame.photo.left_percent == layout.photo.left_percent
	assert frame.photo.height_percent == layout.photo.height_percent
	assert frame.text[0].left_percent == layout.text[0].left_percent
	assert frame.text[0].top_percent == layout.text[0].top_percent


#============================================
@pytest.mark.parametrize("rendered_width", [0, -20])
def test_non_positive_display_width_raises(basic_config, rendered_width: float) -> None:
	with pytest.raises(ConfigurationError):
		preview.render_preview(basic_config, rendered_width=rendered_width)


#============================================
def test_wrapping_field_has_box() -> None:
	"""
	Fields with a width report a wrapping box of lines * line height.
	"""
	config = layout_defaults.build_default_config("t.png", 856, 540)
	frame = preview.render_preview(config)
	address = frame.text[-1]
	assert address.wrap is True
	assert address.width_percent == pytest.approx(514 / 856 * 100)
	assert address.height_percent == pytest.approx(14 * 1.2 * 2 / 540 * 100)
	assert all(not overlay.wrap for overlay in frame.text[:-1])


#============================================
def test_frame_to_dict_css(basic_config) -> None:
	"""
	Frames serialize to percent-based CSS boxes.
	"""
	styles = preview.frame_to_dict(preview.render_preview(basic_config, rendered_width=428))
	assert styles["photo"]["style"]["left"] == f"{68 / 856 * 100:.4f}%"
	assert styles["photo"]["label"] == "Photo"
	text = styles["textFields"][0]
	assert text["placeholder"] is True
	assert text["style"]["fontSize"] == "9.00px"
	assert text["style"]["whiteSpace"] == "nowrap"
	assert "width" not in text["style"]


#============================================
def test_overlay_publishes_on_resize(basic_config) -> None:
	"""
	Resizing the display pushes a new frame to subscribers.
	"""
	overlay = preview.PreviewOverlay(basic_config, rendered_width=856)
	frames = []
	unsubscribe = overlay.subscribe(frames.append)
	assert overlay.set_rendered_width(856) is False
	assert frames == []
	assert overlay.set_rendered_width(428) is True
	assert frames[-1].text[0].font_size == pytest.approx(9.0)
	assert overlay.frame is frames[-1]

	overlay.set_data({"name": "Jane"})
	assert frames[-1].text[0].text == "Jane"
	unsubscribe()
	overlay.set_rendered_width(1712)
	assert len(frames) == 2
	assert overlay.frame.text[0].font_size == pytest.approx(36.0)


#============================================
def test_overlay_config_swap(basic_config) -> None:
	overlay = preview.PreviewOverlay(basic_config)
	moved = dataclasses.replace(
		basic_config,
		photo_placement=geometry.PhotoPlacement(0, 0, 428, 270),
	)
	overlay.set_config(moved)
	assert overlay.frame.photo.width_percent == pytest.approx(50.0)
