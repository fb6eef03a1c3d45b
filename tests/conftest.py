"""
Pytest configuration for local imports and shared card fixtures.
"""

# Standard Library
import io
import os
import sys

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

# PIP3 modules
import PIL.Image
import pytest

# local repo modules
import idcard_renderer.geometry


#============================================
def encode_image(width: int, height: int, color: tuple[int, int, int], image_format: str = "PNG") -> bytes:
	"""
	Encode a solid-color test image.

	Args:
		width: Image width.
		height: Image height.
		color: RGB fill.
		image_format: Pillow format name.

	Returns:
		Encoded image bytes.
	"""
	buffer = io.BytesIO()
	PIL.Image.new("RGB", (width, height), color).save(buffer, format=image_format)
	return buffer.getvalue()


#============================================
def basic_record() -> dict:
	"""
	Stored record for the standard 856x540 card with one bold name field.
	"""
	return {
		"schemaVersion": 2,
		"templateImagePath": "schools/school-01/template.png",
		"templateDimensions": {"width": 856, "height": 540},
		"photoPlacement": {"x": 68, "y": 135, "width": 171, "height": 162},
		"textFields": [
			{
				"id": "name",
				"name": "Full Name",
				"x": 274,
				"y": 162,
				"fontSize": 18,
				"fontWeight": "bold",
				"color": "#000000",
				"fontFamily": "Arial",
				"textAlign": "left",
			},
		],
	}


@pytest.fixture
def record() -> dict:
	return basic_record()


@pytest.fixture
def basic_config() -> idcard_renderer.geometry.TemplateConfig:
	return idcard_renderer.geometry.template_config_from_dict(basic_record())


@pytest.fixture
def template_bytes() -> bytes:
	return encode_image(856, 540, (255, 255, 255))


@pytest.fixture
def photo_bytes() -> bytes:
	return encode_image(120, 150, (220, 20, 20), "JPEG")


@pytest.fixture
def image_factory():
	return encode_image
