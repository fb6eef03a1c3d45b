"""
Image decoding and template size checks.
"""

# Standard Library
import io
import logging
import warnings

# PIP3 modules
import PIL.Image

# local repo modules
import idcard_renderer as icr
import idcard_renderer.errors
import idcard_renderer.geometry


DecodeError = icr.errors.DecodeError
MismatchWarning = icr.errors.MismatchWarning
TemplateConfig = icr.geometry.TemplateConfig

logger = logging.getLogger(__name__)


#============================================
def decode_image(data: bytes | None, role: str) -> PIL.Image.Image:
	"""
	Decode image bytes into an RGB Pillow image.

	Args:
		data: Encoded JPEG or PNG bytes.
		role: Label used in error messages ("template" or "photo").

	Returns:
		Fully loaded RGB image.

	Raises:
		DecodeError: When the bytes are missing or not a supported image.
	"""
	if not data:
		raise DecodeError(f"No {role} image data")
	try:
		with PIL.Image.open(io.BytesIO(data)) as image:
			image.load()
			if image.mode == "RGB":
				return image.copy()
			if image.mode in ("RGBA", "LA") or "transparency" in image.info:
				background = PIL.Image.new("RGB", image.size, (255, 255, 255))
				background.paste(image.convert("RGBA"), mask=image.convert("RGBA").getchannel("A"))
				return background
			return image.convert("RGB")
	except (PIL.UnidentifiedImageError, PIL.Image.DecompressionBombError, OSError, ValueError) as error:
		raise DecodeError(f"Cannot decode {role} image: {error}") from error


#============================================
def decode_photo(data: bytes | None) -> PIL.Image.Image | None:
	"""
	Decode an optional student photo, degrading to no photo on failure.

	Args:
		data: Photo bytes or None.

	Returns:
		RGB image, or None if absent or undecodable.
	"""
	if not data:
		return None
	try:
		return decode_image(data, "photo")
	except DecodeError as error:
		logger.warning("Rendering without photo: %s", error)
		return None


#============================================
def check_template_size(config: TemplateConfig, image: PIL.Image.Image) -> bool:
	"""
	Compare the decoded template size against the configured dimensions.

	Args:
		config: Template configuration.
		image: Decoded template image.

	Returns:
		True when the sizes match. On mismatch the discrepancy is logged and
		a MismatchWarning is emitted.
	"""
	dims = config.template_dimensions
	if image.width == dims.width and image.height == dims.height:
		return True
	message = (
		f"Template image is {image.width}x{image.height} but config declares "
		f"{dims.width:g}x{dims.height:g}"
	)
	logger.warning(message)
	warnings.warn(message, MismatchWarning, stacklevel=3)
	return False


#============================================
def read_image_dimensions(data: bytes) -> tuple[int, int]:
	"""
	Read the pixel size of an uploaded template.

	Args:
		data: Encoded image bytes.

	Returns:
		Tuple of (width, height).
	"""
	image = decode_image(data, "template")
	return (image.width, image.height)
