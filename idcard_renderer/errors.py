"""
Error and warning types raised by the rendering pipeline.
"""


class RenderError(Exception):
	"""
	Base class for failures local to a single render call.
	"""


class ConfigurationError(RenderError):
	"""
	Template configuration is malformed and must be fixed before rendering.
	"""


class DecodeError(RenderError):
	"""
	Image bytes are not a supported format.
	"""


class EncodeError(RenderError):
	"""
	Output encoding (JPEG or PDF) failed.
	"""


class MismatchWarning(UserWarning):
	"""
	Decoded template size differs from the configured template dimensions.
	"""
