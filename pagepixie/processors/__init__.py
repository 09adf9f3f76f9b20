"""Page content processors"""

from .image import ImageContextBuilder, SUPPORTED_MIME_TYPES

__all__ = ["ImageContextBuilder", "SUPPORTED_MIME_TYPES"]
