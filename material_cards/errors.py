"""
Error types raised by the card pipeline.
"""


class CardsError(Exception):
	"""Base class for card generation errors."""


class ValidationError(CardsError):
	"""Request payload is missing or malformed."""


class InvalidLayoutError(ValidationError):
	"""Grid layout is degenerate (cols * rows == 0)."""


class ImageFetchError(CardsError):
	"""Remote image could not be fetched or decoded."""


class RenderError(CardsError):
	"""Rasterizer failed or timed out."""


class NotFoundError(CardsError):
	"""Requested artifact does not exist."""
