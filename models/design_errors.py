"""Error taxonomy for design session orchestration."""

from __future__ import annotations

from typing import Optional


class DesignError(Exception):
	"""Base class for every error recovered into a design session."""

	kind = "error"

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class ValidationError(DesignError):
	"""A local precondition failed; no request was sent to the generation service."""

	kind = "validation"

	def __init__(self, message: str, field: Optional[str] = None) -> None:
		super().__init__(message)
		self.field = field


class ServiceError(DesignError):
	"""The generation service raised or reported an explicit block reason."""

	kind = "service"


class SoftFailure(DesignError):
	"""The service answered but produced no usable image."""

	kind = "soft_failure"


class ImageDecodeError(ValueError):
	"""Raised when uploaded bytes cannot be turned into an encoded image."""
