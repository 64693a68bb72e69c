from __future__ import annotations

class ServiceError(RuntimeError):
    """Base class for service-layer errors."""

class GatewayError(ServiceError):
    """Errors from the generative-AI gateway (transport, empty or malformed replies)."""

class SpeechError(ServiceError):
    """Errors from the text-to-speech adapter."""


class FatalAcquisitionError(ServiceError):
    """Ingredient extraction or recipe generation failed; no recipes are produced."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


class DegradedImageError(ServiceError):
    """Image synthesis failed for one recipe. Never leaves the pipeline."""

    def __init__(self, recipe_name: str, message: str):
        super().__init__(message)
        self.recipe_name = recipe_name


class NarrationSessionNotFound(ServiceError):
    """No open narration session under the given id."""
