"""Custom exception hierarchy for the scene compiler."""


class SceneError(Exception):
    """Base exception for all scene loading errors."""


class DocumentError(SceneError):
    """Raised when the document cannot be read or is not well-formed XML."""


class StructuralError(SceneError):
    """Raised when a required block or required child tag is absent."""


class SceneReferenceError(SceneError):
    """Raised on duplicate ids or references that do not resolve (cycles included)."""


class SceneValueError(SceneError):
    """Raised when a required attribute is missing, non-numeric, or out of its domain."""
