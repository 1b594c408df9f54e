"""Error kinds shared by the store adapter, validators and the UI controller."""

from typing import Optional, Sequence


class ProductManagerError(Exception):
    """Base class for product manager errors."""

    pass


class ValidationError(ProductManagerError):
    """Client-detected problem with a product record. Never sent to the store."""

    def __init__(self, message: str, problems: Optional[Sequence] = None):
        super().__init__(message)
        self.message = message
        self.problems = list(problems or [])


class StoreError(ProductManagerError):
    """A call against the product store failed.

    ``code`` is the provider classification: one of ``permission-denied``,
    ``unavailable``, ``not-found`` or ``unknown``.
    """

    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not-found"
    UNKNOWN = "unknown"

    def __init__(self, code: str, message: str):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message

    @property
    def is_permission_denied(self) -> bool:
        return self.code == self.PERMISSION_DENIED

    @property
    def is_unavailable(self) -> bool:
        return self.code == self.UNAVAILABLE


class RenderError(ProductManagerError):
    """Data handed to the renderer has an unexpected shape."""

    pass
