from __future__ import annotations

from typing import Any, Optional

__all__ = ["DispatchError", "NoImplementationFound", "InvalidDispatchToken"]


class DispatchError(Exception):
    """Base class for errors raised by a multimethod itself."""


class NoImplementationFound(DispatchError, LookupError):
    """No method is registered for the token and there is no default."""

    def __init__(self, token: str, registry: Optional[str] = None):
        self.token = token
        self.registry = registry
        super().__init__(f"No method defined for dispatch {token}")


class InvalidDispatchToken(DispatchError, TypeError):
    """The dispatch function returned something other than a str."""

    def __init__(self, token: Any, registry: Optional[str] = None):
        self.token = token
        self.registry = registry
        super().__init__(
            f"dispatch function must return str, got {type(token).__name__}: {token!r}"
        )
