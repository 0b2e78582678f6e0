"""Single-dispatch multimethods keyed by a runtime string token."""

from tokendispatch.core.errors import DispatchError, InvalidDispatchToken, NoImplementationFound
from tokendispatch.core.multimethod import MultiMethod, defmulti, multimethod

__all__ = [
    "DispatchError",
    "InvalidDispatchToken",
    "NoImplementationFound",
    "MultiMethod",
    "defmulti",
    "multimethod",
]

__version__ = "0.1.0"
