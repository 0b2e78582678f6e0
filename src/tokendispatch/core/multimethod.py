"""Clojure-style multimethods dispatching on a string token.

A multimethod is built from a dispatch function that maps the call
arguments to a ``str`` token. Methods are registered per token, from any
module and at any time; calling the multimethod runs the method registered
for the computed token, or the default method when there is none::

    area = multimethod(lambda shape: shape["type"],
                       lambda shape: shape["width"] * shape["height"])
    area.register("ellipse", lambda s: math.pi * s["width"] * s["height"] / 4)

    area({"type": "rectangle", "width": 2, "height": 4})  # 8, default method
    area({"type": "ellipse", "width": 2, "height": 4})    # 6.283...

Hierarchical dispatch and non-string tokens are not supported. Modules
that register methods must be imported before the first call that needs
them.
"""
from __future__ import annotations

import functools
from typing import Any, Callable, Dict, Optional

from tokendispatch.core import log
from tokendispatch.core.errors import InvalidDispatchToken, NoImplementationFound
from tokendispatch.core.metrics import Timer, inc_counter, set_gauge

__all__ = ["Method", "DispatchFn", "MultiMethod", "multimethod", "defmulti"]

Method = Callable[..., Any]
DispatchFn = Callable[..., str]


def _fn_name(fn: Callable) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


def _default_name(fn: Callable, owner: object) -> str:
    """module.qualname of fn; lambdas and local functions get an id suffix."""
    qualname = getattr(fn, "__qualname__", None)
    if not qualname:
        return f"multimethod.{id(owner):x}"
    module = getattr(fn, "__module__", None)
    name = f"{module}.{qualname}" if module else qualname
    if "<lambda>" in qualname or "<locals>" in qualname:
        name = f"{name}.{id(owner):x}"
    return name


class MultiMethod:
    def __init__(self, dispatch_fn: DispatchFn, default: Optional[Method] = None, *, name: Optional[str] = None):
        if not callable(dispatch_fn):
            raise TypeError(f"dispatch_fn must be callable, got {type(dispatch_fn).__name__}")
        if default is not None and not callable(default):
            raise TypeError(f"default must be callable, got {type(default).__name__}")
        self.dispatch_fn = dispatch_fn
        self.name = name or _default_name(dispatch_fn, self)
        self.l = log.get(self.name)
        # the default lives outside the table so no token can shadow it
        self._default = default
        self._methods: Dict[str, Method] = {}

    @property
    def default(self) -> Optional[Method]:
        return self._default

    def register(self, token: str, method: Method) -> "MultiMethod":
        """Add or replace the method for ``token``; returns self for chaining."""
        if not isinstance(token, str):
            raise TypeError(f"dispatch token must be str, got {type(token).__name__}")
        if not callable(method):
            raise TypeError(f"method for {token!r} must be callable, got {type(method).__name__}")

        previous = self._methods.get(token)
        self._methods[token] = method
        if previous is not None:
            self.l.debug("replaced method token=%s old=%s new=%s",
                         token, _fn_name(previous), _fn_name(method))
        else:
            self.l.info("registered method token=%s fn=%s", token, _fn_name(method))
        set_gauge("multimethod_methods", float(len(self._methods)), registry=self.name)
        return self

    def method(self, token: str) -> Callable[[Method], Method]:
        """Decorator form of register(); the decorated function is returned as is."""
        def decorate(fn: Method) -> Method:
            self.register(token, fn)
            return fn
        return decorate

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        token = self.dispatch_fn(*args, **kwargs)
        if not isinstance(token, str):
            raise InvalidDispatchToken(token, registry=self.name)

        fn = self._methods.get(token)
        route = "method"
        if fn is None:
            fn = self._default
            route = "default"
        if fn is None:
            inc_counter("multimethod_calls_total", registry=self.name, route="miss")
            self.l.debug("no method for dispatch token=%s", token)
            raise NoImplementationFound(token, registry=self.name)

        inc_counter("multimethod_calls_total", registry=self.name, route=route)
        self.l.debug("dispatch token=%s route=%s", token, route)
        with Timer("multimethod_call_ms", registry=self.name):
            return fn(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<MultiMethod {self.name} methods={len(self._methods)} default={self._default is not None}>"


def multimethod(dispatch_fn: DispatchFn, default: Optional[Method] = None, *, name: Optional[str] = None) -> MultiMethod:
    """Create a multimethod.

    ``dispatch_fn`` receives the call arguments and returns the token. When
    ``default`` is omitted, calling with an unregistered token raises
    NoImplementationFound.
    """
    return MultiMethod(dispatch_fn, default, name=name)


def defmulti(dispatch_fn: DispatchFn, *, name: Optional[str] = None) -> Callable[[Method], MultiMethod]:
    """Decorator turning a function into the default method of a new multimethod.

        @defmulti(lambda x: type(x).__name__)
        def describe(x):
            return "something"

        @describe.method("int")
        def describe_int(x):
            return "a number"
    """
    def decorate(fn: Method) -> MultiMethod:
        mm = MultiMethod(dispatch_fn, fn, name=name or _default_name(fn, fn))
        functools.update_wrapper(mm, fn)
        return mm
    return decorate
