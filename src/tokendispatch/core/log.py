from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

_configured = False


class JsonHandler(logging.StreamHandler):
    """One JSON object per record on stdout."""
    def __init__(self):
        super().__init__(stream=sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            obj = {
                "ts": record.created,
                "lvl": record.levelname,
                "name": record.name,
                "msg": record.getMessage(),
            }
            for k in ("filename", "lineno", "funcName"):
                obj[k] = getattr(record, k, None)
            self.stream.write(json.dumps(obj, ensure_ascii=False, default=str) + "\n")
            self.flush()
        except Exception:  # pragma: no cover
            self.handleError(record)


def _level(name: str) -> int:
    value = getattr(logging, name.upper(), None)
    return value if isinstance(value, int) else logging.INFO


def setup(level: Optional[str] = None, json_mode: Optional[bool] = None, *, force: bool = False) -> None:
    """Configure the root logger.

    - Loads ``.env`` and reads LOG_LEVEL, LOG_JSON when args are None
    - If already configured, does nothing unless force=True

    The library itself never calls this; applications and tests do.
    """
    global _configured
    if _configured and not force:
        return

    load_dotenv()

    py_level = _level(level or os.getenv("LOG_LEVEL", "INFO"))
    json_flag = json_mode if json_mode is not None else (os.getenv("LOG_JSON", "0") == "1")

    root = logging.getLogger()
    # drop earlier handlers so repeated setup() calls don't duplicate lines
    root.handlers.clear()
    root.setLevel(py_level)

    if json_flag:
        root.addHandler(JsonHandler())
    else:
        fmt = "[%(asctime)s] %(levelname)s %(name)s | %(message)s"
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=fmt))
        root.addHandler(handler)

    _configured = True


def get(name: str) -> logging.Logger:
    """Namespaced logger under ``tokendispatch``."""
    if name != "tokendispatch" and not name.startswith("tokendispatch."):
        name = f"tokendispatch.{name}"
    return logging.getLogger(name)


def set_level(level: str) -> None:
    """Adjust the root log level at runtime (e.g. during tests)."""
    logging.getLogger().setLevel(_level(level))
