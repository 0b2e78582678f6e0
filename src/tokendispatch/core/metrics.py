from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

LabelKey = Tuple[Tuple[str, str], ...]  # sorted tuple of (k,v)


def _labels_key(labels: Dict[str, Any] | None) -> LabelKey:
    if not labels:
        return tuple()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


# ---------------- Metric types ----------------

@dataclass
class Counter:
    name: str
    labels: LabelKey
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, n: float = 1.0) -> None:
        with self._lock:
            self._value += n

    def value(self) -> float:
        with self._lock:
            return self._value


@dataclass
class Gauge:
    name: str
    labels: LabelKey
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set(self, v: float) -> None:
        with self._lock:
            self._value = float(v)

    def value(self) -> float:
        with self._lock:
            return self._value


@dataclass
class Latency:
    """Running count/total/max of observed durations in milliseconds."""
    name: str
    labels: LabelKey
    _count: int = 0
    _total: float = 0.0
    _max: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def observe(self, ms: float) -> None:
        with self._lock:
            self._count += 1
            self._total += ms
            self._max = max(self._max, ms)

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            mean = self._total / self._count if self._count else 0.0
            return {"count": float(self._count), "mean": mean, "max": self._max}


# ---------------- Registry ----------------

class _Registry:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._metrics: Dict[Tuple[type, str, LabelKey], Any] = {}

    def get(self, kind: type, name: str, labels: Dict[str, Any] | None):
        key = (kind, name, _labels_key(labels))
        with self._lock:
            m = self._metrics.get(key)
            if m is None:
                m = kind(name, key[2])
                self._metrics[key] = m
            return m

    def of_kind(self, kind: type) -> list:
        with self._lock:
            return [m for (k, _, _), m in self._metrics.items() if k is kind]

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()


_REG = _Registry()


# ---------------- Public API ----------------

def inc_counter(name: str, n: float = 1.0, **labels: Any) -> None:
    _REG.get(Counter, name, labels).inc(n)


def set_gauge(name: str, v: float, **labels: Any) -> None:
    _REG.get(Gauge, name, labels).set(v)


def observe_ms(name: str, ms: float, **labels: Any) -> None:
    _REG.get(Latency, name, labels).observe(ms)


def reset() -> None:
    """Drop every metric (tests)."""
    _REG.clear()


class Timer:
    """Context manager reporting elapsed wall time into a latency metric."""
    def __init__(self, name: str, **labels: Any) -> None:
        self.name = name
        self.labels = labels
        self._t0 = 0.0

    def __enter__(self):
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        observe_ms(self.name, (time.perf_counter() - self._t0) * 1000.0, **self.labels)
        return False


# ---------------- Snapshot / export ----------------

def snapshot_all() -> dict:
    out = {"counters": [], "gauges": [], "latency": []}
    for m in _REG.of_kind(Counter):
        out["counters"].append({"name": m.name, "labels": dict(m.labels), "value": m.value()})
    for m in _REG.of_kind(Gauge):
        out["gauges"].append({"name": m.name, "labels": dict(m.labels), "value": m.value()})
    for m in _REG.of_kind(Latency):
        out["latency"].append({"name": m.name, "labels": dict(m.labels), **m.snapshot()})
    return out


def value(name: str, **labels: Any) -> float:
    """Current counter or gauge value, 0.0 if it was never touched."""
    key = _labels_key(labels)
    for kind in (Counter, Gauge):
        for m in _REG.of_kind(kind):
            if m.name == name and m.labels == key:
                return m.value()
    return 0.0


def emit(logger: Optional[logging.Logger] = None, json_mode: bool = False) -> None:
    """Log the current snapshot, one record per metric."""
    log = logger or logging.getLogger("metrics")
    snap = snapshot_all()
    if json_mode:
        kinds = {"counters": "counter", "gauges": "gauge", "latency": "latency"}
        for key, rows in snap.items():
            for row in rows:
                log.info({"type": kinds[key], **row})
        return
    for row in snap["counters"]:
        log.info(f"[ctr] {row['name']} {row['labels']} value={row['value']:.0f}")
    for row in snap["gauges"]:
        log.info(f"[gauge] {row['name']} {row['labels']} value={row['value']:.3f}")
    for row in snap["latency"]:
        log.info(
            f"[latency] {row['name']} {row['labels']} "
            f"n={int(row['count'])} mean={row['mean']:.3f} max={row['max']:.3f}"
        )
