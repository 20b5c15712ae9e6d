"""Metric helpers recorded as Opik traces."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Dict, Iterator, Optional

from mindy.observability.client import get_opik_client

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record ``metric:<name>`` when Opik is enabled."""
    client = get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value, **(metadata or {})}
    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
        metric_trace.end()
    except Exception as exc:  # pragma: no cover - SDK guard
        logger.debug("Unable to record metric %s: %s", name, exc)


@contextmanager
def timed(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
    """Emit ``<name>.latency_ms`` and ``<name>.success`` around a block.

    The yielded dict can be extended inside the block; its contents are
    attached to both metrics.
    """
    extra: Dict[str, Any] = dict(metadata or {})
    start = perf_counter()
    success = False
    try:
        yield extra
        success = True
    finally:
        latency_ms = (perf_counter() - start) * 1000
        log_metric(f"{name}.success", 1 if success else 0, metadata=extra)
        log_metric(f"{name}.latency_ms", latency_ms, metadata=extra)
