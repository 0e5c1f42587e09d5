"""Context manager para medir latência das idas ao backend."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Generator
from typing import Any

from chatflow.observability.logging import get_logger

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(component: str, **fields: Any) -> Generator[None, None, None]:
    """Mede e loga o tempo gasto em um componente.

    Usage:
        with timed("flow_engine.initialize", chat_id="abc..."):
            await engine.initialize(...)

    Campos extras são anexados ao log `component_latency` (sem conteúdo de
    mensagens).
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "component_latency",
            extra={
                "component": component,
                "elapsed_ms": round(elapsed_ms, 2),
                **fields,
            },
        )
