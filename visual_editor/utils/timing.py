# ------------------------------------------------------------
# Module: visual_editor/utils/timing.py
# Purpose: Timed log lines around engine calls and snapshot I/O.
# ------------------------------------------------------------

"""Timing helpers for operations that leave the process.

Summary:
    `log_timer` brackets a block with `start` (DEBUG) and `ok`/`failed`
    lines carrying `key=value` context and the elapsed milliseconds, and
    yields an `Elapsed` record the caller can read afterwards.

Details:
    - Exceptions listed in `expected` are logged at WARNING without a
      traceback; anything else is logged at ERROR with one. Both re-raise.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class Elapsed:
    start_ns: int = field(default_factory=time.perf_counter_ns)
    ms: float | None = None

    def stop(self) -> float:
        self.ms = (time.perf_counter_ns() - self.start_ns) / 1_000_000.0
        return self.ms


def format_context(ctx: dict) -> str:
    return " ".join(f"{k}={v}" for k, v in ctx.items())


@contextmanager
def log_timer(
    msg: str,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
    expected: tuple[type[BaseException], ...] = (),
    **ctx,
) -> Iterator[Elapsed]:
    """
    Usage:
        with log_timer("engine.evaluate", log, expected=(EvaluationEngineError,), nodes=3) as t:
            ...
        t.ms  # elapsed milliseconds
    """
    log = logger or logging.getLogger("visual_editor")
    suffix = f" {format_context(ctx)}" if ctx else ""
    elapsed = Elapsed()
    log.debug("%s start%s", msg, suffix)
    try:
        yield elapsed
    except expected as e:
        log.warning("%s failed after %.1fms%s: %s", msg, elapsed.stop(), suffix, e)
        raise
    except Exception:
        log.error("%s failed after %.1fms%s", msg, elapsed.stop(), suffix, exc_info=True)
        raise
    log.info("%s ok in %.1fms%s", msg, elapsed.stop(), suffix)


__all__ = ["Elapsed", "format_context", "log_timer"]
