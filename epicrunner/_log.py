"""Centralized logging for epicrunner.

Every record is formatted as ``[tag] message``. While a pipeline run is
active (see :func:`bind_run`), the tag carries the run id, so interleaved
output from parallel branches can be told apart: ``[pipeline.executor#3fa2c1] ...``.
"""

from __future__ import annotations

import contextvars
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

_lock = threading.Lock()
_setup_done = False

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "epicrunner_run_id", default=None
)


class _Formatter(logging.Formatter):
    """Strip the ``epicrunner.`` prefix and tag the record with the active run id."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith("epicrunner."):
            name = name[len("epicrunner.") :]
        run_id = getattr(record, "run_id", None)
        if run_id:
            name = f"{name}#{run_id}"
        record.msg = f"[{name}] {record.msg}"
        return super().format(record)


class _RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get()
        return True


def setup_logging(verbose: bool = False) -> None:
    """Configure the ``epicrunner`` root logger (idempotent).

    Attaches a single ``StreamHandler(sys.stderr)`` with level WARNING
    (or DEBUG when *verbose* is True). Sets ``propagate = False`` so
    messages don't bubble to the root logger.
    """
    global _setup_done
    with _lock:
        if _setup_done:
            return
        logger = logging.getLogger("epicrunner")
        logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_Formatter())
        handler.addFilter(_RunIdFilter())
        logger.addHandler(handler)
        logger.propagate = False
        _setup_done = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(f"epicrunner.{name}")``.

    Lazily calls :func:`setup_logging` on first use so that log output
    is routed to stderr even when callers skip explicit setup.
    """
    setup_logging()
    return logging.getLogger(f"epicrunner.{name}")


def current_run_id() -> str | None:
    return _run_id.get()


@contextmanager
def bind_run(run_id: str) -> Iterator[str]:
    """Tag every record logged inside the block with *run_id*."""
    token = _run_id.set(run_id)
    try:
        yield run_id
    finally:
        _run_id.reset(token)
