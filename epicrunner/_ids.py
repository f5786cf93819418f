"""Short run identifiers."""

from __future__ import annotations

import uuid


def generate_run_id(length: int = 8) -> str:
    """Return a random hex string of *length* characters for tagging a pipeline run."""
    return uuid.uuid4().hex[:length]
