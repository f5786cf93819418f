"""Built-in step units."""

from epicrunner.steps.transaction import Begin, Commit

__all__ = ["Begin", "Commit"]
