"""epicrunner: run declarative pipelines of steps over a shared context."""

__version__ = "0.1.0"
