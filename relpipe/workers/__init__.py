"""Bounded concurrency for pipeline stages."""

from .pool import Runner, Task, Workforce

__all__ = ["Runner", "Task", "Workforce"]
