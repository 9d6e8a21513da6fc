"""In-repo build orchestrator for the desktop app.

Provides Task and Pipeline primitives, dependency-ordered scheduling, symlink
and packaging helpers, and a Typer CLI with one command per task.
"""

from .core import Pipeline, Scheduler, TaskGraph, TaskResult, TaskSpec, task  # re-export for convenience

__all__ = ["Pipeline", "Scheduler", "TaskGraph", "TaskResult", "TaskSpec", "task"]
