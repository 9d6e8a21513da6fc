from __future__ import annotations

from typing import Any, Dict, Optional


class ShipyardError(RuntimeError):
    """
    Base error for orchestrator components. Carries metadata for structured logging.
    """

    category: str = "runtime"

    def __init__(self, message: str, *, metadata: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.metadata = metadata or {}


class ConfigError(ShipyardError):
    """Raised when configuration is invalid or missing."""

    category = "config"


class RegistrationError(ShipyardError):
    """Raised when a task is registered twice or references an unknown task."""

    category = "registration"


class TaskNotFoundError(RegistrationError, KeyError):
    """Raised when a requested task name is not registered."""

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


class CycleError(ShipyardError):
    """Raised when dependency resolution revisits a task still being resolved."""

    category = "cycle"

    def __init__(self, path: list[str]) -> None:
        super().__init__("Cycle detected: " + " -> ".join(path), metadata={"path": list(path)})
        self.path = list(path)


class FileSystemError(ShipyardError):
    """Raised when a symlink or clean operation fails."""

    category = "filesystem"


class ManifestError(ShipyardError):
    """Raised when a script manifest violates its load-order contract."""

    category = "manifest"


class ToolError(ShipyardError):
    """An external tool exited unsuccessfully.

    `returncode` is the child's exit status (negative when killed by a signal);
    `output` holds the tail of what it printed.
    """

    category = "tool"

    def __init__(
        self,
        message: str,
        *,
        returncode: int = 1,
        output: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, metadata=metadata)
        self.returncode = returncode
        self.output = output


class StaticCheckFailure(ToolError):
    category = "lint"


class CompileFailure(ToolError):
    category = "compile"


class StyleFailure(ToolError):
    category = "css"


class IntegrationTestFailure(ToolError):
    category = "test-integration"


class UnitTestFailure(ToolError):
    category = "test-unit"


class UIUnitTestFailure(ToolError):
    category = "test-unit-ui"


class CoverageFailure(ToolError):
    category = "coverage"


class DocsFailure(ToolError):
    category = "docs"


class ServeFailure(ToolError):
    category = "serve"


class PackagingFailure(ToolError):
    """Packaging failed for a single platform."""

    category = "packaging"

    def __init__(self, message: str, *, platform: str, **kwargs: Any) -> None:
        super().__init__(f"[{platform}] {message}", **kwargs)
        self.platform = platform


class TaskFailedError(ShipyardError):
    """A task in a run failed; carries the failing task's identity and the cause."""

    category = "task"

    def __init__(self, task: str, cause: BaseException, results: Optional[list] = None) -> None:
        super().__init__(f"Task '{task}' failed: {cause}", metadata={"task": task})
        self.task = task
        self.cause = cause
        self.results = list(results or [])

    @property
    def origin(self) -> str:
        """Name of the innermost failing task."""
        cause = self.cause
        if isinstance(cause, TaskFailedError):
            return cause.origin
        return self.task

    @property
    def chain(self) -> list:
        """Task names from the requested task down to the one that failed."""
        cause = self.cause
        if isinstance(cause, TaskFailedError):
            return [self.task] + cause.chain
        return [self.task]

    @property
    def root_cause(self) -> BaseException:
        cause = self.cause
        if isinstance(cause, TaskFailedError):
            return cause.root_cause
        return cause

    @property
    def returncode(self) -> int:
        code = getattr(self.cause, "returncode", None)
        if isinstance(code, int) and code > 0:
            return code
        return 1
