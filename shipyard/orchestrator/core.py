from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from .errors import CycleError, RegistrationError, TaskFailedError, TaskNotFoundError
from .logging import get_logger


# Allow static stage lists or callables that build them from params
StageSpec = Union[List[str], Callable[[dict], List[str]]]


@dataclass(frozen=True)
class TaskSpec:
    name: str
    deps: tuple = ()
    fn: Optional[Callable[..., None]] = None
    stages: Optional[StageSpec] = None
    help: str = ""

    @property
    def is_pipeline(self) -> bool:
        return self.stages is not None


@dataclass(frozen=True)
class TaskResult:
    name: str
    status: str
    duration: float = 0.0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def task(
    name: str,
    deps: Iterable[str] = (),
    stages: Optional[StageSpec] = None,
    help: Optional[str] = None,
):
    """Decorator to declare a task on a function.

    The wrapped function receives a single dict `params` (parsed config plus a
    `runtime` section) and signals failure by raising. When `stages` is given the
    task is a pipeline: each stage runs as its own resolution, fail-fast, before
    the function body.
    """

    def deco(fn: Callable[..., None]):
        doc = (fn.__doc__ or "").strip().splitlines()
        spec = TaskSpec(
            name=name,
            deps=tuple(deps),
            fn=fn,
            stages=list(stages) if isinstance(stages, (list, tuple)) else stages,
            help=help if help is not None else (doc[0] if doc else ""),
        )
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


def _static_stages(spec: TaskSpec) -> list[str]:
    if spec.stages is None or callable(spec.stages):
        return []
    return list(spec.stages)


class TaskGraph:
    """Registry of named tasks and their dependency edges."""

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskSpec] = {}

    @classmethod
    def from_specs(cls, specs: Iterable[TaskSpec]) -> "TaskGraph":
        """Build a graph from an unordered set of specs.

        References may point forward within the set; anything that never resolves
        is a RegistrationError. Cycles are left for `check_acyclic`.
        """
        graph = cls()
        for spec in specs:
            if spec.name in graph._tasks:
                raise RegistrationError(f"Task already registered: {spec.name}")
            graph._tasks[spec.name] = spec
        for spec in graph._tasks.values():
            missing = [d for d in (*spec.deps, *_static_stages(spec)) if d not in graph._tasks]
            if missing:
                raise RegistrationError(
                    f"Task '{spec.name}' references unknown task(s): {', '.join(missing)}",
                    metadata={"task": spec.name, "missing": missing},
                )
        return graph

    def register(
        self,
        name: str | TaskSpec,
        deps: Iterable[str] = (),
        fn: Optional[Callable[..., None]] = None,
        stages: Optional[StageSpec] = None,
    ) -> TaskSpec:
        if isinstance(name, TaskSpec):
            spec = name
        else:
            if isinstance(stages, tuple):
                stages = list(stages)
            spec = TaskSpec(name=name, deps=tuple(deps), fn=fn, stages=stages)
        if spec.name in self._tasks:
            raise RegistrationError(f"Task already registered: {spec.name}")
        missing = [d for d in (*spec.deps, *_static_stages(spec)) if d not in self._tasks]
        if missing:
            raise RegistrationError(
                f"Task '{spec.name}' references unregistered task(s): {', '.join(missing)}",
                metadata={"task": spec.name, "missing": missing},
            )
        self._tasks[spec.name] = spec
        return spec

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __getitem__(self, name: str) -> TaskSpec:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskNotFoundError(f"Task not found: {name}") from None

    def __iter__(self) -> Iterator[TaskSpec]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def names(self) -> list[str]:
        return sorted(self._tasks)

    def stages_of(self, name: str, params: Optional[dict] = None) -> list[str]:
        spec = self[name]
        if spec.stages is None:
            return []
        stages = spec.stages(params or {}) if callable(spec.stages) else spec.stages
        stages = [str(s) for s in stages or []]
        missing = [s for s in stages if s not in self._tasks]
        if missing:
            raise RegistrationError(
                f"Pipeline '{name}' references unknown stage(s): {', '.join(missing)}",
                metadata={"task": name, "missing": missing},
            )
        return stages

    def resolve(self, name: str) -> list[str]:
        """Return the dependency closure of `name` in execution order.

        Depth-first; a dependency reachable through several paths appears once.
        """
        order: list[str] = []
        done: set[str] = set()
        visiting: list[str] = []

        def visit(n: str) -> None:
            if n in done:
                return
            if n in visiting:
                raise CycleError(visiting[visiting.index(n):] + [n])
            spec = self[n]
            visiting.append(n)
            for d in spec.deps:
                visit(d)
            visiting.pop()
            done.add(n)
            order.append(n)

        visit(name)
        return order

    def check_acyclic(self, params: Optional[dict] = None) -> None:
        """Raise CycleError if any dependency or pipeline-stage edge forms a cycle."""
        done: set[str] = set()
        visiting: list[str] = []

        def visit(n: str) -> None:
            if n in done:
                return
            if n in visiting:
                raise CycleError(visiting[visiting.index(n):] + [n])
            visiting.append(n)
            for d in (*self[n].deps, *self.stages_of(n, params)):
                visit(d)
            visiting.pop()
            done.add(n)

        for n in self._tasks:
            visit(n)


class Pipeline:
    """Ordered stage list executed fail-fast; each stage is a full task run."""

    def __init__(self, scheduler: "Scheduler", stages: Iterable[str], name: str = "pipeline"):
        self.name = name
        self.scheduler = scheduler
        self.stages = list(stages)
        self.logger = get_logger(f"shipyard.{self.name}")

    def run(self, params: dict) -> list[TaskResult]:
        self.logger.info("Stages: %s", " → ".join(self.stages))
        results: list[TaskResult] = []
        for stage in self.stages:
            try:
                results.extend(self.scheduler.run(stage, params))
            except TaskFailedError as e:
                self.logger.error("Stage '%s' failed; skipping remaining stages", stage)
                if e.task == stage:
                    raise TaskFailedError(stage, e.cause, results + e.results) from e
                # a dependency of the stage failed; keep its identity in the chain
                raise TaskFailedError(stage, e, results + e.results) from e
        return results


class Scheduler:
    """Resolves a task's closure once and executes it sequentially."""

    def __init__(self, graph: TaskGraph, name: str = "scheduler"):
        self.graph = graph
        self.name = name
        self.logger = get_logger(f"shipyard.{self.name}")

    def plan(self, name: str, params: Optional[dict] = None) -> list[str]:
        self.graph[name]
        self.graph.check_acyclic(params)
        return self.graph.resolve(name)

    def run(self, name: str, params: Optional[dict] = None) -> list[TaskResult]:
        params = _with_runtime(params or {})
        selected = self.plan(name, params)
        self.logger.info("Selected steps: %s", " → ".join(selected))

        results: list[TaskResult] = []
        for step_name in selected:
            result = self._execute(step_name, params)
            results.append(result)
            if not result.ok:
                raise TaskFailedError(step_name, result.error, results)
        return results

    def _execute(self, step_name: str, params: dict) -> TaskResult:
        spec = self.graph[step_name]
        step_logger = get_logger(f"shipyard.{step_name}")
        start = time.monotonic()
        try:
            step_logger.info("Run: %s", step_name)
            if spec.is_pipeline:
                stages = self.graph.stages_of(step_name, params)
                Pipeline(self, stages, name=step_name).run(params)
            if spec.fn is not None:
                spec.fn(params=params)
        except TaskFailedError as e:
            # the stage already logged its own failure
            return TaskResult(step_name, "failed", time.monotonic() - start, e)
        except Exception as e:  # noqa: BLE001
            step_logger.error("Step failed (%s): %s", step_name, e)
            step_logger.debug("Traceback for %s", step_name, exc_info=True)
            return TaskResult(step_name, "failed", time.monotonic() - start, e)
        duration = time.monotonic() - start
        step_logger.info("Done: %s (%.2fs)", step_name, duration)
        return TaskResult(step_name, "ok", duration)


def _with_runtime(params: dict) -> dict:
    # Expose runtime metadata to tasks without touching the caller's dict
    params = dict(params)
    runtime = dict(params.get("runtime") or {})
    runtime.setdefault("run_id", time.strftime("%Y%m%d-%H%M%S"))
    params["runtime"] = runtime
    return params
