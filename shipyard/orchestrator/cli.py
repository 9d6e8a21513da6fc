from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Dict, Optional

import typer
from dotenv import load_dotenv

from .core import Scheduler, TaskGraph, TaskSpec
from .errors import ShipyardError, TaskFailedError
from .logging import get_logger
from .process import ExecutionMode
from .utils import load_config


TASKS_PACKAGE = "shipyard.tasks"
DEFAULT_TASK = "serve"
# plumbing for dev-symlinks/prod-symlinks; runnable via `run` but not listed as commands
INTERNAL_TASKS = {"remove-link-src", "remove-link-lib", "remove-link-tests"}

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Build, test and release orchestrator. One command per task.",
)
log = get_logger("shipyard.cli")


def discover_tasks(package: str = TASKS_PACKAGE) -> Dict[str, TaskSpec]:
    """Import all modules in the tasks package and collect decorated functions."""
    specs: Dict[str, TaskSpec] = {}
    pkg = importlib.import_module(package)
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{package}."):
        mod = importlib.import_module(m.name)
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            if not isinstance(spec, TaskSpec):
                continue
            if spec.name in specs and specs[spec.name] is not spec:
                raise ShipyardError(f"Task '{spec.name}' declared twice (in {m.name})")
            specs[spec.name] = spec
    return specs


def build_graph(package: str = TASKS_PACKAGE) -> TaskGraph:
    return TaskGraph.from_specs(discover_tasks(package).values())


def make_params(
    config: str | Path | None,
    root: str | Path = ".",
    mode: str | ExecutionMode | None = None,
) -> dict:
    root = Path(root).resolve()
    config_path = None
    if config:
        config_path = Path(config)
        if not config_path.is_absolute():
            config_path = root / config_path
    params = load_config(config_path)
    params["runtime"] = {"root": str(root), "mode": ExecutionMode.parse(mode)}
    return params


def execute(name: str, params: dict, package: str = TASKS_PACKAGE) -> None:
    """Run `name` and translate failures into a message and an exit code."""
    try:
        graph = build_graph(package)
        Scheduler(graph, name="cli").run(name, params)
    except TaskFailedError as e:
        where = " → ".join(e.chain)
        typer.echo(f"FAILED {where}: {e.root_cause}", err=True)
        raise typer.Exit(code=e.returncode)
    except ShipyardError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=2)
    typer.echo(f"OK {name}")


@app.callback()
def main_options(
    ctx: typer.Context,
    config: str = typer.Option("configs/build.yaml", help="Path to YAML config (relative to --root)"),
    root: str = typer.Option(".", help="Workspace root"),
    mode: Optional[str] = typer.Option(
        None, envvar="SHIPYARD_MODE", help="development | test | production"
    ),
    log_file: Optional[str] = typer.Option(
        None, help="Also write the run log to this file (relative to --root)"
    ),
):
    root_path = Path(root).resolve()
    load_dotenv(root_path / ".env")
    if log_file:
        log_path = Path(log_file)
        get_logger("shipyard", log_file=log_path if log_path.is_absolute() else root_path / log_path)
    try:
        ctx.obj = make_params(config, root_path, mode)
    except (ValueError, ShipyardError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=2)


@app.command("list")
def list_tasks(ctx: typer.Context):
    """List tasks and their dependencies."""
    graph = build_graph()
    for name in graph.names():
        spec = graph[name]
        deps = ", ".join(spec.deps)
        line = f"{name:<20} {spec.help}"
        if deps:
            line += f"  [deps: {deps}]"
        if spec.is_pipeline and not callable(spec.stages):
            line += f"  [stages: {' → '.join(spec.stages)}]"
        typer.echo(line)


@app.command("run")
def run_task(
    ctx: typer.Context,
    name: str = typer.Argument(DEFAULT_TASK, help="Task name to run"),
):
    """Run any task by name (default: serve)."""
    execute(name, ctx.obj)


def _command_for(name: str):
    def command(ctx: typer.Context):
        execute(name, ctx.obj)

    command.__name__ = name.replace("-", "_")
    return command


def _test_command(ctx: typer.Context, upload: bool = typer.Option(False, help="Upload coverage when done")):
    params = ctx.obj
    if upload:
        params = dict(params)
        params["coverage"] = {**params.get("coverage", {}), "upload": True}
    execute("test", params)


def _register_task_commands() -> None:
    for name, spec in sorted(discover_tasks().items()):
        if name in INTERNAL_TASKS:
            continue
        fn = _test_command if name == "test" else _command_for(name)
        app.command(name, help=spec.help)(fn)


_register_task_commands()


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
