from ..orchestrator import task
from ..orchestrator.errors import CompileFailure
from ..orchestrator.process import run_tool
from ..orchestrator.utils import command, path_of


@task(name="build", deps=["clean", "css", "dev-symlinks"])
def build(params: dict):
    """Clean output, compile styles and link the source tree for development."""


@task(name="compile")
def compile_sources(params: dict):
    """Transpile src/ into the production build tree."""
    path_of(params, "build").mkdir(parents=True, exist_ok=True)
    run_tool(command(params, "compile"), params=params, error=CompileFailure)


@task(name="pre-release", stages=["build", "compile", "prod-symlinks"])
def pre_release(params: dict):
    """Build, transpile, then relink node_modules at the compiled tree."""
