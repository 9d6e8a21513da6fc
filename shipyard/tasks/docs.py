from ..orchestrator import task
from ..orchestrator.errors import DocsFailure
from ..orchestrator.process import run_tool
from ..orchestrator.utils import command


@task(name="docs")
def docs(params: dict):
    """Generate API docs into docs/jsdocs."""
    run_tool(command(params, "docs"), params=params, error=DocsFailure)
