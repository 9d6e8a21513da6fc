"""Style sheets and font glyphs.

The less compiler and fontcustom are external; these tasks only run them.
"""

from ..orchestrator import task
from ..orchestrator.errors import StyleFailure
from ..orchestrator.process import run_tool
from ..orchestrator.utils import command, path_of


@task(name="css")
def css(params: dict):
    """Compile the application's less into src/ui/css."""
    (path_of(params, "src") / "ui" / "css").mkdir(parents=True, exist_ok=True)
    run_tool(command(params, "css"), params=params, error=StyleFailure)


@task(name="site-css")
def site_css(params: dict):
    """Compile the documentation site's less into docs/css."""
    (path_of(params, "docs") / "css").mkdir(parents=True, exist_ok=True)
    run_tool(command(params, "site_css"), params=params, error=StyleFailure)


@task(name="fonts")
def fonts(params: dict):
    """Regenerate the icon font from resources/font-glyphs."""
    run_tool(command(params, "fonts"), params=params, error=StyleFailure)
