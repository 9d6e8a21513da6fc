"""Run the app locally and serve the documentation site."""

from ..orchestrator import task
from ..orchestrator.errors import ServeFailure, StyleFailure
from ..orchestrator.logging import get_logger
from ..orchestrator.process import run_tool, spawn
from ..orchestrator.utils import _get, command, root_dir
from ..orchestrator.watch import watch


@task(name="serve", deps=["build"])
def serve(params: dict):
    """Build, then launch the app and relay its output until it exits."""
    logger = get_logger("serve")
    argv = command(params, "serve")
    child = spawn(argv, params=params)
    try:
        for raw in child.stdout:
            logger.info("tail output: %s", raw.decode("utf-8", errors="replace").rstrip())
    finally:
        code = child.wait()
    logger.info("Child exited with code: %s", code)
    if code != 0:
        raise ServeFailure("Error running serve task", returncode=code)


@task(name="serve-site", deps=["site-css"])
def serve_site(params: dict):
    """Recompile the docs site's less whenever it changes."""
    logger = get_logger("serve-site")
    settings = _get(params, "serve_site", default={}) or {}

    def rebuild(changed: list) -> None:
        try:
            run_tool(command(params, "site_css"), params=params, error=StyleFailure)
        except StyleFailure as e:
            # keep watching; the next save gets another try
            logger.error("site-css failed: %s", e)

    try:
        watch(
            root_dir(params) / settings.get("watch", "docs/less"),
            rebuild,
            pattern=settings.get("pattern", "*.less"),
            interval=float(settings.get("interval", 1.0)),
            max_cycles=_get(params, "runtime", "watch_cycles"),
        )
    except KeyboardInterrupt:
        logger.info("Stopped watching")
