"""Remove build and release output."""

from ..orchestrator import task
from ..orchestrator.errors import FileSystemError
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import path_of, remove_tree


@task(name="clean")
def clean(params: dict):
    """Delete the compiled-output and release directories (no-op when absent)."""
    logger = get_logger("clean")
    for key in ("release", "build"):
        target = path_of(params, key)
        try:
            removed = remove_tree(target)
        except OSError as e:
            raise FileSystemError(f"Cannot remove {target}: {e}") from e
        if removed:
            logger.info("Removed %s", target)
