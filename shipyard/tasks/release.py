"""Release packaging, one job per platform.

Every release task depends on `pre-release`, so the build tree and the
production symlinks are in place before the packager is ever invoked.
"""

from typing import Iterable

from ..orchestrator import task
from ..orchestrator.errors import PackagingFailure
from ..orchestrator.logging import get_logger
from ..orchestrator.packaging import PLATFORMS, Packager, configs_for


def release_platforms(params: dict, keys: Iterable[str]) -> list:
    """Package each platform independently and return the outcomes.

    Raises PackagingFailure naming every platform that failed, after all
    platforms have been attempted.
    """
    logger = get_logger("release")
    packager = Packager.from_params(params)
    outcomes = packager.package_each(configs_for(params, keys), params)
    for o in outcomes:
        if o.ok:
            logger.info("%s: %s", o.platform, ", ".join(str(a) for a in o.artifacts))
    failed = [o for o in outcomes if not o.ok]
    if failed:
        if len(failed) == 1:
            raise failed[0].error
        raise PackagingFailure(
            "; ".join(str(o.error) for o in failed),
            platform=",".join(o.platform for o in failed),
            returncode=failed[0].error.returncode,
        )
    return outcomes


@task(name="release-osx", deps=["pre-release"])
def release_osx(params: dict):
    """Package for macOS (darwin/x64)."""
    release_platforms(params, ["osx"])


@task(name="release-win", deps=["pre-release"])
def release_win(params: dict):
    """Package for Windows (win32, all archs)."""
    release_platforms(params, ["win"])


@task(name="release-lin", deps=["pre-release"])
def release_lin(params: dict):
    """Package for Linux (all archs)."""
    release_platforms(params, ["lin"])


@task(name="release", deps=["pre-release"])
def release(params: dict):
    """Package for every supported platform, each as an independent job."""
    release_platforms(params, list(PLATFORMS))
