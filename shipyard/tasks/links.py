"""Symlinks under node_modules that let `require('src/...')` resolve.

Development points them at the source tree; a release points them at the
compiled build tree. Each switch removes the old links first, and only links
are ever removed.
"""

from typing import Dict

from ..orchestrator import task
from ..orchestrator.symlinks import create_links, remove_if_link
from ..orchestrator.utils import path_of, root_dir


def _link(params: dict, name: str):
    return path_of(params, "node_modules") / name


@task(name="remove-link-src")
def remove_link_src(params: dict):
    """Remove node_modules/src if it is a link."""
    remove_if_link(_link(params, "src"))


@task(name="remove-link-lib")
def remove_link_lib(params: dict):
    """Remove node_modules/lib if it is a link."""
    remove_if_link(_link(params, "lib"))


@task(name="remove-link-tests")
def remove_link_tests(params: dict):
    """Remove node_modules/tests if it is a link."""
    remove_if_link(_link(params, "tests"))


def dev_links(params: dict) -> Dict:
    src = path_of(params, "src")
    return {
        src: _link(params, "src"),
        src / "lib": _link(params, "lib"),
        path_of(params, "tests"): _link(params, "tests"),
        root_dir(params) / "package.json": _link(params, "package.json"),
    }


def prod_links(params: dict) -> Dict:
    build = path_of(params, "build")
    return {
        build: _link(params, "src"),
        build / "lib": _link(params, "lib"),
        root_dir(params) / "package.json": _link(params, "package.json"),
    }


@task(name="dev-symlinks", deps=["remove-link-src", "remove-link-lib", "remove-link-tests"])
def dev_symlinks(params: dict):
    """Point node_modules/{src,lib,tests} at the source tree."""
    create_links(dev_links(params), force=True)


@task(name="prod-symlinks", deps=["remove-link-src", "remove-link-lib"])
def prod_symlinks(params: dict):
    """Point node_modules/{src,lib} at the compiled build tree."""
    create_links(prod_links(params), force=True)
