from __future__ import annotations

"""Idempotent symlink rewiring for the shared dependency root.

Switching `node_modules/src` & co. between the source tree and the compiled tree
is always remove-then-create, and only ever removes entries that are links.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from .errors import FileSystemError
from .logging import get_logger


log = get_logger("shipyard.symlinks")


@dataclass(frozen=True)
class SymlinkSpec:
    link: Path
    target: Path


def remove_if_link(path: Path | str) -> bool:
    """Unlink `path` if it is a symbolic link; otherwise leave everything as is.

    Returns True when a link was removed.
    """
    p = Path(path)
    try:
        is_link = p.is_symlink()
    except OSError as e:
        raise FileSystemError(f"Cannot inspect {p}: {e}") from e
    if not is_link:
        log.debug("Not a link, leaving in place: %s", p)
        return False
    try:
        p.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise FileSystemError(f"Cannot remove link {p}: {e}") from e
    log.info("Removed link %s", p)
    return True


def create_links(mapping: Mapping[Path | str, Path | str], force: bool = False) -> list[SymlinkSpec]:
    """Create a link named `link` pointing at `target` for each target→link pair.

    With `force` an existing link or file at `link` is replaced. A real directory
    is never replaced.
    """
    created: list[SymlinkSpec] = []
    for target, link in mapping.items():
        spec = SymlinkSpec(link=Path(link), target=Path(target))
        _create(spec, force)
        created.append(spec)
    return created


def _create(spec: SymlinkSpec, force: bool) -> None:
    link = spec.link
    if not spec.target.exists():
        raise FileSystemError(f"Link target does not exist: {spec.target}")
    if link.is_symlink() or link.exists():
        if not force:
            raise FileSystemError(f"Link path already exists: {link}")
        if link.is_dir() and not link.is_symlink():
            raise FileSystemError(f"Refusing to replace real directory: {link}")
        try:
            link.unlink()
        except OSError as e:
            raise FileSystemError(f"Cannot replace {link}: {e}") from e
    target = Path(os.path.abspath(spec.target))
    try:
        link.parent.mkdir(parents=True, exist_ok=True)
        link.symlink_to(target, target_is_directory=target.is_dir())
    except OSError as e:
        raise FileSystemError(f"Cannot link {link} -> {target}: {e}") from e
    log.info("Linked %s -> %s", link, target)


def swap(specs: Iterable[SymlinkSpec], force: bool = True) -> list[SymlinkSpec]:
    """Remove every link name first, then create all links."""
    specs = list(specs)
    for spec in specs:
        remove_if_link(spec.link)
    for spec in specs:
        _create(spec, force)
    return specs
