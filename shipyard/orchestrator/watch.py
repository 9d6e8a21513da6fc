from __future__ import annotations

import fnmatch
import os
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from .logging import get_logger


log = get_logger("shipyard.watch")

Snapshot = Dict[str, Tuple[Optional[int], Optional[float]]]


def safe_stat(path: Path) -> Tuple[Optional[int], Optional[float]]:
    try:
        st = path.stat()
        return st.st_size, st.st_mtime
    except FileNotFoundError:
        return None, None


def snapshot(root: Path, pattern: str = "*") -> Snapshot:
    """Size/mtime of every file under `root` matching `pattern`."""
    out: Snapshot = {}
    if not root.exists():
        return out
    for base, _, files in os.walk(root):
        for file in files:
            if fnmatch.fnmatch(file, pattern):
                p = Path(base) / file
                out[str(p)] = safe_stat(p)
    return out


def watch(
    root: Path,
    on_change: Callable[[list], None],
    pattern: str = "*",
    interval: float = 1.0,
    max_cycles: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll `root` and call `on_change(changed_paths)` whenever matching files change.

    Runs until interrupted, or for `max_cycles` polls. Returns the number of
    change notifications delivered.
    """
    log.info("Watching %s/%s (every %.1fs)", root, pattern, interval)
    previous = snapshot(root, pattern)
    notified = 0
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        sleep(interval)
        cycles += 1
        current = snapshot(root, pattern)
        if current != previous:
            changed = sorted(
                k for k in set(current) | set(previous) if current.get(k) != previous.get(k)
            )
            log.info("Changed: %s", ", ".join(changed))
            on_change(changed)
            notified += 1
            previous = current
    return notified
