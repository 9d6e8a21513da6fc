from __future__ import annotations

"""Per-platform release packaging.

A single template ReleaseConfig is built from the params; every platform job gets
its own copy via `dataclasses.replace` and the external packager runs once per
copy. Jobs are independent: `package_each` never lets one platform's failure stop
the others.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import PackagingFailure
from .logging import get_logger
from .process import run_tool
from .utils import _get, command, path_of, project_name, project_version, remove_tree, root_dir, slugify


log = get_logger("shipyard.packager")

DEFAULT_ARCHS: Tuple[str, ...] = ("ia32", "x64")


@dataclass(frozen=True)
class PlatformTarget:
    key: str
    platform: str
    arch: Tuple[str, ...]
    # None: no icon; otherwise appended to the icon base path
    icon_suffix: Optional[str]


PLATFORMS: Dict[str, PlatformTarget] = {
    "osx": PlatformTarget("osx", "darwin", ("x64",), ".icns"),
    "win": PlatformTarget("win", "win32", DEFAULT_ARCHS, ".ico"),
    "lin": PlatformTarget("lin", "linux", DEFAULT_ARCHS, None),
}


@dataclass(frozen=True)
class ReleaseConfig:
    name: str
    app_version: str
    electron_version: str
    source_dir: Path
    out_dir: Path
    icon_base: Optional[Path] = None
    ignore: Tuple[str, ...] = ()
    overwrite: bool = True
    force: bool = True
    asar: bool = True
    prune: bool = True
    platform: str = ""
    arch: Tuple[str, ...] = ()
    icon: Optional[Path] = None
    version_strings: Tuple[Tuple[str, str], ...] = field(default=())

    @property
    def ignore_pattern(self) -> Optional[str]:
        if not self.ignore:
            return None
        return "/node_modules/(" + "|".join(self.ignore) + ")"

    def for_target(self, target: PlatformTarget) -> "ReleaseConfig":
        icon = None
        if target.icon_suffix is not None and self.icon_base is not None:
            icon = self.icon_base.with_name(self.icon_base.name + target.icon_suffix)
        return replace(self, platform=target.platform, arch=tuple(target.arch), icon=icon)


def template_from_params(params: Dict) -> ReleaseConfig:
    release = _get(params, "release", default={}) or {}
    name = project_name(params)
    version = project_version(params)
    icon = release.get("icon")
    return ReleaseConfig(
        name=name,
        app_version=version,
        electron_version=str(release.get("electron_version", "")),
        source_dir=root_dir(params),
        out_dir=path_of(params, "release"),
        icon_base=(root_dir(params) / icon) if icon else None,
        ignore=tuple(release.get("ignore_packages") or ()),
        overwrite=bool(release.get("overwrite", True)),
        force=bool(release.get("force", True)),
        asar=bool(release.get("asar", True)),
        prune=bool(release.get("prune", True)),
        version_strings=(("ProductVersion", version), ("ProductName", name)),
    )


def artifact_name(config: ReleaseConfig, arch: str) -> str:
    return f"{config.name}-{config.platform}-{arch}"


def artifact_dir(config: ReleaseConfig, arch: str) -> Path:
    return config.out_dir / artifact_name(config, arch)


@dataclass(frozen=True)
class PackageOutcome:
    platform: str
    artifacts: Tuple[Path, ...] = ()
    error: Optional[PackagingFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Packager:
    """Invokes the external packaging tool once per ReleaseConfig."""

    def __init__(self, base_command: List[str], runner: Callable[..., str] = run_tool):
        self.base_command = list(base_command)
        self.runner = runner

    @classmethod
    def from_params(cls, params: Dict) -> "Packager":
        return cls(command(params, "packager"))

    def argv(self, config: ReleaseConfig) -> List[str]:
        argv = self.base_command + [
            str(config.source_dir),
            config.name,
            f"--platform={config.platform}",
            f"--arch={','.join(config.arch)}",
            f"--out={config.out_dir}",
            f"--app-version={config.app_version}",
        ]
        if config.electron_version:
            argv.append(f"--version={config.electron_version}")
        if config.icon is not None:
            argv.append(f"--icon={config.icon}")
        if config.ignore_pattern:
            argv.append(f"--ignore={config.ignore_pattern}")
        for key, value in config.version_strings:
            argv.append(f"--version-string.{key}={value}")
        for flag in ("overwrite", "asar", "prune"):
            if getattr(config, flag):
                argv.append(f"--{flag}")
        return argv

    def package(self, config: ReleaseConfig, params: Dict) -> List[Path]:
        if not config.platform:
            raise PackagingFailure("Config has no platform", platform="?")
        if config.icon is not None and not config.icon.exists():
            raise PackagingFailure(f"Icon resource not found: {config.icon}", platform=config.platform)
        if config.force:
            # rebuild from scratch rather than trusting a previous artifact
            for arch in config.arch:
                target = artifact_dir(config, arch)
                try:
                    remove_tree(target)
                except OSError as e:
                    raise PackagingFailure(
                        f"Cannot clear previous artifact {target}: {e}", platform=config.platform
                    ) from e
        config.out_dir.mkdir(parents=True, exist_ok=True)
        log.info("Packaging %s [%s] -> %s", config.platform, ", ".join(config.arch), config.out_dir)
        self.runner(
            self.argv(config),
            params=params,
            error=PackagingFailure,
            platform=config.platform,
        )
        artifacts = [artifact_dir(config, arch) for arch in config.arch]
        for a in artifacts:
            if not a.exists():
                log.warning("Expected artifact not found after packaging: %s", a)
        return artifacts

    def package_each(self, configs: Iterable[ReleaseConfig], params: Dict) -> List[PackageOutcome]:
        outcomes: List[PackageOutcome] = []
        for config in configs:
            try:
                artifacts = self.package(config, params)
            except PackagingFailure as e:
                log.error("Packaging failed for %s: %s", config.platform, e)
                outcomes.append(PackageOutcome(config.platform, error=e))
                continue
            outcomes.append(PackageOutcome(config.platform, tuple(artifacts)))
        return outcomes


def configs_for(params: Dict, keys: Iterable[str]) -> List[ReleaseConfig]:
    template = template_from_params(params)
    out: List[ReleaseConfig] = []
    for key in keys:
        target = PLATFORMS.get(slugify(key))
        if target is None:
            raise PackagingFailure(f"Unsupported platform '{key}'", platform=key)
        out.append(template.for_target(target))
    return out