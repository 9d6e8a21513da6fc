from __future__ import annotations

"""Small helpers for reading build settings and paths from config params."""

import copy
import shutil
from pathlib import Path
from typing import Dict, List

import yaml

from .errors import ConfigError


DEFAULT_CONFIG: Dict = {
    "project": {
        "name": "app",
        "version": "0.0.0",
    },
    "paths": {
        "src": "src",
        "docs": "docs",
        "tests": "tests",
        "build": "build",
        "release": "release",
        "coverage": "coverage",
        "node_modules": "node_modules",
        "resources": "resources",
    },
    "commands": {
        "css": ["npx", "lessc", "{src}/ui/less/main.less", "{src}/ui/css/main.css"],
        "site_css": ["npx", "lessc", "{docs}/less/docs.less", "{docs}/css/docs.css"],
        "fonts": [
            "fontcustom", "compile", "{resources}/font-glyphs",
            "--output", "{src}/ui/font-glyphs", "--force",
        ],
        "lint": ["npx", "jshint", "--exclude", "{src}/ui/vendor", "{src}"],
        "docs": ["npx", "jsdoc", "-a", "all", "-r", "README.md", "{src}", "-d", "{docs}/jsdocs"],
        "compile": [
            "npx", "babel", "{src}", "--out-dir", "{build}",
            "--presets", "es2015", "--ignore", "{src}/ui/vendor/*",
        ],
        "pre_test": [
            "npx", "istanbul", "instrument", "--output",
            "{coverage}/instrumented", "{src}", "-x", "{src}/ui/**",
        ],
        "test_integration": ["npx", "mocha", "--reporter", "spec", "{tests}/integration/**/*-test.js"],
        "test_unit": ["npx", "mocha", "--reporter", "spec", "{tests}/unit/**/*-test.js"],
        "test_unit_ui": [
            "npx", "karma", "start", "{tests}/ui/karma.conf.js",
            "--single-run", "--manifest", "{manifest}",
        ],
        "coverage": ["npx", "istanbul", "report", "--dir", "{coverage}", "lcov", "text-summary"],
        "coverage_upload": ["node", "{node_modules}/coveralls/bin/coveralls.js"],
        "serve": ["npx", "electron", "./"],
        "packager": ["npx", "electron-packager"],
    },
    "release": {
        "electron_version": "0.36.0",
        "icon": "resources/icon/logo_icon",
        "overwrite": True,
        "force": True,
        "asar": True,
        "prune": True,
        "ignore_packages": [
            "bower",
            "babel-preset-es2015",
            "electron-packager",
            "electron-prebuilt",
            "fontcustom",
            "gulp|gulp-*",
            "jasmine-core",
            "jshint|jshint-*",
            "karma|karma-*",
            "run-sequence",
            "shelljs",
            "should",
            "sinon|sinon-*",
            "supertest",
        ],
    },
    "coverage": {
        "upload": False,
        "lcov": "coverage/lcov.info",
    },
    "serve_site": {
        "watch": "docs/less",
        "pattern": "*.less",
        "interval": 1.0,
    },
}


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def deep_merge(base: Dict, override: Dict) -> Dict:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def load_config(path: str | Path | None) -> dict:
    """Read the YAML build config and merge it over the defaults.

    A missing file is fine (defaults only); a file that is not a mapping is not.
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigError(f"Config must be a mapping: {p}")
    return deep_merge(DEFAULT_CONFIG, data)


def slugify(s: str) -> str:
    return (
        (s or "").strip().lower().replace(" ", "_").replace("/", "-").replace("\\", "-")
    )


def root_dir(p: Dict) -> Path:
    return Path(_get(p, "runtime", "root", default="."))


def path_of(p: Dict, key: str) -> Path:
    rel = _get(p, "paths", key)
    if rel is None:
        raise ConfigError(f"Unknown path key: {key}")
    return root_dir(p) / rel


def project_name(p: Dict) -> str:
    return str(_get(p, "project", "name", default="app"))


def project_version(p: Dict) -> str:
    return str(_get(p, "project", "version", default="0.0.0"))


def placeholders(p: Dict, **extra) -> Dict[str, str]:
    values = {k: str(path_of(p, k)) for k in (_get(p, "paths", default={}) or {})}
    values["root"] = str(root_dir(p))
    values.update({k: str(v) for k, v in extra.items()})
    return values


def command(p: Dict, key: str, **extra) -> List[str]:
    """Return the argv configured for `key` with `{placeholders}` filled in."""
    argv = _get(p, "commands", key)
    if not argv:
        raise ConfigError(f"No command configured for '{key}'")
    if isinstance(argv, str):
        argv = argv.split()
    values = placeholders(p, **extra)
    try:
        return [str(a).format(**values) for a in argv]
    except KeyError as e:
        raise ConfigError(f"Unknown placeholder {e} in command '{key}'") from e


def remove_tree(path: Path) -> bool:
    """rm -rf; a missing path is not an error. Returns True if something was removed."""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.exists():
        shutil.rmtree(path)
        return True
    return False
