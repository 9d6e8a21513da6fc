from __future__ import annotations

"""Ordered script manifest for the sandboxed UI test runner.

The UI runner loads scripts strictly in manifest order, so a script providing a
capability (jquery, angular, ...) has to come before every script requiring it.
`ScriptManifest.validate` enforces that and is run before the manifest is
handed to the runner.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

from .errors import ManifestError


@dataclass(frozen=True)
class ManifestEntry:
    path: str
    provides: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()


def entry(path: str, provides: Iterable[str] = (), requires: Iterable[str] = ()) -> ManifestEntry:
    return ManifestEntry(path, tuple(provides), tuple(requires))


@dataclass(frozen=True)
class ScriptManifest:
    entries: Tuple[ManifestEntry, ...]

    @classmethod
    def of(cls, entries: Iterable[ManifestEntry]) -> "ScriptManifest":
        return cls(tuple(entries))

    @property
    def paths(self) -> List[str]:
        return [e.path for e in self.entries]

    def validate(self) -> "ScriptManifest":
        seen: set[str] = set()
        provided: dict[str, str] = {}
        for i, e in enumerate(self.entries):
            if e.path in seen:
                raise ManifestError(f"Duplicate manifest entry #{i}: {e.path}")
            seen.add(e.path)
            missing = [r for r in e.requires if r not in provided]
            if missing:
                raise ManifestError(
                    f"{e.path} requires {', '.join(missing)} which no earlier entry provides",
                    metadata={"entry": e.path, "missing": missing},
                )
            for cap in e.provides:
                provided.setdefault(cap, e.path)
        return self

    def write(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"files": self.paths}, f, indent=2)
        return path


VENDOR = "../../src/ui/vendor"

UI_TEST_MANIFEST = ScriptManifest.of(
    [
        entry("karma.shim.js", provides=["shim"]),
        entry(f"{VENDOR}/jquery/dist/jquery.min.js", provides=["jquery"]),
        entry(f"{VENDOR}/toastr/toastr.min.js", provides=["toastr"], requires=["jquery"]),
        entry(f"{VENDOR}/jquery-ui/jquery-ui.min.js", provides=["jquery-ui"], requires=["jquery"]),
        entry(f"{VENDOR}/bootstrap/dist/js/bootstrap.js", provides=["bootstrap"], requires=["jquery"]),
        entry(f"{VENDOR}/angular/angular.js", provides=["angular"], requires=["jquery"]),
        entry(
            f"{VENDOR}/angular-ui-sortable/sortable.js",
            provides=["ui.sortable"],
            requires=["angular", "jquery-ui"],
        ),
        entry(
            f"{VENDOR}/angular-bootstrap/ui-bootstrap-tpls.js",
            provides=["ui.bootstrap"],
            requires=["angular"],
        ),
        entry(f"{VENDOR}/underscore/underscore.js", provides=["underscore"]),
        entry(f"{VENDOR}/angular-sanitize/angular-sanitize.js", provides=["ngSanitize"], requires=["angular"]),
        entry(
            f"{VENDOR}/angular-auto-grow-input/dist/angular-auto-grow-input.js",
            provides=["auto-grow-input"],
            requires=["angular"],
        ),
        entry(f"{VENDOR}/jquery.splitter/js/jquery.splitter-0.15.0.js", provides=["splitter"], requires=["jquery"]),
        entry(f"{VENDOR}/moment/moment.js", provides=["moment"]),
        entry(f"{VENDOR}/ng-prettyjson/src/ng-prettyjson.js", provides=["ngPrettyJson"], requires=["angular"]),
        entry(f"{VENDOR}/ng-prettyjson/src/ng-prettyjson-tmpl.js", requires=["ngPrettyJson"]),
        entry(f"{VENDOR}/Keypress/keypress.js", provides=["keypress"]),
        entry(f"{VENDOR}/codemirror/lib/codemirror.js", provides=["codemirror"]),
        entry(f"{VENDOR}/codemirror/mode/javascript/javascript.js", requires=["codemirror"]),
        entry(f"{VENDOR}/codemirror/addon/hint/show-hint.js", requires=["codemirror"]),
        entry("../../src/ui/vendorCustom/codemirror-formatting.js", requires=["codemirror"]),
        entry("../../src/ui/vendorCustom/ng-bs-animated-button.js", requires=["angular"]),
        entry(f"{VENDOR}/angular-mocks/angular-mocks.js", provides=["ngMock"], requires=["angular"]),
        entry(
            "../../src/ui/app.js",
            provides=["app"],
            requires=["angular", "ui.sortable", "ui.bootstrap", "ngSanitize", "ngPrettyJson"],
        ),
        entry("../../src/ui/components/**/*.js", requires=["app"]),
        entry("../../src/ui/directives/**/*.js", requires=["app"]),
        entry("../../src/ui/filters/**/*.js", requires=["app"]),
        entry("../../src/ui/services/**/*.js", requires=["app"]),
        entry("./**/*-test.js", requires=["app", "ngMock"]),
    ]
)
