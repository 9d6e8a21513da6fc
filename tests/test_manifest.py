"""Tests for the ordered UI test script manifest."""

import json

import pytest

from shipyard.orchestrator.errors import ManifestError
from shipyard.orchestrator.testing import UI_TEST_MANIFEST, ScriptManifest, entry


def test_builtin_manifest_is_valid():
    assert UI_TEST_MANIFEST.validate() is UI_TEST_MANIFEST


def test_jquery_loads_before_angular_and_specs_last():
    paths = UI_TEST_MANIFEST.paths
    jquery = next(i for i, p in enumerate(paths) if p.endswith("jquery.min.js"))
    angular = next(i for i, p in enumerate(paths) if p.endswith("angular/angular.js"))
    mocks = next(i for i, p in enumerate(paths) if p.endswith("angular-mocks.js"))
    assert jquery < angular < mocks
    assert paths[-1] == "./**/*-test.js"


def test_requirement_must_be_provided_earlier():
    manifest = ScriptManifest.of(
        [entry("app.js", requires=["angular"]), entry("angular.js", provides=["angular"])]
    )
    with pytest.raises(ManifestError, match="app.js requires angular"):
        manifest.validate()


def test_duplicates_rejected():
    manifest = ScriptManifest.of([entry("a.js"), entry("a.js")])
    with pytest.raises(ManifestError, match="Duplicate"):
        manifest.validate()


def test_write_preserves_order(tmp_path):
    manifest = ScriptManifest.of([entry("z.js"), entry("a.js"), entry("m.js")])
    out = manifest.write(tmp_path / "nested" / "manifest.json")
    assert json.loads(out.read_text()) == {"files": ["z.js", "a.js", "m.js"]}
