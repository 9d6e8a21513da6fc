"""Static checks, tests and coverage.

`test` runs the stages fail-fast in this order:
lint → pre-test → test-integration → test-unit → test-unit-ui → coverage
(→ coverage-upload when `coverage.upload` is set). Every spawned runner gets
the test execution mode explicitly.
"""

from ..orchestrator import task
from ..orchestrator.errors import (
    CoverageFailure,
    IntegrationTestFailure,
    StaticCheckFailure,
    UIUnitTestFailure,
    UnitTestFailure,
)
from ..orchestrator.logging import get_logger
from ..orchestrator.process import ExecutionMode, run_tool
from ..orchestrator.testing import UI_TEST_MANIFEST, ScriptManifest, entry
from ..orchestrator.utils import _get, command, path_of, root_dir


TEST_STAGES = [
    "lint",
    "pre-test",
    "test-integration",
    "test-unit",
    "test-unit-ui",
    "coverage",
]


def pipeline_stages(params: dict) -> list:
    stages = list(TEST_STAGES)
    if _get(params, "coverage", "upload", default=False):
        stages.append("coverage-upload")
    return stages


def ui_manifest(params: dict) -> ScriptManifest:
    """The configured UI manifest, or the built-in one."""
    raw = _get(params, "ui_tests", "manifest")
    if not raw:
        return UI_TEST_MANIFEST
    entries = []
    for item in raw:
        if isinstance(item, str):
            entries.append(entry(item))
        else:
            entries.append(
                entry(item["path"], item.get("provides", ()), item.get("requires", ()))
            )
    return ScriptManifest.of(entries)


@task(name="lint")
def lint(params: dict):
    """Static check of src/ (vendor code excluded)."""
    run_tool(command(params, "lint"), params=params, error=StaticCheckFailure)


@task(name="pre-test")
def pre_test(params: dict):
    """Instrument backend sources for coverage."""
    path_of(params, "coverage").mkdir(parents=True, exist_ok=True)
    run_tool(
        command(params, "pre_test"),
        params=params,
        error=CoverageFailure,
        mode=ExecutionMode.TEST,
    )


@task(name="test-integration")
def integration_tests(params: dict):
    """Run the integration suite."""
    run_tool(
        command(params, "test_integration"),
        params=params,
        error=IntegrationTestFailure,
        mode=ExecutionMode.TEST,
        stream=True,
    )


@task(name="test-unit")
def unit_tests(params: dict):
    """Run the backend unit suite."""
    run_tool(
        command(params, "test_unit"),
        params=params,
        error=UnitTestFailure,
        mode=ExecutionMode.TEST,
        stream=True,
    )


@task(name="test-unit-ui")
def ui_unit_tests(params: dict):
    """Run the UI unit suite in the sandboxed runner, loading scripts in manifest order."""
    logger = get_logger("test-unit-ui")
    manifest = ui_manifest(params).validate()
    manifest_path = manifest.write(path_of(params, "build") / "ui-test-manifest.json")
    logger.info("UI manifest: %d scripts -> %s", len(manifest.entries), manifest_path)
    run_tool(
        command(params, "test_unit_ui", manifest=manifest_path),
        params=params,
        error=UIUnitTestFailure,
        mode=ExecutionMode.TEST,
        stream=True,
    )


@task(name="coverage")
def coverage_report(params: dict):
    """Write coverage reports (lcov + summary)."""
    run_tool(
        command(params, "coverage"),
        params=params,
        error=CoverageFailure,
        mode=ExecutionMode.TEST,
    )


@task(name="coverage-upload")
def coverage_upload(params: dict):
    """Pipe the lcov report into the coverage service uploader."""
    lcov = root_dir(params) / _get(params, "coverage", "lcov", default="coverage/lcov.info")
    if not lcov.exists():
        raise CoverageFailure(f"No lcov report at {lcov}; run `coverage` first")
    run_tool(
        command(params, "coverage_upload"),
        params=params,
        error=CoverageFailure,
        stdin_path=lcov,
    )


@task(name="test", stages=pipeline_stages)
def run_tests(params: dict):
    """Full fail-fast test pipeline."""
