"""Tests for the polling file watcher behind serve-site."""

from shipyard.orchestrator.watch import snapshot, watch


def test_snapshot_filters_by_pattern(tmp_path):
    (tmp_path / "docs.less").write_text("a")
    (tmp_path / "notes.txt").write_text("b")
    snap = snapshot(tmp_path, "*.less")
    assert list(snap) == [str(tmp_path / "docs.less")]


def test_snapshot_of_missing_dir(tmp_path):
    assert snapshot(tmp_path / "nope") == {}


def test_change_triggers_callback(tmp_path):
    less = tmp_path / "docs.less"
    less.write_text("body {}")
    calls = []
    edits = iter(["body { color: red; }", None, "body { color: blue; margin: 0 }"])

    def fake_sleep(_):
        text = next(edits)
        if text is not None:
            less.write_text(text)

    notified = watch(tmp_path, calls.append, pattern="*.less", max_cycles=3, sleep=fake_sleep)

    assert notified == 2
    assert calls == [[str(less)], [str(less)]]


def test_no_change_no_callback(tmp_path):
    (tmp_path / "docs.less").write_text("body {}")
    calls = []
    assert watch(tmp_path, calls.append, max_cycles=2, sleep=lambda _: None) == 0
    assert calls == []
