"""Tests for task registration, resolution and fail-fast execution."""

import pytest

from shipyard.orchestrator import Pipeline, Scheduler, TaskGraph, task
from shipyard.orchestrator.errors import CycleError, RegistrationError, TaskFailedError, TaskNotFoundError


def recorder(log, name, fail=False):
    def fn(params):
        log.append(name)
        if fail:
            raise RuntimeError(f"{name} broke")

    return fn


class TestRegistration:
    def test_unknown_dependency_fails_immediately(self):
        graph = TaskGraph()
        graph.register("clean", [], lambda params: None)
        with pytest.raises(RegistrationError, match="missing-task"):
            graph.register("build", ["clean", "missing-task"], lambda params: None)
        assert "build" not in graph

    def test_forward_reference_is_rejected(self):
        graph = TaskGraph()
        with pytest.raises(RegistrationError):
            graph.register("build", ["css"], lambda params: None)

    def test_duplicate_name(self):
        graph = TaskGraph()
        graph.register("css")
        with pytest.raises(RegistrationError, match="already registered"):
            graph.register("css")

    def test_unknown_stage(self):
        graph = TaskGraph()
        with pytest.raises(RegistrationError):
            graph.register("test", stages=["lint"])

    def test_from_specs_allows_any_order(self):
        @task(name="b", deps=["a"])
        def b(params):
            pass

        @task(name="a")
        def a(params):
            pass

        graph = TaskGraph.from_specs([b._task_spec, a._task_spec])
        assert graph.names() == ["a", "b"]

    def test_from_specs_unresolvable(self):
        @task(name="b", deps=["nowhere"])
        def b(params):
            pass

        with pytest.raises(RegistrationError, match="nowhere"):
            TaskGraph.from_specs([b._task_spec])

    def test_help_defaults_to_docstring(self):
        @task(name="x")
        def x(params):
            """First line.

            More detail.
            """

        assert x._task_spec.help == "First line."

    def test_unknown_task_on_run(self):
        with pytest.raises(TaskNotFoundError):
            Scheduler(TaskGraph()).run("nope", {})


class TestResolution:
    def test_serve_scenario(self):
        log = []
        graph = TaskGraph()
        for name in ("clean", "css", "dev-symlinks"):
            graph.register(name, [], recorder(log, name))
        graph.register("build", ["clean", "css", "dev-symlinks"], recorder(log, "build"))
        graph.register("serve", ["build"], recorder(log, "serve"))

        results = Scheduler(graph).run("serve", {})

        assert log == ["clean", "css", "dev-symlinks", "build", "serve"]
        assert [r.name for r in results] == log
        assert all(r.ok for r in results)

    def test_diamond_runs_shared_dependency_once(self):
        log = []
        graph = TaskGraph()
        graph.register("base", [], recorder(log, "base"))
        graph.register("left", ["base"], recorder(log, "left"))
        graph.register("right", ["base"], recorder(log, "right"))
        graph.register("top", ["left", "right"], recorder(log, "top"))

        Scheduler(graph).run("top", {})

        assert log == ["base", "left", "right", "top"]

    def test_every_task_precedes_its_dependents(self):
        graph = TaskGraph()
        graph.register("a")
        graph.register("b", ["a"])
        graph.register("c", ["a", "b"])
        graph.register("d", ["c", "b"])
        graph.register("e", ["d", "a"])
        order = graph.resolve("e")
        assert sorted(order) == ["a", "b", "c", "d", "e"]
        for spec in graph:
            for dep in spec.deps:
                assert order.index(dep) < order.index(spec.name)

    def test_cycle_detected_before_anything_runs(self):
        log = []

        @task(name="a", deps=["c"])
        def a(params):
            log.append("a")

        @task(name="b", deps=["a"])
        def b(params):
            log.append("b")

        @task(name="c", deps=["b"])
        def c(params):
            log.append("c")

        @task(name="solo")
        def solo(params):
            log.append("solo")

        graph = TaskGraph.from_specs([s._task_spec for s in (a, b, c, solo)])
        with pytest.raises(CycleError) as exc:
            Scheduler(graph).run("solo", {})
        assert log == []
        assert exc.value.path[0] == exc.value.path[-1]

    def test_self_cycle_via_pipeline_stage(self):
        @task(name="loop", stages=["loop"])
        def loop(params):
            pass

        graph = TaskGraph.from_specs([loop._task_spec])
        with pytest.raises(CycleError):
            Scheduler(graph).run("loop", {})


class TestFailFast:
    def test_failure_stops_remaining_tasks(self):
        log = []
        graph = TaskGraph()
        graph.register("a", [], recorder(log, "a"))
        graph.register("b", [], recorder(log, "b", fail=True))
        graph.register("c", [], recorder(log, "c"))
        graph.register("all", ["a", "b", "c"], recorder(log, "all"))

        with pytest.raises(TaskFailedError) as exc:
            Scheduler(graph).run("all", {})

        assert log == ["a", "b"]
        assert exc.value.task == "b"
        assert "b broke" in str(exc.value)
        assert [r.status for r in exc.value.results] == ["ok", "failed"]

    def test_pipeline_stage_failure_identifies_stage(self):
        log = []
        graph = TaskGraph()
        graph.register("A", [], recorder(log, "A"))
        graph.register("B", [], recorder(log, "B", fail=True))
        graph.register("C", [], recorder(log, "C"))
        scheduler = Scheduler(graph)

        with pytest.raises(TaskFailedError) as exc:
            Pipeline(scheduler, ["A", "B", "C"]).run({})

        assert log == ["A", "B"]
        assert exc.value.task == "B"

    def test_pipeline_task_reports_failing_stage_as_origin(self):
        log = []
        graph = TaskGraph()
        graph.register("A", [], recorder(log, "A"))
        graph.register("B", [], recorder(log, "B", fail=True))
        graph.register("C", [], recorder(log, "C"))
        graph.register("all", stages=["A", "B", "C"], fn=recorder(log, "all"))

        with pytest.raises(TaskFailedError) as exc:
            Scheduler(graph).run("all", {})

        assert log == ["A", "B"]
        assert exc.value.task == "all"
        assert exc.value.origin == "B"
        assert exc.value.chain == ["all", "B"]

    def test_stage_dependency_failure_keeps_its_name(self):
        log = []
        graph = TaskGraph()
        graph.register("styles", [], recorder(log, "styles", fail=True))
        graph.register("build", ["styles"], recorder(log, "build"))
        graph.register("ship", stages=["build"])

        with pytest.raises(TaskFailedError) as exc:
            Scheduler(graph).run("ship", {})

        assert log == ["styles"]
        assert exc.value.chain == ["ship", "build", "styles"]
        assert exc.value.origin == "styles"
        assert "styles broke" in str(exc.value.root_cause)

    def test_stages_resolve_independently(self):
        log = []
        graph = TaskGraph()
        graph.register("unlink", [], recorder(log, "unlink"))
        graph.register("dev", ["unlink"], recorder(log, "dev"))
        graph.register("prod", ["unlink"], recorder(log, "prod"))
        graph.register("swap", stages=["dev", "prod"])

        Scheduler(graph).run("swap", {})

        assert log == ["unlink", "dev", "unlink", "prod"]

    def test_callable_stages_see_params(self):
        log = []
        graph = TaskGraph()
        graph.register("x", [], recorder(log, "x"))
        graph.register("y", [], recorder(log, "y"))
        graph.register("p", stages=lambda params: ["x", "y"] if params.get("both") else ["x"])

        Scheduler(graph).run("p", {"both": False})
        Scheduler(graph).run("p", {"both": True})

        assert log == ["x", "x", "y"]

    def test_exit_code_comes_from_tool_error(self):
        from shipyard.orchestrator.errors import UnitTestFailure

        def fails(params):
            raise UnitTestFailure("mocha exited with code 3", returncode=3)

        graph = TaskGraph()
        graph.register("test-unit", [], fails)
        graph.register("test", stages=["test-unit"])
        with pytest.raises(TaskFailedError) as exc:
            Scheduler(graph).run("test", {})
        assert exc.value.returncode == 3

    def test_runtime_section_is_added_without_mutating_caller(self):
        seen = {}

        def grab(params):
            seen.update(params["runtime"])

        graph = TaskGraph()
        graph.register("t", [], grab)
        params = {"runtime": {"root": "/w"}}
        Scheduler(graph).run("t", params)
        assert seen["root"] == "/w"
        assert "run_id" in seen
        assert params == {"runtime": {"root": "/w"}}
