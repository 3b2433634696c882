import pytest

from chainrun.dag import build_plan, expand
from chainrun.dsl import cmd, ref, sh, task
from chainrun.errors import (
    CyclicDependencyError,
    PlaceholderError,
    TaskArgumentError,
    UnknownTaskError,
    WorkingDirectoryError,
)
from chainrun.registry import TaskRegistry
from chainrun.workspace import SUBCRATES, workspace_tasks


def _names(expanded):
    return [step.label for _, step in expanded]


@pytest.fixture
def workspace(tmp_path):
    for sub in SUBCRATES:
        (tmp_path / sub).mkdir()
    return TaskRegistry.from_definitions(workspace_tasks()), tmp_path


def test_expansion_is_preorder_left_to_right():
    registry = TaskRegistry.from_definitions([
        task("top", sh("echo 1", name="1"), "mid", sh("echo 4", name="4")),
        task("mid", sh("echo 2", name="2"), "leaf"),
        task("leaf", sh("echo 3", name="3")),
    ])
    expanded = expand(registry, "top")
    assert _names(expanded) == ["1", "2", "3", "4"]
    assert [t for t, _ in expanded] == ["top", "mid", "leaf", "top"]


def test_direct_self_reference_is_a_cycle():
    registry = TaskRegistry.from_definitions([task("loop", sh("true"), "loop")])
    with pytest.raises(CyclicDependencyError) as exc:
        expand(registry, "loop")
    assert exc.value.cycle == ("loop", "loop")


def test_transitive_cycle_is_named():
    registry = TaskRegistry.from_definitions([
        task("a", sh("true"), "b"),
        task("b", "c"),
        task("c", "b"),
    ])
    with pytest.raises(CyclicDependencyError, match="b -> c -> b"):
        expand(registry, "a")


def test_diamond_is_not_a_cycle():
    registry = TaskRegistry.from_definitions([
        task("a", "b", "c"),
        task("b", "d"),
        task("c", "d"),
        task("d", sh("echo d", name="d")),
    ])
    assert _names(expand(registry, "a")) == ["d", "d"]


def test_unknown_reference_names_referrer():
    registry = TaskRegistry.from_definitions([task("check-pr", "lint", "test"), task("lint")])
    with pytest.raises(UnknownTaskError) as exc:
        expand(registry, "check-pr")
    assert exc.value.name == "test"
    assert exc.value.referenced_by == "check-pr"


def test_unknown_top_level_task():
    registry = TaskRegistry.from_definitions([task("lint")])
    with pytest.raises(UnknownTaskError) as exc:
        expand(registry, "nope")
    assert exc.value.referenced_by is None


def test_empty_task_expands_to_nothing(tmp_path):
    registry = TaskRegistry.from_definitions([task("noop")])
    assert build_plan(registry, "noop", tmp_path) == []


def test_parameters_are_substituted_through_references():
    registry = TaskRegistry.from_definitions([
        task("outer", ref("inner", "${WHO}-x"), params=["WHO"]),
        task(
            "inner",
            cmd("echo", "hi ${NAME}", cwd="${NAME}", env={"GREETING": "${NAME}"}),
            params=["NAME"],
        ),
    ])
    [(owner, step)] = expand(registry, "outer", ["bob"])
    assert owner == "inner"
    assert step.args == ("hi bob-x",)
    assert step.cwd == "bob-x"
    assert step.env == {"GREETING": "bob-x"}


def test_wrong_argument_count_is_rejected():
    registry = TaskRegistry.from_definitions([
        task("lint", ref("lint-one")),
        task("lint-one", sh("true"), params=["SUBCRATE"]),
    ])
    with pytest.raises(TaskArgumentError) as exc:
        expand(registry, "lint")
    assert exc.value.task == "lint-one"
    assert exc.value.referenced_by == "lint"

    with pytest.raises(TaskArgumentError):
        expand(registry, "lint-one")


def test_undefined_placeholder_is_rejected():
    registry = TaskRegistry.from_definitions([task("t", sh("echo ${MISSING}"))])
    with pytest.raises(TaskArgumentError, match="MISSING"):
        expand(registry, "t")


def test_lint_subcrate_cwd_is_scoped_to_that_subcrate(workspace):
    registry, root = workspace
    plan = build_plan(registry, "lint-subcrate", root, ["nodes-common"])
    assert len(plan) == 2
    assert all(p.cwd == (root / "nodes-common").resolve() for p in plan)
    assert plan[1].step.env == {"RUSTDOCFLAGS": "-D warnings"}

    # a later task runs from the project root again
    [test_step] = build_plan(registry, "test", root)
    assert test_step.cwd == root.resolve()


def test_lint_lints_every_subcrate_after_fmt(workspace):
    registry, root = workspace
    plan = build_plan(registry, "lint", root)
    assert plan[0].step.argv() == ["cargo", "fmt", "--all", "--", "--check"]
    assert [p.cwd.name for p in plan[1:]] == [
        "nodes-common", "nodes-common", "nodes-observability", "nodes-observability",
    ]


def test_check_pr_is_lint_then_test(workspace):
    registry, root = workspace
    check_pr = build_plan(registry, "check-pr", root)
    lint = build_plan(registry, "lint", root)
    test = build_plan(registry, "test", root)

    assert [p.step for p in check_pr] == [p.step for p in lint] + [p.step for p in test]
    assert [p.cwd for p in check_pr] == [p.cwd for p in lint] + [p.cwd for p in test]


def test_missing_subcrate_directory_fails_before_running(tmp_path):
    registry = TaskRegistry.from_definitions(workspace_tasks())
    with pytest.raises(WorkingDirectoryError) as exc:
        build_plan(registry, "lint-subcrate", tmp_path, ["nodes-missing"])
    assert exc.value.path == (tmp_path / "nodes-missing").resolve()


@pytest.mark.parametrize("subcrate", ["..", "../elsewhere", "/"])
def test_subcrate_must_stay_inside_project_root(tmp_path, subcrate):
    root = tmp_path / "workspace"
    root.mkdir()
    (tmp_path / "elsewhere").mkdir()
    registry = TaskRegistry.from_definitions(workspace_tasks())

    with pytest.raises(WorkingDirectoryError) as exc:
        build_plan(registry, "lint-subcrate", root, [subcrate])
    assert exc.value.reason == "cwd outside project root"


def test_literal_dollar_needs_escaping():
    registry = TaskRegistry.from_definitions([
        task("cols", sh("awk '{print $1}' f")),
        task("cols-ok", sh("awk '{print $$1}' f")),
    ])
    with pytest.raises(PlaceholderError, match="cols"):
        expand(registry, "cols")
    [(_, step)] = expand(registry, "cols-ok")
    assert step.args == ("{print $1}", "f")
