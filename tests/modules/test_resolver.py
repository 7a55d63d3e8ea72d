"""Tests for fixed-point module resolution."""

import pytest

from reversal_rooms.modules import ActivationResult
from reversal_rooms.modules import DependencyState
from reversal_rooms.modules import LoggingActivator
from reversal_rooms.modules import ModuleActivationError
from reversal_rooms.modules import ModuleResolver
from reversal_rooms.modules import ModuleStatus
from reversal_rooms.modules import ResolutionStalledError
from reversal_rooms.modules import resolve_modules


def _assert_sound(result):
    """Every loaded module has resolved requirements whose targets loaded earlier."""
    order = result.load_order
    for position, module_id in enumerate(order):
        for requirement, state in result.requirements_of(module_id):
            assert state.kind is DependencyState.RESOLVED
            assert requirement.target in order[:position]
            assert result.modules[requirement.target].version >= requirement.minimum


def test_empty_input():
    result = resolve_modules([])

    assert result.modules == {}
    assert result.failed_modules == []
    assert result.passes == 0


def test_chain_loads_dependencies_first(make_module):
    activator = LoggingActivator()
    result = resolve_modules(
        [
            make_module("a", requires=[("b", "1.0.0")]),
            make_module("b", requires=[("c", "1.0.0")]),
            make_module("c"),
        ],
        activator,
    )

    assert result.load_order == ["c", "b", "a"]
    assert activator.order == ["c", "b", "a"]
    assert result.failed_modules == []
    _assert_sound(result)


def test_chain_in_dependency_order_takes_one_pass(make_module):
    result = resolve_modules(
        [
            make_module("c"),
            make_module("b", requires=[("c", "1.0.0")]),
            make_module("a", requires=[("b", "1.0.0")]),
        ]
    )

    assert result.load_order == ["c", "b", "a"]
    assert result.passes == 1


def test_diamond(make_module):
    result = resolve_modules(
        [
            make_module("app", requires=[("left", "1.0.0"), ("right", "1.0.0")]),
            make_module("left", requires=[("base", "1.0.0")]),
            make_module("right", requires=[("base", "1.0.0")]),
            make_module("base"),
        ]
    )

    assert result.load_order[0] == "base"
    assert result.load_order[-1] == "app"
    _assert_sound(result)


def test_mutual_cycle_fails_both(make_module):
    activator = LoggingActivator()
    result = resolve_modules(
        [make_module("a", requires=[("b", "1.0.0")]), make_module("b", requires=[("a", "1.0.0")])],
        activator,
    )

    assert result.modules == {}
    assert result.failed_ids == ["a", "b"]
    assert activator.activated == []
    assert result.state_of("a", 0).kind is DependencyState.CIRCULAR
    assert result.state_of("b", 0).kind is DependencyState.CIRCULAR
    assert len(result.cycles) == 1
    assert result.passes == 1


def test_stale_cycle_fails_in_order(make_module):
    result = resolve_modules(
        [
            make_module("a", "1.0.0", requires=[("b", "1.0.0")]),
            make_module("b", "1.0.0", requires=[("a", "2.0.0")]),
        ]
    )

    assert result.failed_ids == ["b", "a"]
    assert result.state_of("b", 0).kind is DependencyState.OLD_VERSION
    assert result.state_of("a", 0).kind is DependencyState.NOT_FOUND
    assert result.cycles == []


def test_version_gate(make_module):
    result = resolve_modules(
        [make_module("a", requires=[("b", "2.0.0")]), make_module("b", "1.0.0")]
    )

    assert result.load_order == ["b"]
    assert result.failed_ids == ["a"]
    assert result.state_of("a", 0).kind is DependencyState.OLD_VERSION


def test_missing_dependency(make_module):
    result = resolve_modules([make_module("a", requires=[("ghost", "1.0.0")]), make_module("b")])

    assert result.load_order == ["b"]
    assert result.failed_ids == ["a"]
    assert result.state_of("a", 0).kind is DependencyState.NOT_FOUND


def test_failure_cascades_to_dependents(make_module):
    result = resolve_modules(
        [
            make_module("top", requires=[("mid", "1.0.0")]),
            make_module("mid", requires=[("ghost", "1.0.0")]),
            make_module("other"),
        ]
    )

    assert result.load_order == ["other"]
    assert result.failed_ids == ["mid", "top"]
    assert result.state_of("top", 0).kind is DependencyState.NOT_FOUND


def test_dependent_of_a_cycle_fails(make_module):
    result = resolve_modules(
        [
            make_module("a", requires=[("b", "1.0.0")]),
            make_module("b", requires=[("a", "1.0.0")]),
            make_module("x", requires=[("a", "1.0.0")]),
        ]
    )

    assert result.modules == {}
    assert set(result.failed_ids) == {"a", "b", "x"}
    assert result.state_of("x", 0).kind is DependencyState.NOT_FOUND


def test_resolved_state_carries_version(make_module):
    result = resolve_modules([make_module("a", requires=[("b", "1.0.0")]), make_module("b", "1.4.2")])

    state = result.state_of("a", 0)
    assert state.kind is DependencyState.RESOLVED
    assert str(state.version) == "1.4.2"


def test_duplicates_resolve_against_newest(make_module):
    result = resolve_modules(
        [
            make_module("b", "1.0.0", location="/mods/old"),
            make_module("a", requires=[("b", "2.0.0")]),
            make_module("b", "2.0.0", location="/mods/new"),
        ]
    )

    assert result.load_order == ["b", "a"]
    assert result.modules["b"].location == "/mods/new"
    assert [d.id for d in result.all_modules].count("b") == 1


def test_every_module_ends_up_loaded_or_failed(make_module):
    names = ["m0", "m1", "m2", "m3", "m4"]
    descriptors = [make_module(name, requires=[(other, "1.0.0") for other in names if other != name]) for name in names]
    descriptors.append(make_module("free"))

    result = resolve_modules(descriptors)

    assert result.load_order == ["free"]
    assert sorted(result.failed_ids) == names
    assert result.passes <= len(descriptors)
    assert all(state.is_terminal for state in result.states.values())


def test_no_requirement_left_pending(make_module):
    result = resolve_modules(
        [
            make_module("a", requires=[("b", "1.0.0"), ("c", "3.0.0")]),
            make_module("b", requires=[("c", "1.0.0")]),
            make_module("c", "2.0.0", requires=[("d", "1.0.0")]),
            make_module("d"),
            make_module("e", requires=[("e", "1.0.0")]),
        ]
    )

    assert all(state.kind is not DependencyState.PENDING for state in result.states.values())
    assert result.load_order == ["d", "c", "b"]
    assert set(result.failed_ids) == {"a", "e"}
    _assert_sound(result)


class TestActivation:
    """Activator outcomes feed back into resolution."""

    def test_failed_result_cascades(self, make_module):
        def activate(descriptor):
            if descriptor.id == "b":
                return ActivationResult.failed("missing entry point")
            return ActivationResult.ok()

        result = resolve_modules([make_module("a", requires=[("b", "1.0.0")]), make_module("b")], activate)

        assert result.modules == {}
        assert result.failed_ids == ["b", "a"]
        assert result.activation_errors == {"b": "missing entry point"}
        assert result.state_of("a", 0).kind is DependencyState.NOT_FOUND

    def test_activation_error_is_a_failure(self, make_module):
        def activate(descriptor):
            raise ModuleActivationError(descriptor.id, "boom")

        result = resolve_modules([make_module("a")], activate)

        assert result.failed_ids == ["a"]
        assert result.activation_errors == {"a": "boom"}

    def test_none_counts_as_success(self, make_module):
        calls = []
        result = resolve_modules([make_module("a")], calls.append)

        assert result.load_order == ["a"]
        assert [d.id for d in calls] == ["a"]

    def test_unexpected_exception_propagates(self, make_module):
        def activate(descriptor):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            resolve_modules([make_module("a")], activate)

    def test_each_module_activated_once(self, make_module):
        activator = LoggingActivator()
        resolver = ModuleResolver([make_module("a"), make_module("b", requires=[("a", "1.0.0")])], activator)

        first = resolver.resolve()
        second = resolver.resolve()

        assert first is second
        assert activator.order == ["a", "b"]


class TestResultQueries:
    def test_status_of(self, make_module):
        result = resolve_modules([make_module("a"), make_module("b", requires=[("ghost", "1.0.0")])])

        assert result.status_of("a") is ModuleStatus.RESOLVED
        assert result.status_of("b") is ModuleStatus.FAILED
        assert result.status_of("ghost") is None

    def test_unresolved_requirements(self, make_module):
        result = resolve_modules(
            [make_module("a", requires=[("b", "1.0.0"), ("ghost", "1.0.0")]), make_module("b")]
        )

        unresolved = result.unresolved_requirements("a")
        assert [(r.target, s.kind) for r, s in unresolved] == [("ghost", DependencyState.NOT_FOUND)]
        assert result.requirements_of("missing") == []


def test_stall_is_reported(make_module, monkeypatch):
    # Without cycle classification a mutual pair can never settle
    monkeypatch.setattr("reversal_rooms.modules.resolver.CycleClassifier.classify", lambda self: [])

    with pytest.raises(ResolutionStalledError) as exc_info:
        resolve_modules([make_module("a", requires=[("b", "1.0.0")]), make_module("b", requires=[("a", "1.0.0")])])

    assert exc_info.value.pending == ["a", "b"]
