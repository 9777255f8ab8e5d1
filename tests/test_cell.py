"""Tests for State cells."""

import math

from vanstate import State, same_value, state


class TestState:
    def test_get_set(self, runtime):
        s = runtime.state(42)
        assert s.get() == 42
        s.set(100)
        assert s.get() == 100

    def test_val_property(self, runtime):
        s = runtime.state("a")
        s.val = "b"
        assert s.val == "b"
        assert s.raw_val == "b"

    def test_default_initial_value(self, runtime):
        assert runtime.state().val is None

    def test_module_state_uses_default_runtime(self, runtime):
        assert state(1).runtime is runtime
        assert State(1).runtime is runtime

    def test_unobserved_commits_immediately(self, runtime, timer):
        s = runtime.state(1)
        s.val = 2
        assert s.old_val == 2
        assert timer.pending == 0

    def test_same_value_is_noop(self, runtime, timer):
        s = runtime.state(1)
        runtime.derive(lambda: s.val * 2)
        before = timer.pending
        s.val = 1
        assert timer.pending == before
        assert s.old_val == 1

    def test_observed_defers_commit(self, runtime, timer):
        s = runtime.state(1)
        runtime.derive(lambda: s.val)
        s.val = 2
        assert s.val == 2
        assert s.old_val == 1
        timer.advance()
        assert s.old_val == 2

    def test_bindings_and_listeners_are_snapshots(self, runtime):
        s = runtime.state(1)
        runtime.derive(lambda: s.val)
        listeners = s.listeners
        assert len(listeners) == 1
        assert isinstance(listeners, tuple)
        assert s.bindings == ()

    def test_repr(self, runtime):
        assert repr(runtime.state(5)) == "State(5)"


class TestSameValue:
    def test_identity(self):
        obj = object()
        assert same_value(obj, obj)

    def test_primitives_by_value(self):
        assert same_value("abc", "".join(["a", "bc"]))
        assert same_value(1, 1.0)
        assert same_value(None, None)

    def test_bool_is_not_int(self):
        assert not same_value(True, 1)
        assert not same_value(0, False)
        assert same_value(True, True)

    def test_mixed_primitive_types(self):
        assert not same_value("1", 1)
        assert not same_value(b"a", "a")

    def test_containers_by_identity(self):
        assert not same_value([1], [1])
        assert not same_value({"a": 1}, {"a": 1})

    def test_nan_never_equal(self):
        assert not same_value(math.nan, float("nan"))
        assert not same_value(math.nan, math.nan)

    def test_same_nan_object_reschedules(self, runtime, timer):
        s = runtime.state(math.nan)
        runtime.derive(lambda: s.val)
        before = timer.pending
        s.val = s.raw_val
        assert timer.pending == before + 1

    def test_new_container_triggers_update(self, runtime, timer):
        s = runtime.state([1])
        log = []
        runtime.derive(lambda: log.append(list(s.val)))
        s.val = [1]
        timer.advance()
        assert log == [[1], [1]]
