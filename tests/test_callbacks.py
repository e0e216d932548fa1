"""
Tests for FDC3 Bus Callback Registry
====================================
"""

from fdc3_bus.callbacks import ADD_CONTEXT, ADD_INTENT, CallbackRegistry


class TestCallbackRegistry:

    def test_execute_in_registration_order(self):
        registry = CallbackRegistry()
        registry.add(ADD_CONTEXT, lambda value: f"first {value}")
        registry.add(ADD_CONTEXT, lambda value: f"second {value}")
        assert registry.execute(ADD_CONTEXT, "ctx") == ["first ctx", "second ctx"]

    def test_channels_are_separate(self):
        registry = CallbackRegistry()
        calls = []
        registry.add(ADD_INTENT, calls.append)
        registry.execute(ADD_CONTEXT, "ctx")
        assert calls == []

    def test_remove_only_that_registration(self):
        registry = CallbackRegistry()
        calls = []
        remove = registry.add(ADD_CONTEXT, calls.append)
        registry.add(ADD_CONTEXT, calls.append)
        remove()
        remove()
        registry.execute(ADD_CONTEXT, "ctx")
        assert calls == ["ctx"]
        assert registry.count(ADD_CONTEXT) == 1

    def test_raising_callback_does_not_stop_dispatch(self):
        registry = CallbackRegistry()
        calls = []

        def broken(value):
            raise RuntimeError("boom")

        registry.add(ADD_CONTEXT, broken)
        registry.add(ADD_CONTEXT, calls.append)
        registry.execute(ADD_CONTEXT, "ctx")
        assert calls == ["ctx"]

    def test_removal_during_dispatch(self):
        """A callback removing another mid-dispatch does not break the loop."""
        registry = CallbackRegistry()
        calls = []
        removers = {}

        def first(value):
            calls.append("first")
            removers["second"]()

        removers["first"] = registry.add(ADD_CONTEXT, first)
        removers["second"] = registry.add(ADD_CONTEXT, lambda value: calls.append("second"))

        registry.execute(ADD_CONTEXT, "ctx")
        assert calls == ["first", "second"]

        calls.clear()
        registry.execute(ADD_CONTEXT, "ctx")
        assert calls == ["first"]

    def test_addition_during_dispatch(self):
        registry = CallbackRegistry()
        calls = []

        def adder(value):
            calls.append("adder")
            registry.add(ADD_CONTEXT, lambda v: calls.append("late"))

        registry.add(ADD_CONTEXT, adder)
        registry.execute(ADD_CONTEXT, "ctx")
        assert calls == ["adder"]
        assert registry.count(ADD_CONTEXT) == 2
