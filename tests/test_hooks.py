"""Tests for lifecycle hooks."""

import logging
import textwrap

import pytest
from pagemark.hooks import HookManager, HookType, hook


class TestHookManager:
    """Tests for HookManager."""

    def test_register_and_execute(self):
        """Test hooks run in registration order with the context."""
        manager = HookManager()
        calls = []
        manager.register_function(HookType.BEFORE_EXPORT, lambda c: calls.append(("one", c["export_id"])))
        manager.register_function(HookType.BEFORE_EXPORT, lambda c: calls.append(("two", c["export_id"])))
        manager.register_function(HookType.AFTER_EXPORT, lambda c: calls.append(("after", c["export_id"])))

        assert manager.execute_hooks(HookType.BEFORE_EXPORT, {"export_id": "e1"}) == 0
        assert calls == [("one", "e1"), ("two", "e1")]
        assert len(manager) == 3

    def test_decorator(self):
        """Test the on() decorator registers the function."""
        manager = HookManager()

        @manager.on(HookType.AFTER_EXPORT)
        def notify(context):
            context["notified"] = True

        context = {}
        manager.execute_hooks(HookType.AFTER_EXPORT, context)
        assert context == {"notified": True}
        assert manager.hooks[HookType.AFTER_EXPORT][0].name == "notify"

    def test_failing_hook_does_not_stop_others(self, caplog):
        """Test a raising hook is logged and counted."""
        manager = HookManager()
        calls = []

        def broken(context):
            raise RuntimeError("cache offline")

        manager.register_function(HookType.BEFORE_EXPORT, broken)
        manager.register_function(HookType.BEFORE_EXPORT, lambda c: calls.append("ran"))

        with caplog.at_level(logging.ERROR, logger="pagemark"):
            assert manager.execute_hooks(HookType.BEFORE_EXPORT, {}) == 1

        assert calls == ["ran"]
        assert "broken" in caplog.text

    def test_load_from_file(self, tmp_path):
        """Test hooks are discovered by marker and by name."""
        hooks_file = tmp_path / "hooks.py"
        hooks_file.write_text(
            textwrap.dedent(
                """
                from pagemark.hooks import HookType, hook

                CALLS = []

                def before_export_warm(context):
                    CALLS.append("warm")

                def after_export_flush(context):
                    CALLS.append("flush")

                @hook(HookType.AFTER_EXPORT)
                def notify(context):
                    CALLS.append("notify")

                def helper(context):
                    CALLS.append("helper")
                """
            ),
            encoding="utf-8",
        )

        manager = HookManager()
        assert manager.load_from_file(hooks_file) == 3

        names = {hook_type: [h.name for h in hooks] for hook_type, hooks in manager.hooks.items()}
        assert names[HookType.BEFORE_EXPORT] == ["before_export_warm"]
        assert names[HookType.AFTER_EXPORT] == ["after_export_flush", "notify"]

    def test_load_missing_file(self, tmp_path):
        """Test a missing hooks file raises."""
        with pytest.raises(FileNotFoundError):
            HookManager().load_from_file(tmp_path / "nope.py")

    def test_hook_marker(self):
        """Test the module-level decorator only marks the function."""

        @hook(HookType.BEFORE_EXPORT)
        def mark(context):
            return context

        assert mark._hook_type is HookType.BEFORE_EXPORT
        assert mark({"a": 1}) == {"a": 1}
