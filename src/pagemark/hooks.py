"""Lifecycle hooks fired around export passes."""

import importlib.util
import inspect
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

HookFunction = Callable[[dict[str, Any]], Any]


class HookType(Enum):
    """Points in an export where hooks run."""

    BEFORE_EXPORT = "before_export"  # Before an immediate pass or a background chunk
    AFTER_EXPORT = "after_export"  # After the items of that pass or chunk are written


class Hook:
    """A named hook function."""

    def __init__(self, name: str, func: HookFunction):
        self.name = name
        self.func = func

    def __call__(self, context: dict[str, Any]) -> Any:
        return self.func(context)

    def __repr__(self) -> str:
        return f"Hook({self.name!r})"


class HookManager:
    """
    Register and run lifecycle hooks.

    Hooks receive a context dict (export_id, item_types, chunk_index, ...).
    A failing hook is logged and the remaining hooks still run; hooks can
    never abort an export.

    Example:
        manager = HookManager()

        @manager.on(HookType.AFTER_EXPORT)
        def notify(context):
            print(f"Finished {context['export_id']}")
    """

    def __init__(self) -> None:
        self.hooks: dict[HookType, list[Hook]] = {hook_type: [] for hook_type in HookType}

    def register_function(self, hook_type: HookType, func: HookFunction, name: Optional[str] = None) -> Hook:
        """Register a function as a hook.

        Args:
            hook_type: Type of hook
            func: Function called with the context dict
            name: Optional hook name (defaults to the function name)
        """
        hook_obj = Hook(name or func.__name__, func)
        self.hooks[hook_type].append(hook_obj)
        logger.debug(f"Registered {hook_type.value} hook: {hook_obj.name}")
        return hook_obj

    def on(self, hook_type: HookType) -> Callable[[HookFunction], HookFunction]:
        """Decorator registering a function on this manager."""

        def decorator(func: HookFunction) -> HookFunction:
            self.register_function(hook_type, func)
            return func

        return decorator

    def load_from_file(self, file_path: Path) -> int:
        """Load hooks from a Python file.

        Functions marked with @hook(...) or named before_export_* /
        after_export_* are registered in name order.

        Returns:
            Number of hooks registered
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Hook file not found: {file_path}")

        spec = importlib.util.spec_from_file_location("pagemark_user_hooks", file_path)
        if not spec or not spec.loader:
            raise ImportError(f"Could not load {file_path}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        count = 0
        for name, obj in inspect.getmembers(module, inspect.isfunction):
            hook_type = getattr(obj, "_hook_type", None)
            if hook_type is None:
                if name.startswith("before_export_"):
                    hook_type = HookType.BEFORE_EXPORT
                elif name.startswith("after_export_"):
                    hook_type = HookType.AFTER_EXPORT
                else:
                    continue
            self.register_function(hook_type, obj, name)
            count += 1

        logger.info(f"Loaded {count} hooks from {file_path}")
        return count

    def execute_hooks(self, hook_type: HookType, context: dict[str, Any]) -> int:
        """Run all hooks of a type.

        Returns:
            Number of hooks that raised
        """
        failures = 0
        for hook_obj in self.hooks[hook_type]:
            try:
                hook_obj(context)
            except Exception as e:
                failures += 1
                logger.error(f"Hook {hook_obj.name} failed: {e}", exc_info=True)

        return failures

    def __len__(self) -> int:
        return sum(len(hooks) for hooks in self.hooks.values())


def hook(hook_type: HookType) -> Callable[[HookFunction], HookFunction]:
    """Decorator marking a function in a hooks file.

    Example:
        @hook(HookType.BEFORE_EXPORT)
        def warm_cache(context):
            ...
    """

    def decorator(func: HookFunction) -> HookFunction:
        func._hook_type = hook_type  # type: ignore[attr-defined]
        return func

    return decorator
