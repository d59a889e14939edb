"""Phase-ordered, priority-sorted middleware stack.

A middleware is a factory ``fn(next_handler, context) -> handler`` where a
handler is an async callable taking the Args envelope. The stack keeps one
list per Step, each sorted by descending priority (stable on ties), and
resolves them into a single onion-model callable: the first middleware's
pre-processing runs first and its post-processing runs last.

Example:
    >>> stack = MiddlewareStack()
    >>> def logging_middleware(next_handler, context):
    ...     async def handler(args):
    ...         result = await next_handler(args)
    ...         return result
    ...     return handler
    >>> stack.add(logging_middleware, step=Step.BUILD, name="logging", priority=10)
    >>> print(stack)
    MiddlewareStack:
      [build]
        - logging (priority: 10)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

from volc_core.models.enums import STEP_ORDER, Step
from volc_core.models.request import Args, MiddlewareContext

Handler = Callable[[Args], Awaitable[Any]]
MiddlewareFunction = Callable[[Handler, MiddlewareContext], Handler]


@dataclass(frozen=True)
class MiddlewareOptions:
    """Placement of a middleware in the stack.

    Attributes:
        step: Phase to run in (default: initialize)
        name: Identifier within the phase (default: middleware_<n>)
        priority: Higher runs earlier within the phase (default: 0)
        override: Replace an existing middleware with the same step and name
    """

    step: Step | str | None = None
    name: str | None = None
    priority: int | None = None
    override: bool | None = None


@dataclass(frozen=True)
class Middleware:
    """A registered middleware; identity is (step, name)."""

    fn: MiddlewareFunction
    name: str
    step: Step
    priority: int


@dataclass(frozen=True)
class MiddlewareSpec:
    """A middleware function bundled with its default placement."""

    middleware: MiddlewareFunction
    options: MiddlewareOptions


class MiddlewareStack:
    """Ordered collection of middleware grouped by Step."""

    def __init__(self) -> None:
        self._steps: dict[Step, list[Middleware]] = {step: [] for step in STEP_ORDER}
        self._counter = 0

    @property
    def steps(self) -> Mapping[Step, tuple[Middleware, ...]]:
        """Read-only view of the registered middleware per step, in run order."""
        return MappingProxyType({step: tuple(entries) for step, entries in self._steps.items()})

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._steps.values())

    def _sort(self, step: Step) -> None:
        # list.sort is stable: equal priorities keep insertion order
        self._steps[step].sort(key=lambda mw: mw.priority, reverse=True)

    def add(
        self,
        fn: MiddlewareFunction,
        options: MiddlewareOptions | None = None,
        *,
        step: Step | str | None = None,
        name: str | None = None,
        priority: int | None = None,
        override: bool | None = None,
    ) -> None:
        """Register ``fn``.

        Keyword arguments take precedence over the matching ``options``
        fields. With ``override`` set and an existing middleware of the same
        step and name, that entry is replaced in place; otherwise the new
        entry is appended (duplicate names are allowed). The step is then
        re-sorted by descending priority.

        Raises:
            ValueError: If ``step`` is not a known Step
        """
        options = options or MiddlewareOptions()
        resolved_step = Step(step if step is not None else options.step or Step.INITIALIZE)
        resolved_name = name if name is not None else options.name
        if not resolved_name:
            self._counter += 1
            resolved_name = f"middleware_{self._counter}"
        resolved_priority = priority if priority is not None else options.priority or 0
        resolved_override = override if override is not None else bool(options.override)

        entry = Middleware(fn=fn, name=resolved_name, step=resolved_step, priority=resolved_priority)
        entries = self._steps[resolved_step]

        if resolved_override:
            for index, existing in enumerate(entries):
                if existing.name == resolved_name:
                    entries[index] = entry
                    self._sort(resolved_step)
                    return

        entries.append(entry)
        self._sort(resolved_step)

    def use(self, spec: MiddlewareSpec) -> None:
        """Register a built-in stage shipped as a MiddlewareSpec."""
        self.add(spec.middleware, spec.options)

    def merge(self, other: MiddlewareStack) -> MiddlewareStack:
        """Return a new stack holding this stack's entries then ``other``'s.

        Neither input is modified and duplicates are kept.
        """
        merged = MiddlewareStack()
        for step in STEP_ORDER:
            merged._steps[step].extend(self._steps[step])
            merged._steps[step].extend(other._steps[step])
            merged._sort(step)
        merged._counter = max(self._counter, other._counter)
        return merged

    def resolve(self, terminal: Handler, context: MiddlewareContext) -> Handler:
        """Compose every middleware around ``terminal`` into one handler.

        Steps run in STEP_ORDER. Each middleware factory is invoked when the
        chain runs, so resolved handlers share no state between calls.
        """
        chain = [mw for step in STEP_ORDER for mw in self._steps[step]]

        def wrap(next_handler: Handler, mw: Middleware) -> Handler:
            async def handler(args: Args) -> Any:
                return await mw.fn(next_handler, context)(args)

            return handler

        return reduce(wrap, reversed(chain), terminal)

    def __str__(self) -> str:
        lines = ["MiddlewareStack:"]
        for step in STEP_ORDER:
            entries = self._steps[step]
            if entries:
                lines.append(f"  [{step.value}]")
                for mw in entries:
                    lines.append(f"    - {mw.name} (priority: {mw.priority})")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"MiddlewareStack(size={len(self)})"


__all__ = [
    "Handler",
    "Middleware",
    "MiddlewareFunction",
    "MiddlewareOptions",
    "MiddlewareSpec",
    "MiddlewareStack",
]
