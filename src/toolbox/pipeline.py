# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ordered steps for multi-stage operations such as ``toolbox create``.

``toolbox create`` is one shared :class:`Pipeline` whose steps live in
:mod:`toolbox.container.create`.  Each module there registers its steps
when it is imported.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar, overload

_Ctx = TypeVar("_Ctx")

_StepFn = Callable[[_Ctx], None]

_DEFAULT_ORDER = 500


class Pipeline(Generic[_Ctx]):
    """Steps that share one context object and run in a fixed sequence.

    A step is a function taking the context.  Lower ``order`` runs first
    and ties keep the order in which the steps were registered.  The
    create steps are spaced out from -500 (the existence check) to 0
    (``podman create``), so a new check can be slotted in between.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        # (order, registration index, step)
        self._entries: list[tuple[int, int, _StepFn[_Ctx]]] = []

    @overload
    def step(self, fn: _StepFn[_Ctx]) -> _StepFn[_Ctx]: ...
    @overload
    def step(self, *, order: int) -> Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]: ...

    def step(
        self,
        fn: _StepFn[_Ctx] | None = None,
        *,
        order: int = _DEFAULT_ORDER,
    ) -> _StepFn[_Ctx] | Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]:
        """Decorator adding a step, as ``@step`` or ``@step(order=-100)``."""
        def _register(f: _StepFn[_Ctx]) -> _StepFn[_Ctx]:
            self._entries.append((order, len(self._entries), f))
            return f

        if fn is not None:
            return _register(fn)
        return _register

    def _ordered(self) -> list[tuple[int, int, _StepFn[_Ctx]]]:
        return sorted(self._entries, key=lambda e: (e[0], e[1]))

    def run(self, ctx: _Ctx) -> None:
        """Run the steps against *ctx*, stopping at the first error."""
        for _order, _index, fn in self._ordered():
            fn(ctx)

    def __repr__(self) -> str:
        names = ", ".join(f"{f.__name__}({o})" for o, _i, f in self._ordered())
        return f"Pipeline({self.name!r}, [{names}])"
