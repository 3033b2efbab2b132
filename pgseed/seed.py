from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from sqlalchemy.engine import Connection


SeedFx = Callable[[], None]


@runtime_checkable
class SeedExec(Protocol):
    """
    Contract of a caller-supplied seed executor.

    The seeder hands each executor a connection with an open transaction
    (`set_tx`) and then calls the work function returned by `get_seed`. The
    work function signals failure by raising.
    """

    def config(self, fx: SeedFx) -> None: ...

    def get_seed(self) -> SeedFx: ...

    def set_tx(self, tx: Connection | None) -> None: ...

    def get_tx(self) -> Connection | None: ...


class SeedStep:
    """
    Plain `SeedExec` implementation. Configure it with a function directly, or
    subclass it and call `self.config(self.some_method)` in `__init__`; the work
    function reaches the open transaction through `self.tx`.
    """

    def __init__(self, fx: SeedFx | None = None, name: str | None = None) -> None:
        self._fx = fx
        self._tx: Connection | None = None
        self.name = name

    def config(self, fx: SeedFx) -> None:
        self._fx = fx

    def get_seed(self) -> SeedFx:
        if self._fx is None:
            raise ValueError("seed step has no function configured")
        return self._fx

    def set_tx(self, tx: Connection | None) -> None:
        self._tx = tx

    def get_tx(self) -> Connection | None:
        return self._tx

    @property
    def tx(self) -> Connection:
        if self._tx is None:
            raise RuntimeError("seed step has no transaction")
        return self._tx


def fx_name(fx: Callable[..., object]) -> str:
    while isinstance(fx, functools.partial):
        fx = fx.func
    name = getattr(fx, "__name__", None)
    if name:
        return name
    return type(fx).__name__


def fx_qualname(fx: Callable[..., object], max_len: int = 64) -> str:
    """Dotted module path of a callable, keeping the trailing `max_len` characters."""
    while isinstance(fx, functools.partial):
        fx = fx.func
    qualname = getattr(fx, "__qualname__", None) or type(fx).__qualname__
    module = getattr(fx, "__module__", None) or type(fx).__module__
    full = f"{module}.{qualname}" if module else qualname
    return full[-max_len:]


@dataclass(frozen=True)
class Seed:
    executor: SeedExec

    @property
    def name(self) -> str:
        # Unnamed executors are told apart by their work function.
        name = getattr(self.executor, "name", None)
        if name:
            return str(name)
        try:
            fx = self.executor.get_seed()
        except ValueError:
            return type(self.executor).__name__
        return fx_qualname(fx)

    @property
    def fx_name(self) -> str:
        return fx_name(self.executor.get_seed())
