"""Warning collection and logging setup.

Non-fatal problems (an unknown encapsulation mode, a device missing a VRF) are
recorded on a :class:`Warnings` collector so callers can inspect them after a
run, and are mirrored to the ``logging`` module at WARNING level.
"""

from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """One structured warning."""

    tag: str
    message: str
    context: t.Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class Warnings:
    """Ordered collector of :class:`Diagnostic` records."""

    def __init__(self) -> None:
        self._items: t.List[Diagnostic] = []

    def red_flag(self, message: str, *, tag: str = "red-flag", **context: str) -> Diagnostic:
        diag = Diagnostic(tag=tag, message=message, context=dict(context))
        self._items.append(diag)
        log.warning(message)
        return diag

    @property
    def items(self) -> t.Tuple[Diagnostic, ...]:
        return tuple(self._items)

    @property
    def messages(self) -> t.List[str]:
        return [d.message for d in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> t.Iterator[Diagnostic]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


def setup_logging(level: str = "WARNING", verbose: bool = False) -> None:
    """Route library logging through rich's handler for the CLI."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, markup=False)],
        force=True,
    )
