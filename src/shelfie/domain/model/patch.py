"""Tri-state patch values.

A ``PatchField`` is either *unspecified* (leave the target untouched) or
*specified* with a value, where the value itself may be ``None`` to clear the
target. A plain ``T | None`` cannot tell those two cases apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, overload

from shelfie.domain.errors import UnspecifiedFieldError

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class PatchField[T]:
    is_specified: bool = False
    _value: T | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.is_specified and self._value is not None:
            raise ValueError("An unspecified patch field cannot carry a value")

    @classmethod
    def unspecified(cls) -> PatchField[T]:
        return cls()

    @classmethod
    def from_(cls, value: T | None) -> PatchField[T]:
        return cls(is_specified=True, _value=value)

    @property
    def value(self) -> T | None:
        """The specified value; reading it on an unspecified field is a bug."""
        if not self.is_specified:
            raise UnspecifiedFieldError("Cannot read the value of an unspecified patch field")
        return self._value

    @overload
    def get(self) -> T | None: ...
    @overload
    def get[D](self, default: D) -> T | D | None: ...
    def get(self, default: object = None) -> object:
        return self._value if self.is_specified else default

    def apply_to(self, current: T | None) -> T | None:
        """Return the patched value for a target currently holding ``current``."""
        return self._value if self.is_specified else current

    def map[U](self, func: Callable[[T | None], U | None]) -> PatchField[U]:
        if not self.is_specified:
            return PatchField[U].unspecified()
        return PatchField[U].from_(func(self._value))

    def __repr__(self) -> str:
        if not self.is_specified:
            return "PatchField(<unspecified>)"
        return f"PatchField({self._value!r})"
