"""Check-and-record validators mixed into ``Model``.

Validators never raise; each failing key receives one message in the
record's error collector. Messages are ``%``-templates receiving the key
(uniqueness receives the comma-joined composite key).
"""

from __future__ import annotations

import re
from collections.abc import Sized
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Pattern, Union

Keys = Union[str, Iterable[str]]
Number = Union[int, float, Decimal]


def _as_keys(keys: Keys) -> list[str]:
    if isinstance(keys, str):
        return [keys]
    return list(keys)


def _is_empty(value: Any) -> bool:
    """Unset for the purpose of optional validators; ``0`` counts as a value."""
    if value is None or value is False:
        return True
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def _to_number(value: Any) -> Optional[Decimal]:
    """Finite Decimal for numbers and numeric strings; None otherwise (booleans included)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
    else:
        return None
    try:
        number = Decimal(raw)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _size_of(value: Any) -> Optional[Number]:
    """None for NaN/infinite numbers, which no range accepts."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float, Decimal)):
        number = _to_number(value)
        return int(number) if number is not None else None
    if isinstance(value, (str, Sized)):
        return len(value)
    return 0


def _out_of_range(value: Number, minimum: Optional[Number], maximum: Optional[Number]) -> bool:
    if minimum is not None and value < minimum:
        return True
    if maximum is not None and value > maximum:
        return True
    return False


class Validations:
    """Validator methods; expects the host to provide the record accessors used below."""

    def validates_presence_of(self, keys: Keys, message: str = "%s field is required") -> None:
        for key in _as_keys(keys):
            value = self.get(key)
            if (
                value is None
                or (isinstance(value, str) and value.strip() == "")
                or (not isinstance(value, str) and isinstance(value, Sized) and len(value) == 0)
            ):
                self.add_error(key, message % key)

    def validates_length_of(
        self,
        keys: Keys,
        minimum: Optional[int] = None,
        maximum: Optional[int] = None,
        message: str = "%s field incorrect size",
    ) -> None:
        for key in _as_keys(keys):
            value = self.get(key)
            if _is_empty(value):
                continue
            size = _size_of(value)
            if size is None or _out_of_range(size, minimum, maximum):
                self.add_error(key, message % key)

    def validates_size_of(
        self,
        keys: Keys,
        minimum: Optional[int] = None,
        maximum: Optional[int] = None,
        message: str = "%s field incorrect size",
    ) -> None:
        self.validates_length_of(keys, minimum, maximum, message)

    def validates_format_of(
        self,
        keys: Keys,
        pattern: Union[str, Pattern[str]],
        message: str = "%s field invalid format",
    ) -> None:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        for key in _as_keys(keys):
            value = self.get(key)
            if _is_empty(value):
                continue
            if not regex.search(str(value)):
                self.add_error(key, message % key)

    def validates_numericality_of(
        self,
        keys: Keys,
        minimum: Optional[Number] = None,
        maximum: Optional[Number] = None,
        message: str = "%s fields is not a correct numerical value",
    ) -> None:
        lo = _to_number(minimum) if minimum is not None else None
        hi = _to_number(maximum) if maximum is not None else None
        for key in _as_keys(keys):
            value = self.get(key)
            if _is_empty(value):
                continue
            number = _to_number(value)
            if number is None or _out_of_range(number, lo, hi):
                self.add_error(key, message % key)

    def validates_confirmation_of(
        self,
        keys: Keys,
        message: str = "%s field do not match confirmation value",
    ) -> None:
        for key in _as_keys(keys):
            value = self.get(key)
            if value is None:
                continue
            if not self.is_dirty(key):
                continue
            confirmation = self.get(f"{key}_confirm")
            if confirmation is None or type(value) is not type(confirmation) or value != confirmation:
                self.add_error(key, message % key)

    def validates_uniqueness_of(self, keys: Keys, message: str = "%s field is duplicated") -> None:
        """Treat ``keys`` as one composite key and look for another row holding it."""
        key_list = _as_keys(keys)
        if not key_list:
            return

        filters: dict[str, Any] = {}
        for key in key_list:
            value = self.get(key)
            if _is_empty(value):
                continue
            filters[key] = value
        if not filters:
            return

        exclude = None
        if not self.is_new:
            exclude = {self.id_column(): self.identifier}

        if self.store.count(self.__table__, filters, exclude=exclude) > 0:
            self.add_error(key_list[-1], message % ",".join(key_list))
