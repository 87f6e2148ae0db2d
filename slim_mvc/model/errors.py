from __future__ import annotations

from typing import Dict, List, Optional

SAVE_KEY = "__save__"
DELETE_KEY = "__delete__"
DISABLE_KEY = "__disable__"


class ErrorCollector:
    """Field key -> ordered list of messages.

    A key with no messages is never stored, so ``bool(collector)`` tells
    whether the record has any error at all.
    """

    def __init__(self) -> None:
        self._errors: Dict[str, List[str]] = {}

    def add(self, key: str, message: str) -> None:
        self._errors.setdefault(key, []).append(message)

    def errors_for(self, key: str) -> List[str]:
        return list(self._errors.get(key, ()))

    def message_for(self, key: str, delimiter: Optional[str] = ",") -> str:
        if delimiter is None or not isinstance(delimiter, str):
            delimiter = ","
        return delimiter.join(self._errors.get(key, ()))

    def has_error(self, key: Optional[str] = None) -> bool:
        if key is None:
            return len(self._errors) > 0
        return key in self._errors and len(self._errors) > 0

    def all(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._errors.items()}

    def reset(self) -> None:
        self._errors = {}

    def __bool__(self) -> bool:
        return self.has_error()

    def __len__(self) -> int:
        return len(self._errors)

    def __repr__(self) -> str:
        return f"ErrorCollector({self._errors!r})"
