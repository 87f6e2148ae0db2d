from __future__ import annotations

import re
from typing import Optional

_UPPER_RE = re.compile(r"[A-Z]")
_SPLIT_RE = re.compile(r"[\s_\-]+")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_RE = re.compile(r"([a-z\d])([A-Z])")


def capitalize(value: Optional[str]) -> Optional[str]:
    """Convert ``user_group``, ``user-group`` or ``userGroup`` to ``UserGroup``."""
    if value is None or not isinstance(value, str):
        return None
    parts = _SPLIT_RE.split(_UPPER_RE.sub(lambda m: "_" + m.group(0), value))
    return "".join(p.lower().capitalize() for p in parts if p)


def underscore(value: Optional[str]) -> Optional[str]:
    """Convert ``UserGroup`` or ``user-group`` to ``user_group``; ``HTTPClient`` becomes ``http_client``."""
    if value is None or not isinstance(value, str):
        return None
    word = _CAMEL_RE.sub(r"\1_\2", _ACRONYM_RE.sub(r"\1_\2", value))
    parts = _SPLIT_RE.split(word)
    return "_".join(p.lower() for p in parts if p)
