from __future__ import annotations

from typing import Iterable, Union

from ..core.constants import DEFAULT_LECTURE_SLOT, KEY_SEPARATOR, MAX_LECTURE_SLOTS
from ..core.exceptions import InvalidSlotSelection, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_key_component(value: str, field_name: str) -> str:
    """Identifiers end up inside ledger keys, so they must not contain the separator."""
    value = require_non_empty(value, field_name)
    if KEY_SEPARATOR in value:
        raise ValidationError(f"{field_name} must not contain {KEY_SEPARATOR!r}")
    return value


def normalize_slot(value: Union[int, str, None]) -> int:
    """Whole numbers or digit strings only; floats and booleans are rejected."""
    if value is None:
        return DEFAULT_LECTURE_SLOT
    if isinstance(value, int) and not isinstance(value, bool):
        slot = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        slot = int(value.strip())
    else:
        raise ValidationError(f"Invalid lecture slot: {value!r}")
    if not 1 <= slot <= MAX_LECTURE_SLOTS:
        raise ValidationError(f"Lecture slot must be between 1 and {MAX_LECTURE_SLOTS}")
    return slot


def normalize_slot_selection(values: Iterable[int]) -> tuple[int, ...]:
    """Validate a slot selection; duplicates collapse, result is sorted."""
    slots = sorted({normalize_slot(v) for v in values})
    if not slots:
        raise InvalidSlotSelection("Select at least one lecture slot")
    return tuple(slots)
