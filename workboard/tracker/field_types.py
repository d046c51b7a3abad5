"""
Custom field type registry.

Each field kind has a value rule and a flag saying whether the definition
must carry options. ``validate_value`` is the one place value shapes are
checked; the task store calls it on every write and the read path uses it
to blank out values that no longer fit their (possibly retyped) field.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
from urllib.parse import urlparse

from .enums import FieldType, Priority, TaskStatus
from .errors import FieldShapeError, FieldValueError
from .primitives import FieldSettings, SelectOption

OptionLike = Union[SelectOption, Mapping[str, Any]]
SettingsLike = Union[FieldSettings, Mapping[str, Any], None]


@dataclass(frozen=True)
class FieldKind:
    """Registry entry for one field type."""

    type: FieldType
    shape: str
    requires_options: bool
    check: Callable[[Any, List[str], Dict[str, Any]], Optional[str]]


def _option_values(options: Optional[Iterable[OptionLike]]) -> List[str]:
    values = []
    for option in options or []:
        if isinstance(option, SelectOption):
            values.append(option.value)
        else:
            values.append(option.get("value"))
    return values


def _settings_dict(settings: SettingsLike) -> Dict[str, Any]:
    if settings is None:
        return {}
    if isinstance(settings, FieldSettings):
        return settings.model_dump(exclude_none=True)
    return {k: v for k, v in settings.items() if v is not None}


def _check_text(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    if not isinstance(value, str):
        return "Value must be a string"
    return None


def _check_number(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    # bool is an int subclass but never a valid number value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "Value must be a number"
    if isinstance(value, float) and not math.isfinite(value):
        return "Value must be a finite number"
    if settings.get("min") is not None and value < settings["min"]:
        return f"Value must be at least {settings['min']}"
    if settings.get("max") is not None and value > settings["max"]:
        return f"Value must be at most {settings['max']}"
    return None


def _check_date(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    if not isinstance(value, str):
        return "Value must be an ISO-8601 date string"
    try:
        date.fromisoformat(value)
        return None
    except ValueError:
        pass
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return "Value must be an ISO-8601 date string"
    return None


def _check_checkbox(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    if not isinstance(value, bool):
        return "Value must be a boolean"
    return None


def _check_url(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    if not isinstance(value, str):
        return "Value must be a string"
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return "Value must be a valid http(s) URL"
    return None


def _check_select(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    if not isinstance(value, str) or value not in options:
        return f"Value must be one of: {', '.join(options)}"
    return None


def _check_multi_select(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    if not isinstance(value, list):
        return "Value must be a list"
    invalid = [str(v) for v in value if not isinstance(v, str) or v not in options]
    if invalid:
        return f"Invalid options: {', '.join(invalid)}"
    return None


def _check_priority(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    allowed = [p.value for p in Priority]
    if value not in allowed:
        return f"Value must be one of: {', '.join(allowed)}"
    return None


def _check_status(value: Any, options: List[str], settings: Dict[str, Any]) -> Optional[str]:
    allowed = [s.value for s in TaskStatus]
    if value not in allowed:
        return f"Value must be one of: {', '.join(allowed)}"
    return None


FIELD_KINDS: Dict[FieldType, FieldKind] = {
    kind.type: kind
    for kind in (
        FieldKind(FieldType.TEXT, "string", False, _check_text),
        FieldKind(FieldType.NUMBER, "number", False, _check_number),
        FieldKind(FieldType.DATE, "iso-date", False, _check_date),
        FieldKind(FieldType.CHECKBOX, "boolean", False, _check_checkbox),
        FieldKind(FieldType.URL, "string", False, _check_url),
        FieldKind(FieldType.SELECT, "option", True, _check_select),
        FieldKind(FieldType.MULTI_SELECT, "option-set", True, _check_multi_select),
        FieldKind(FieldType.PRIORITY, "priority", False, _check_priority),
        FieldKind(FieldType.STATUS, "status", False, _check_status),
    )
}


def get_field_kind(field_type: Union[FieldType, str]) -> FieldKind:
    """Look up a registry entry, raising FieldShapeError for unknown types."""
    try:
        return FIELD_KINDS[FieldType(field_type)]
    except ValueError:
        allowed = ", ".join(t.value for t in FieldType)
        raise FieldShapeError(
            f"Unsupported field type '{field_type}'. Allowed: {allowed}",
            field="type",
        )


def requires_options(field_type: Union[FieldType, str]) -> bool:
    return get_field_kind(field_type).requires_options


def validate_definition_shape(
    field_type: Union[FieldType, str],
    options: Optional[Iterable[OptionLike]],
) -> None:
    """Check that a definition's type and options fit together.

    Raises:
        FieldShapeError: unknown type, choice type without options, or
            duplicate option values.
    """
    kind = get_field_kind(field_type)
    values = _option_values(options)

    if kind.requires_options and not values:
        raise FieldShapeError(
            "Options are required for select and multi-select fields",
            field="options",
        )

    duplicates = sorted({v for v in values if values.count(v) > 1})
    if duplicates:
        raise FieldShapeError(
            f"Duplicate option values: {', '.join(duplicates)}",
            field="options",
        )


def validate_value(
    field_type: Union[FieldType, str],
    value: Any,
    options: Optional[Iterable[OptionLike]] = None,
    settings: SettingsLike = None,
    field_name: Optional[str] = None,
) -> None:
    """Validate one custom field value against its definition.

    ``None`` means unset and is always accepted; ``required`` is advisory
    and is not enforced here.

    Raises:
        FieldValueError: the value does not fit the field.
    """
    if value is None:
        return

    kind = get_field_kind(field_type)
    problem = kind.check(value, _option_values(options), _settings_dict(settings))
    if problem:
        label = f"'{field_name}'" if field_name else kind.type.value
        raise FieldValueError(f"Invalid value for field {label}: {problem}")


def is_valid_value(
    field_type: Union[FieldType, str],
    value: Any,
    options: Optional[Iterable[OptionLike]] = None,
    settings: SettingsLike = None,
) -> bool:
    try:
        validate_value(field_type, value, options, settings)
    except (FieldValueError, FieldShapeError):
        return False
    return True
