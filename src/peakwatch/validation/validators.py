"""
Scalar validation functions.

These are used by the configuration validators and by the sampler's
command-line parsing, so both surfaces reject the same inputs with the same
messages.
"""

import math
from typing import Any, List, Optional

import psutil

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a finite number within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if not math.isfinite(float_value):
        raise ValidationError(
            f"{field_name} must be finite, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_sampling_interval(value: Any, field_name: str = "interval") -> float:
    """Sampling intervals must be strictly positive."""
    interval = validate_positive_float(value, field_name=field_name)
    if interval <= 0:
        raise ValidationError(
            f"{field_name} must be > 0, got {interval}",
            field_name=field_name,
            value=value
        )
    return interval


def validate_pid(value: Any, field_name: str = "pid", must_exist: bool = False) -> int:
    """
    Validate a process identifier.

    Args:
        value: Value to validate
        field_name: Name of the field being validated
        must_exist: Also require that a process with this pid is running

    Returns:
        The pid as an integer

    Raises:
        ValidationError: If the value is not a usable pid
    """
    pid = validate_positive_integer(value, min_value=1, field_name=field_name)
    if must_exist and not psutil.pid_exists(pid):
        raise ValidationError(
            f"{field_name} refers to no running process: {pid}",
            field_name=field_name,
            value=value
        )
    return pid


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Returns:
        The matching choice, spelled as in ``valid_choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value in valid_choices:
            return str_value
    else:
        lowered = {choice.lower(): choice for choice in valid_choices}
        if str_value.lower() in lowered:
            return lowered[str_value.lower()]

    raise ValidationError(
        f"{field_name} must be one of {valid_choices}, got {value}",
        field_name=field_name,
        value=value
    )
