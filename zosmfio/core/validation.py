"""Input validation for zosmfio.

Pure functions, no I/O. Each ``validate_*`` function returns the validated
value or raises a specific exception from ``zosmfio.core.exceptions``.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from .exceptions import (
    InvalidConfigurationError,
    InvalidIdentifierError,
    InvalidPortError,
)

# =============================================================================
# Constants
# =============================================================================

MIN_PORT = 1
MAX_PORT = 65535

DATASET_NAME_MAX_LENGTH = 44
MEMBER_NAME_MAX_LENGTH = 8

# First character national or alphabetic. Later characters are checked as a
# single class, so a qualifier after a period may start with a digit.
NAME_PATTERN = re.compile(r"^[A-Z@#$][A-Z0-9@#$.-]*$")

MAX_RECORD_LENGTH = 32760
MAX_BLOCK_SIZE = 32760
MAX_DIRECTORY_BLOCKS = 9999


# =============================================================================
# Dataset and Member Names
# =============================================================================


def validate_dataset_name(name: str) -> str:
    """Validate a z/OS dataset name.

    Rules: 1-44 characters, first character A-Z/@/#/$, remaining characters
    A-Z, 0-9, @, #, $, period or hyphen, no ``..``, no ``--``, no leading or
    trailing period.

    Returns:
        The name unchanged.

    Raises:
        InvalidIdentifierError: If the name breaks any rule.
    """
    if not isinstance(name, str):
        raise InvalidIdentifierError("dataset name", str(name), "must be a string")

    if not name:
        raise InvalidIdentifierError("dataset name", name, "dataset name cannot be empty")

    if len(name) > DATASET_NAME_MAX_LENGTH:
        raise InvalidIdentifierError(
            "dataset name",
            name,
            f"dataset name cannot exceed {DATASET_NAME_MAX_LENGTH} characters",
        )

    if not NAME_PATTERN.match(name):
        raise InvalidIdentifierError(
            "dataset name", name, "dataset name contains invalid characters"
        )

    if ".." in name:
        raise InvalidIdentifierError(
            "dataset name", name, "dataset name cannot contain consecutive periods"
        )

    if name.startswith(".") or name.endswith("."):
        raise InvalidIdentifierError(
            "dataset name", name, "dataset name cannot start or end with a period"
        )

    if "--" in name:
        raise InvalidIdentifierError(
            "dataset name", name, "dataset name cannot contain consecutive hyphens"
        )

    return name


def validate_member_name(name: str) -> str:
    """Validate a PDS member name (1-8 characters, dataset character rules)."""
    if not isinstance(name, str):
        raise InvalidIdentifierError("member name", str(name), "must be a string")

    if not name:
        raise InvalidIdentifierError("member name", name, "member name cannot be empty")

    if len(name) > MEMBER_NAME_MAX_LENGTH:
        raise InvalidIdentifierError(
            "member name",
            name,
            f"member name cannot exceed {MEMBER_NAME_MAX_LENGTH} characters",
        )

    if not NAME_PATTERN.match(name):
        raise InvalidIdentifierError(
            "member name", name, "member name contains invalid characters"
        )

    if ".." in name:
        raise InvalidIdentifierError(
            "member name", name, "member name cannot contain consecutive periods"
        )

    if name.startswith(".") or name.endswith("."):
        raise InvalidIdentifierError(
            "member name", name, "member name cannot start or end with a period"
        )

    return name


def is_valid_dataset_name(name: str) -> bool:
    """Boolean form of validate_dataset_name."""
    try:
        validate_dataset_name(name)
    except InvalidIdentifierError:
        return False
    return True


def is_valid_member_name(name: str) -> bool:
    """Boolean form of validate_member_name."""
    try:
        validate_member_name(name)
    except InvalidIdentifierError:
        return False
    return True


# =============================================================================
# Connection Settings
# =============================================================================


def validate_port(port: Union[int, str, None], allow_none: bool = False) -> Optional[int]:
    """Validate port number.

    Args:
        port: Port number to validate.
        allow_none: If True, None is a valid value.

    Raises:
        InvalidPortError: If port is invalid.
    """
    if port is None:
        if allow_none:
            return None
        raise InvalidPortError(port)

    try:
        port_int = int(port)
    except (ValueError, TypeError) as e:
        raise InvalidPortError(port) from e

    if port_int < MIN_PORT or port_int > MAX_PORT:
        raise InvalidPortError(port)

    return port_int


def validate_timeout(
    value: Union[int, float, str, None],
    field_name: str,
    *,
    min_value: int = 1,
    max_value: int = 3600,
    default: int = 30,
) -> int:
    """Validate a timeout in whole seconds.

    Raises:
        InvalidConfigurationError: If timeout is not an integer or out of range.
    """
    if value is None:
        return default

    try:
        timeout = int(value)
    except (ValueError, TypeError) as e:
        raise InvalidConfigurationError(field_name, value, "must be a valid integer") from e

    if timeout < min_value:
        raise InvalidConfigurationError(
            field_name, timeout, f"must be at least {min_value} seconds"
        )

    if timeout > max_value:
        raise InvalidConfigurationError(
            field_name, timeout, f"cannot exceed {max_value} seconds"
        )

    return timeout


def validate_wait_interval(value: float, field_name: str) -> float:
    """Validate a polling duration in seconds (zero allowed)."""
    try:
        seconds = float(value)
    except (ValueError, TypeError) as e:
        raise InvalidConfigurationError(field_name, value, "must be a number of seconds") from e

    if seconds < 0:
        raise InvalidConfigurationError(field_name, seconds, "cannot be negative")

    return seconds
