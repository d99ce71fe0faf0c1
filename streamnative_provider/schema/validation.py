"""
Input validators for resource configuration.

Each validator returns the value unchanged or raises ValueError, so they can
be used directly inside pydantic field validators.
"""

from typing import Iterable, List

RELEASE_CHANNELS = ("lts", "rapid")
INSTANCE_TYPES = ("serverless", "dedicated", "byoc", "byoc-pro")
ENGINES = ("ursa", "classic")
AVAILABILITY_MODES = ("zonal", "regional")
GATEWAY_ACCESS = ("public", "private")
AUDIT_LOG_CATEGORIES = ("Management", "Describe", "Produce", "Consume")


def not_blank(value: str, field: str = "value") -> str:
    """Reject empty strings, whitespace, and bare quotes."""
    if not value.strip().strip('"'):
        raise ValueError(f"{field!r} must not be empty")
    return value


def one_of(value: str, allowed: Iterable[str], field: str = "value") -> str:
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValueError(
            f"{field!r} must be one of {', '.join(allowed)}, got: {value}"
        )
    return value


def int_between(value: int, low: int, high: int, field: str = "value") -> int:
    if value < low or value > high:
        raise ValueError(
            f"{field!r} should be greater than or equal to {low} and less "
            f"than or equal to {high}, got: {value}"
        )
    return value


def unit_between(value: float, field: str = "value") -> float:
    """Compute and storage units are bounded to 0.2..8."""
    if value < 0.2 or value > 8:
        raise ValueError(
            f"{field!r} should be greater than or equal to 0.2 and less than "
            f"or equal to 8, got: {value}"
        )
    return value


def audit_log_categories(values: List[str], field: str = "categories") -> List[str]:
    for value in values:
        one_of(value, AUDIT_LOG_CATEGORIES, field)
    return values


def unique_strings(values: List[str], field: str = "value") -> List[str]:
    if len(set(values)) != len(values):
        raise ValueError(f"{field!r} must not contain duplicate values")
    return values
