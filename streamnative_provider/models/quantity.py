"""Kubernetes resource quantities and the compute/storage unit conversion."""

import re
from decimal import Decimal
from typing import Optional, Union

GIB = 1024 ** 3

# 1 compute unit (or storage unit) is 2 cpu and 8 GiB of memory
CPU_MILLIS_PER_UNIT = 2000
MEMORY_BYTES_PER_UNIT = 8 * GIB
DEFAULT_UNIT = 0.5

_SUFFIXES = {
    "": Decimal(1),
    "m": Decimal("0.001"),
    "k": Decimal(10) ** 3,
    "M": Decimal(10) ** 6,
    "G": Decimal(10) ** 9,
    "T": Decimal(10) ** 12,
    "P": Decimal(10) ** 15,
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
}

_QUANTITY = re.compile(r"^([+-]?[0-9.]+(?:[eE][+-]?[0-9]+)?)([a-zA-Z]*)$")

Quantity = Union[str, int, float]


def parse_quantity(value: Quantity) -> Decimal:
    """Parse a quantity such as ``"500m"``, ``"8Gi"`` or ``4294967296``."""
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    match = _QUANTITY.match(value.strip())
    if not match or match.group(2) not in _SUFFIXES:
        raise ValueError(f"invalid quantity: {value!r}")
    number, suffix = match.groups()
    return Decimal(number) * _SUFFIXES[suffix]


def cpu_quantity(units: float) -> str:
    """CPU for ``units`` compute units, as a decimal-SI quantity."""
    millis = int(units * CPU_MILLIS_PER_UNIT)
    if millis % 1000 == 0:
        return str(millis // 1000)
    return f"{millis}m"


def memory_quantity(units: float) -> str:
    """Memory for ``units`` compute units, in bytes."""
    return str(int(units * MEMORY_BYTES_PER_UNIT))


def units_from_resources(
    cpu: Optional[Quantity], memory: Optional[Quantity]
) -> float:
    """Read back the unit count; the larger of the cpu and memory ratios wins."""
    if cpu is None and memory is None:
        return DEFAULT_UNIT
    cpu_units = Decimal(0)
    memory_units = Decimal(0)
    if cpu is not None:
        cpu_units = parse_quantity(cpu) * 1000 / CPU_MILLIS_PER_UNIT
    if memory is not None:
        memory_units = parse_quantity(memory) / MEMORY_BYTES_PER_UNIT
    return float(max(cpu_units, memory_units))
