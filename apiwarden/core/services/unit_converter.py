"""Converts human readable sizes ("1.5 GB") into canonical byte counts.

Every record is converted by its own task and the caller waits for all of
them (fan-out/fan-in). A record whose size cannot be parsed keeps an unset
derived value and the failure is logged; the batch always completes.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, MutableMapping, Optional, Sequence

from apiwarden.core.exceptions import UnitConversionError

logger = logging.getLogger(__name__)

BINARY_BASE = 1024
DECIMAL_BASE = 1000


@dataclass(frozen=True)
class ByteScale:
    """Immutable unit table derived from a single kilobyte base."""
    base: int

    @classmethod
    def for_base(cls, use_binary_base: bool) -> "ByteScale":
        return cls(BINARY_BASE if use_binary_base else DECIMAL_BASE)

    @property
    def kilobyte(self) -> int:
        return self.base

    @property
    def megabyte(self) -> int:
        return self.base ** 2

    @property
    def gigabyte(self) -> int:
        return self.base ** 3

    @property
    def terabyte(self) -> int:
        return self.base ** 4

    def units(self) -> Dict[str, int]:
        return {
            "BYTES": 1,
            "KB": self.kilobyte,
            "MB": self.megabyte,
            "GB": self.gigabyte,
            "TB": self.terabyte,
        }

    def multiplier(self, unit: str) -> int:
        try:
            return self.units()[unit.upper()]
        except KeyError:
            raise UnitConversionError(f"Unknown size unit: {unit!r}") from None


def parse_size(text: Any, scale: ByteScale) -> float:
    """Parses ``"<number> <unit>"`` into bytes.

    Raises:
        UnitConversionError: If the text does not have that shape, the number
            is not a finite non-negative float, or the unit is unknown.
    """
    if not isinstance(text, str):
        raise UnitConversionError(f"Expected a size string, got {type(text).__name__}")
    parts = text.split()
    if len(parts) != 2:
        raise UnitConversionError(f"Expected '<number> <unit>', got {text!r}")

    number_text, unit = parts
    try:
        number = float(number_text)
    except ValueError:
        raise UnitConversionError(f"Invalid number in size {text!r}") from None
    if not math.isfinite(number) or number < 0:
        raise UnitConversionError(f"Size must be finite and non-negative, got {text!r}")

    return number * scale.multiplier(unit)


class UnitConverter:
    """Annotates records with a byte count parsed from a size string.

    Records may be objects (attributes) or mutable mappings (items).
    """

    def __init__(self, source_field: str = "used_bytes", target_field: str = "used_bytes_float"):
        self.source_field = source_field
        self.target_field = target_field

    def _read(self, record: Any) -> Any:
        if isinstance(record, MutableMapping):
            return record.get(self.source_field)
        return getattr(record, self.source_field, None)

    def _write(self, record: Any, value: Optional[float]) -> None:
        if isinstance(record, MutableMapping):
            record[self.target_field] = value
        else:
            setattr(record, self.target_field, value)

    @staticmethod
    def _label(record: Any) -> str:
        if isinstance(record, MutableMapping):
            return str(record.get("name") or record.get("email") or "<unnamed>")
        return str(getattr(record, "name", None) or getattr(record, "email", None) or "<unnamed>")

    async def _convert_one(self, record: Any, scale: ByteScale) -> None:
        raw = self._read(record)
        try:
            value = parse_size(raw, scale)
        except UnitConversionError as e:
            logger.error(f"Error converting {self.source_field} for {self._label(record)}: {e}")
            self._write(record, None)
            return
        self._write(record, value)
        logger.debug(f"Converted {raw} to {value:.2f} bytes for {self._label(record)}")

    async def convert(self, records: Sequence[Any], use_binary_base: bool = False) -> List[Any]:
        """Converts every record concurrently and returns them once all are done."""
        scale = ByteScale.for_base(use_binary_base)
        await asyncio.gather(*(self._convert_one(record, scale) for record in records))
        return list(records)
