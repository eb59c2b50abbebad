"""Fixed-point monetary amounts.

Floating-point numbers cannot represent every decimal fraction with four
digits of precision exactly (the classic ``0.1 + 0.2``), so an ``Amount``
holds an unsigned 64-bit count of 1/10000 fractions of a unit. Regular
arithmetic operators are deliberately absent: only checked ``add`` and
``sub`` exist, and parsing from a float is the single place where floats
are tolerated.
"""

import math
import sys
from functools import total_ordering

from errors import LedgerArithmeticError

SCALE = 10_000
MAX_UNITS = 2**64 - 1


@total_ordering
class Amount:
    __slots__ = ("_units",)

    def __init__(self) -> None:
        self._units = 0

    @classmethod
    def zero(cls) -> "Amount":
        return cls()

    @classmethod
    def max_value(cls) -> "Amount":
        return cls._from_units(MAX_UNITS)

    @classmethod
    def _from_units(cls, units: int) -> "Amount":
        amount = cls()
        object.__setattr__(amount, "_units", units)
        return amount

    @classmethod
    def from_decimal(cls, value: float) -> "Amount":
        """Parse a decimal amount, truncating past the fourth fractional digit.

        Rejects non-numeric, negative, NaN and infinite input, and anything whose scaled
        value is neither exactly zero nor a positive normal float.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise LedgerArithmeticError(f"Invalid monetary value: {value!r}")
        try:
            scaled = float(value) * SCALE
        except OverflowError:
            raise LedgerArithmeticError(f"Monetary value out of range: {value!r}") from None
        if scaled == 0.0:
            return cls.zero()
        if math.isnan(scaled) or math.isinf(scaled) or scaled < sys.float_info.min:
            raise LedgerArithmeticError(f"Invalid monetary value: {value!r}")
        units = int(scaled)
        if units > MAX_UNITS:
            raise LedgerArithmeticError(f"Monetary value out of range: {value!r}")
        return cls._from_units(units)

    @property
    def units(self) -> int:
        """Number of ten-thousandths held by this amount."""
        return self._units

    def add(self, other: "Amount") -> "Amount":
        units = self._units + other._units
        if units > MAX_UNITS:
            raise LedgerArithmeticError()
        return Amount._from_units(units)

    def sub(self, other: "Amount") -> "Amount":
        if other._units > self._units:
            raise LedgerArithmeticError()
        return Amount._from_units(self._units - other._units)

    def __setattr__(self, name, value):
        if hasattr(self, "_units"):
            raise AttributeError("Amount is immutable")
        object.__setattr__(self, name, value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._units == other._units

    def __lt__(self, other: "Amount") -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._units < other._units

    def __hash__(self) -> int:
        return hash(self._units)

    def __str__(self) -> str:
        whole, fraction = divmod(self._units, SCALE)
        return f"{whole}.{fraction:04d}"

    def __repr__(self) -> str:
        return f"Amount('{self}')"
