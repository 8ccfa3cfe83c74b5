"""Ordinal numbering of satoshis: ordinals, halving epochs and block heights."""

from __future__ import annotations

import re
from bisect import bisect_right
from itertools import accumulate

U64_MAX = (1 << 64) - 1

COIN_VALUE = 100_000_000
SUPPLY = 2099999997690000
BLOCKS_PER_EPOCH = 210000

_U64_TEXT = re.compile(r"\+?[0-9]+")


class _U64(int):
    """An unsigned 64-bit integer with a distinct type."""

    def __new__(cls, value: int | str = 0):
        if isinstance(value, str) and not _U64_TEXT.fullmatch(value):
            raise ValueError(f"invalid {cls.__name__.lower()}: {value!r}")
        number = int.__new__(cls, value)
        if not 0 <= number <= U64_MAX:
            raise ValueError(f"{cls.__name__.lower()} out of range: {int(number)}")
        return number

    def _checked(self, result: int):
        if not 0 <= result <= U64_MAX:
            raise OverflowError(f"{type(self).__name__.lower()} arithmetic overflow")
        return type(self)(result)

    def __add__(self, other: int):
        if not isinstance(other, int):
            return NotImplemented
        return self._checked(int(self) + int(other))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"

    __str__ = int.__repr__


class Ordinal(_U64):
    """The serial number of a single satoshi."""

    SUPPLY = SUPPLY

    def epoch(self) -> Epoch:
        return Epoch.from_ordinal(self)

    def epoch_position(self) -> int:
        return int(self) - int(self.epoch().starting_ordinal())

    def height(self) -> Height:
        epoch = self.epoch()
        return epoch.starting_height() + self.epoch_position() // epoch.subsidy()

    def subsidy_position(self) -> int:
        return self.epoch_position() % self.epoch().subsidy()

    def name(self) -> str:
        """The alphabetic name: ``"a"`` for the last ordinal, longer for earlier ones."""
        if self > SUPPLY:
            raise ValueError(f"ordinal beyond supply: {int(self)}")
        remaining = SUPPLY - int(self)
        letters = []
        while remaining > 0:
            letters.append(chr(ord("a") + (remaining - 1) % 26))
            remaining = (remaining - 1) // 26
        return "".join(reversed(letters))

    def population(self) -> int:
        """Number of set bits."""
        return int(self).bit_count()


class Epoch(_U64):
    """A halving epoch of the subsidy schedule."""

    BLOCKS = BLOCKS_PER_EPOCH

    def subsidy(self) -> int:
        if self < 64:
            return (50 * COIN_VALUE) >> int(self)
        return 0

    def starting_ordinal(self) -> Ordinal:
        if self < len(STARTING_ORDINALS):
            return STARTING_ORDINALS[int(self)]
        return STARTING_ORDINALS[-1]

    def starting_height(self) -> Height:
        return Height(int(self) * BLOCKS_PER_EPOCH)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> Epoch:
        return cls(bisect_right(STARTING_ORDINALS, ordinal) - 1)

    @classmethod
    def from_height(cls, height: int) -> Epoch:
        return cls(int(height) // BLOCKS_PER_EPOCH)


class Height(_U64):
    """A block height."""

    def __sub__(self, other: int):
        if not isinstance(other, int):
            return NotImplemented
        return self._checked(int(self) - int(other))

    def subsidy(self) -> int:
        return Epoch.from_height(self).subsidy()

    def starting_ordinal(self) -> Ordinal:
        epoch = Epoch.from_height(self)
        offset = int(self - epoch.starting_height())
        return epoch.starting_ordinal() + offset * epoch.subsidy()


STARTING_ORDINALS: tuple[Ordinal, ...] = tuple(
    Ordinal(n)
    for n in accumulate(
        (BLOCKS_PER_EPOCH * Epoch(epoch).subsidy() for epoch in range(33)),
        initial=0,
    )
)

Epoch.STARTING_ORDINALS = STARTING_ORDINALS
Ordinal.LAST = Ordinal(SUPPLY - 1)