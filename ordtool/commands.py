"""Commands that answer questions about ordinals without needing an index."""

from __future__ import annotations

import math
import unicodedata
from itertools import count

from .ordinal import STARTING_ORDINALS, SUPPLY, Epoch, Height, Ordinal

_ALPHABET = frozenset("abcdefghijklmnopqrstuvwxyz")
_CURSED_HEIGHT = 124724
_ILLUSIVE_ORDINAL = 623_624_999_999_999
_CHAR_LIMIT = 0x110000
_DEBUG_ESCAPES = {"\0": "\\0", "\t": "\\t", "\r": "\\r", "\n": "\\n", "'": "\\'", "\\": "\\\\"}


class CommandError(ValueError):
    """A command was given input it cannot answer for."""


def epochs() -> list[Ordinal]:
    """The first ordinal of every epoch, followed by the supply."""
    return list(STARTING_ORDINALS)


def _name_key(name: str) -> tuple[int, str]:
    return len(name), name


def name_to_ordinal(name: str) -> int:
    """The ordinal with the given alphabetic name."""
    if not name or not set(name) <= _ALPHABET:
        raise CommandError("Invalid name")

    target = _name_key(name)
    low, high = 0, SUPPLY
    guess = high // 2
    while True:
        candidate = _name_key(Ordinal(guess).name())
        if candidate == target:
            return guess
        if candidate > target:
            low = guess + 1
        else:
            high = guess
        if high == low:
            raise CommandError("Name out of range")
        guess = low + (high - low) // 2


def height_range(height: int | str, names: bool = False) -> tuple[int, int] | tuple[str, str]:
    """The half-open range of ordinals mined in the block at a height."""
    height = Height(height)
    start = height.starting_ordinal()
    end = start + height.subsidy()
    if names:
        return start.name(), Ordinal(end).name()
    return int(start), int(end)


def supply() -> dict[str, int]:
    """Total supply, first and last ordinal, and the last block with a subsidy."""
    first_empty_epoch = next(epoch for epoch in count() if Epoch(epoch).subsidy() == 0)
    return {
        "supply": SUPPLY,
        "first": 0,
        "last": SUPPLY - 1,
        "last mined in block": int(Epoch(first_empty_epoch).starting_height()) - 1,
    }


def _integer_cbrt(n: int) -> int:
    root = round(n ** (1 / 3))
    while root**3 > n:
        root -= 1
    while (root + 1) ** 3 <= n:
        root += 1
    return root


def _char_debug(char: str) -> str:
    if char in _DEBUG_ESCAPES:
        body = _DEBUG_ESCAPES[char]
    elif char.isprintable() and not unicodedata.category(char).startswith("M"):
        body = char
    else:
        body = f"\\u{{{ord(char):x}}}"
    return f"'{body}'"


def traits(ordinal: int | str) -> list[str]:
    """Descriptions of an ordinal's notable properties, one per line."""
    ordinal = Ordinal(ordinal)
    if ordinal > Ordinal.LAST:
        raise CommandError("Invalid ordinal")

    n = int(ordinal)
    digits = str(n)
    lines = ["even" if n % 2 == 0 else "odd"]

    if math.isqrt(n) ** 2 == n:
        lines.append("square")
    if _integer_cbrt(n) ** 3 == n:
        lines.append("cube")

    pi_digits = str(math.pi).replace(".", "")
    if digits == pi_digits[: len(digits)]:
        lines.append("pi")
    if len(digits) % 2 == 0 and digits == "69" * (len(digits) // 2):
        lines.append("nice")
    if set(digits) == {"7"}:
        lines.append("angelic")

    lines.append(f"luck: {digits.count('8') - digits.count('4')}/{len(digits)}")
    lines.append(f"population: {ordinal.population()}")
    lines.append(f"name: {ordinal.name()}")

    code_point = n % _CHAR_LIMIT
    if not 0xD800 <= code_point <= 0xDFFF:
        lines.append(f"character: {_char_debug(chr(code_point))}")

    height = ordinal.height()
    lines.append(f"epoch: {ordinal.epoch()}")
    lines.append(f"height: {height}")

    if ordinal.subsidy_position() == 0:
        lines.append("shiny")

    if height == _CURSED_HEIGHT:
        lines.append("illusive" if n == _ILLUSIVE_ORDINAL else "cursed")

    return lines