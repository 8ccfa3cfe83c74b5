"""Human-readable byte quantities with binary (IEC) suffixes."""

from __future__ import annotations

from dataclasses import dataclass

_USIZE_MAX = (1 << 64) - 1

KI = 1 << 10
MI = KI << 10
GI = MI << 10
TI = GI << 10
PI = TI << 10
EI = PI << 10

_PARSE_MULTIPLES = {
    "": 1,
    "b": 1,
    "byte": 1,
    "bytes": 1,
    "kib": KI,
    "mib": MI,
    "gib": GI,
    "tib": TI,
    "pib": PI,
    "eib": EI,
}

_DISPLAY_SUFFIXES = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB")

_NUMBER_CHARS = frozenset("0123456789.")


def _split_number(text: str) -> tuple[str, str]:
    """Split text into its leading run of digits and dots and the rest."""
    for position, char in enumerate(text):
        if char not in _NUMBER_CHARS:
            return text[:position], text[position:]
    return text, ""


def _parse_float(digits: str) -> float:
    if not digits:
        raise ValueError("cannot parse float from empty string")
    try:
        return float(digits)
    except ValueError:
        raise ValueError("invalid float literal") from None


@dataclass(frozen=True, order=True)
class ByteSize:
    """A number of bytes."""

    value: int

    @classmethod
    def parse(cls, text: str) -> ByteSize:
        """Parse text such as ``"12kib"`` or ``"1.5MiB"``."""
        digits, suffix = _split_number(text)
        number = _parse_float(digits)
        try:
            multiple = _PARSE_MULTIPLES[suffix.lower()]
        except KeyError:
            raise ValueError("invalid suffix") from None
        product = number * multiple
        if product != product:
            return cls(0)
        if product >= _USIZE_MAX:
            return cls(_USIZE_MAX)
        return cls(int(product))

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        value = float(self.value)
        steps = 0
        while value >= 1024.0:
            value /= 1024.0
            steps += 1

        if steps == 0:
            suffix = "byte" if value == 1.0 else "bytes"
        else:
            suffix = _DISPLAY_SUFFIXES[steps - 1]

        trimmed = f"{value:.2f}".rstrip("0").rstrip(".")
        return f"{trimmed} {suffix}"