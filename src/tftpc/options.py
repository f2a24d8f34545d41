from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import BLKSIZE, BLKSIZE_RANGE, NUL, TIMEOUT, TIMEOUT_RANGE, TSIZE
from .errors import MalformedMessageError, ValidationError

_RANGES = {
    BLKSIZE: BLKSIZE_RANGE,
    TIMEOUT: TIMEOUT_RANGE,
    TSIZE: (0, None),
}


@dataclass(frozen=True, slots=True)
class Option:
    """A negotiated transfer parameter (RFC 2347)."""

    label: str
    value: int

    @staticmethod
    def blksize(value: int) -> "Option":
        """Payload bytes per DATA packet (RFC 2348), 8..65464."""
        return Option(BLKSIZE, value)

    @staticmethod
    def timeout(value: int) -> "Option":
        """Seconds the peer waits before retransmitting (RFC 2349), 1..255."""
        return Option(TIMEOUT, value)

    @staticmethod
    def tsize(value: int) -> "Option":
        """Size in bytes of the file being transferred (RFC 2349)."""
        return Option(TSIZE, value)

    def validate(self) -> None:
        if self.label not in _RANGES:
            raise ValidationError(f"unknown option: {self.label!r}")
        low, high = _RANGES[self.label]
        if self.value < low or (high is not None and self.value > high):
            bounds = f"{low}..{high}" if high is not None else f">= {low}"
            raise ValidationError(f"{self.label} out of range ({bounds}): {self.value}")

    def to_bytes(self) -> bytes:
        if self.value < 0:
            raise ValidationError(f"{self.label} must not be negative: {self.value}")
        try:
            label = self.label.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValidationError(f"option label is not ASCII: {self.label!r}") from exc
        if NUL in label:
            raise ValidationError(f"option label contains NUL: {self.label!r}")
        try:
            value = str(self.value).encode("ascii")
        except ValueError as exc:
            raise ValidationError(f"{self.label} value too large to encode") from exc
        return label + NUL + value + NUL


def decode_option(raw: bytes, offset: int = 0) -> Tuple[Optional[Option], int]:
    """Read one ``label NUL value NUL`` pair starting at ``offset``.

    Returns ``(option, next_offset)``. When the buffer runs out before both
    tokens are terminated, returns ``(None, offset)``: a truncated trailing
    option means there are no more options.
    """
    label_end = raw.find(NUL, offset)
    if label_end < 0:
        return None, offset
    value_end = raw.find(NUL, label_end + 1)
    if value_end < 0:
        return None, offset

    label_tok = raw[offset:label_end]
    value_tok = raw[label_end + 1 : value_end]
    try:
        label = label_tok.decode("ascii")
    except UnicodeDecodeError as exc:
        raise MalformedMessageError(f"malformed option label: {label_tok!r}") from exc
    # bytes.isdigit() only accepts ASCII digits, so signs and spaces are rejected
    if not value_tok.isdigit():
        raise MalformedMessageError(f"malformed option value for {label!r}: {value_tok!r}")
    try:
        value = int(value_tok)
    except ValueError as exc:
        # int() refuses digit strings past sys.get_int_max_str_digits()
        raise MalformedMessageError(f"malformed option value for {label!r}: {len(value_tok)} digits") from exc
    return Option(label, value), value_end + 1
