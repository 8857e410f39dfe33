"""On-chain amount codec: hex integers to display-scaled decimals"""

import logging
from decimal import Decimal, localcontext
from typing import Optional, Union

from .assets import NATIVE_ASSET, is_native_asset

logger = logging.getLogger(__name__)

SHANNONS_PER_CKB = 100_000_000

# Legacy u128 capacities are serialized as "0x" + 32 hex digits, little-endian
U128_HEX_DIGITS = 32
U128_ENCODED_LENGTH = U128_HEX_DIGITS + 2
U128_MAX = (1 << 128) - 1

_HEX_DIGITS = set("0123456789abcdefABCDEF")


class AmountDecodeError(ValueError):
    """Raised when an amount string is not a valid hex integer"""


def _strip_prefix(hex_str: str) -> str:
    if not isinstance(hex_str, str):
        raise AmountDecodeError(f"Amount must be a hex string, got {type(hex_str).__name__}")
    digits = hex_str[2:] if hex_str[:2] in ("0x", "0X") else hex_str
    if not digits:
        raise AmountDecodeError(f"Empty hex amount: {hex_str!r}")
    if not set(digits) <= _HEX_DIGITS:
        raise AmountDecodeError(f"Invalid hex amount: {hex_str!r}")
    return digits


def detect_endianness(hex_str: str) -> str:
    """Return "little" for the legacy 34-character u128 form, "big" otherwise"""
    if hex_str.startswith("0x") and len(hex_str) == U128_ENCODED_LENGTH:
        return "little"
    return "big"


def decode_amount(hex_str: str, endianness: str = "big") -> int:
    """
    Decode a hex integer into an arbitrary-precision int

    Args:
        hex_str: Hex digits with an optional 0x prefix
        endianness: "big" (default) or "little" for the legacy u128 layout

    Raises:
        AmountDecodeError: if the input is not valid hex for the given layout
    """
    digits = _strip_prefix(hex_str)

    if endianness == "big":
        return int(digits, 16)

    if endianness != "little":
        raise ValueError(f"Unknown endianness: {endianness}")

    if len(digits) > U128_HEX_DIGITS:
        raise AmountDecodeError(f"Little-endian amount wider than 128 bits: {hex_str!r}")
    if len(digits) % 2:
        raise AmountDecodeError(f"Little-endian amount has a partial byte: {hex_str!r}")

    padded = digits.rjust(U128_HEX_DIGITS, "0")
    byte_pairs = [padded[i:i + 2] for i in range(0, len(padded), 2)]
    return int("".join(reversed(byte_pairs)), 16)


def encode_amount(value: int, endianness: str = "big") -> str:
    """Encode a non-negative int as a 0x-prefixed hex string"""
    if value < 0:
        raise AmountDecodeError(f"Amounts are non-negative, got {value}")

    if endianness == "big":
        return hex(value)

    if value > U128_MAX:
        raise AmountDecodeError(f"Amount does not fit in 128 bits: {value}")
    return "0x" + value.to_bytes(16, "little").hex()


def parse_amount(hex_str: str) -> int:
    """Decode an amount, picking the byte order from its encoded length"""
    return decode_amount(hex_str, detect_endianness(hex_str))


def to_display(amount: int, asset_name: Optional[str] = None) -> Decimal:
    """Scale a base-unit amount into the asset's display unit

    Only the native asset is subdivided; other assets are reported as-is.
    """
    if not asset_name or is_native_asset(asset_name):
        # 128-bit values have up to 39 digits, wider than the default context
        with localcontext() as ctx:
            ctx.prec = 60
            return Decimal(amount) / SHANNONS_PER_CKB
    return Decimal(amount)


def parse_capacity(capacity: Union[str, int], asset_name: Optional[str] = None) -> Decimal:
    """Decode a channel capacity field and scale it for display"""
    if isinstance(capacity, int):
        amount = capacity
    else:
        amount = parse_amount(capacity)
    return to_display(amount, asset_name or NATIVE_ASSET)


def format_compact(value: Union[int, float, Decimal, str], precision: Optional[int] = 1) -> str:
    """Format a number with k/m/b suffixes (e.g. 1.2k, 3.4m, 2.1b)"""
    if isinstance(value, str):
        try:
            value = Decimal(value.replace(",", ""))
        except ArithmeticError:
            return value

    number = float(value)
    if number == 0:
        return "0"

    sign = "-" if number < 0 else ""
    magnitude = abs(number)

    def _fmt(num: float) -> str:
        if precision is None:
            return str(round(num))
        return f"{num:.{precision}f}"

    for threshold, suffix in ((1e9, "b"), (1e6, "m"), (1e3, "k")):
        if magnitude >= threshold:
            return f"{sign}{_fmt(magnitude / threshold)}{suffix}"

    if precision is None:
        return f"{sign}{round(magnitude)}"
    return f"{sign}{magnitude:.{min(precision, 2)}f}"
