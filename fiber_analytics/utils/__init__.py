"""Shared helpers: amount codec, asset registry, geography and configuration"""

from .amounts import (
    AmountDecodeError,
    SHANNONS_PER_CKB,
    decode_amount,
    encode_amount,
    parse_amount,
    parse_capacity,
    to_display,
)
from .assets import NATIVE_ASSET, SUPPORTED_ASSETS, is_supported_asset
from .config import Config

__all__ = [
    'AmountDecodeError',
    'SHANNONS_PER_CKB',
    'decode_amount',
    'encode_amount',
    'parse_amount',
    'parse_capacity',
    'to_display',
    'NATIVE_ASSET',
    'SUPPORTED_ASSETS',
    'is_supported_asset',
    'Config',
]
