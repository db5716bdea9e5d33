"""Chain and token helpers used by blockchain node handlers."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from constants import (
    NATIVE_TEST_CHAIN,
    NATIVE_TOKEN_ADDRESS,
    NATIVE_TOKEN_SYMBOLS,
    TOKEN_SYMBOLS,
    get_chain_config,
)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: Optional[str]) -> bool:
    return bool(value) and bool(_ADDRESS_RE.match(value))


def is_native_test_chain(chain: Optional[str]) -> bool:
    return (chain or "").lower() == NATIVE_TEST_CHAIN


def is_native_placeholder(token: Optional[str]) -> bool:
    return (token or "").strip().lower() == NATIVE_TOKEN_ADDRESS.lower()


def is_native_token(chain: Optional[str], token: Optional[str],
                    token_symbol: Optional[str] = None) -> bool:
    """Whether a transfer moves the chain's native currency.

    Native when the token is empty, is the native placeholder address, is
    spelled as a native symbol, or when only a native symbol is given.
    """
    token_value = (token or "").strip()
    token_lower = token_value.lower()
    symbol = (token_symbol or "").strip().lower()

    if not token_value:
        return True
    if is_native_placeholder(token_value) or token_lower in NATIVE_TOKEN_SYMBOLS:
        return True
    if is_native_test_chain(chain) and symbol == "stt":
        return True
    return False


def normalize_token_address(chain: Optional[str], token: str) -> str:
    """Swap the native placeholder for the chain's wrapped-native token."""
    if is_native_placeholder(token):
        config = get_chain_config(chain)
        if config and config.get("wrapped_native_token"):
            return config["wrapped_native_token"]
    return token


def get_token_symbol(token: Optional[str]) -> str:
    if not token:
        return "UNKNOWN"
    return TOKEN_SYMBOLS.get(token.lower(), "UNKNOWN")


def to_base_units(amount: Union[str, int, float], decimals: int) -> str:
    """Decimal amount to integer base units (wei), as a string.

    Raises:
        ValueError: amount is not a non-negative number with at most
            ``decimals`` fractional digits
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount}") from e
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid amount: {amount}")
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
    return str(int(scaled))


def from_base_units(amount_wei: Union[str, int], decimals: int) -> str:
    """Integer base units back to a plain decimal string."""
    value = Decimal(int(str(amount_wei).strip())).scaleb(-decimals)
    text = format(value.normalize(), "f")
    return text


def format_amount_out(amount_out, decimals: int) -> Optional[str]:
    """Human-readable received amount from a quote.

    Quotes report base units as an integer or digit string; a decimal
    string or float is already human-readable.
    """
    if amount_out is None:
        return None
    if isinstance(amount_out, str) and "." in amount_out:
        return amount_out
    if isinstance(amount_out, float):
        return str(amount_out)
    try:
        return from_base_units(amount_out, decimals)
    except (ValueError, InvalidOperation):
        return str(amount_out)
