"""
Ticker string normalization.

Every lookup key in the mapping tables is produced here, so the rules must stay
deterministic and idempotent: normalize_symbol(normalize_symbol(x)) == normalize_symbol(x).
"""

import re
import unicodedata
from typing import Any

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_NAME_NOISE = re.compile(r"[^a-z0-9 ]+")
_WHITESPACE = re.compile(r"\s+")

# Quote currencies stripped when searching the reference catalog (BTCUSDT -> BTC)
QUOTE_SUFFIXES = ("USDT", "USDC", "USD", "PERP")
WRAPPED_PREFIX = "W"


def _fold_ascii(value: str) -> str:
    return unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")


def normalize_symbol(raw: Any) -> str:
    """
    Canonicalize a raw ticker string.

    Uppercases, folds accented characters to ASCII and drops everything
    outside A-Z0-9. Never raises: non-string input yields "".

    Examples:
        " btc " -> "BTC"
        "$eth" -> "ETH"
        "BRK.B" -> "BRKB"
    """
    if not isinstance(raw, str):
        return ""
    return _NON_ALNUM.sub("", _fold_ascii(raw.strip()).upper())


def normalize_name(name: Any) -> str:
    """Fold a display name for similarity comparison (lowercase, single spaces)."""
    if not isinstance(name, str):
        return ""
    folded = _NAME_NOISE.sub(" ", _fold_ascii(name).lower())
    return _WHITESPACE.sub(" ", folded).strip()


def apply_overrides(normalized: str, overrides: dict[str, str]) -> str:
    """Map legacy or exchange-specific codes onto their canonical symbol."""
    return overrides.get(normalized, normalized)


def symbol_variants(normalized: str) -> list[str]:
    """
    Candidate forms of a symbol for reference catalog lookups.

    Returns the symbol itself, then the quote-suffix-stripped form
    (BTCUSDT -> BTC) and the unwrapped form (WBTC -> BTC), without duplicates.
    """
    if not normalized:
        return []

    variants = [normalized]
    for suffix in QUOTE_SUFFIXES:
        if normalized.endswith(suffix) and len(normalized) > len(suffix) + 1:
            variants.append(normalized[: -len(suffix)])
            break

    for candidate in list(variants):
        if candidate.startswith(WRAPPED_PREFIX) and len(candidate) >= 4:
            variants.append(candidate[len(WRAPPED_PREFIX) :])

    seen: set[str] = set()
    unique = []
    for variant in variants:
        if variant not in seen:
            seen.add(variant)
            unique.append(variant)
    return unique
