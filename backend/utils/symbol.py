"""Utility functions for normalizing asset symbols.

Exchanges, wallets and chains spell the same asset many ways ("BTC/USDT",
"BTC-PERP", "Spot::BTC", "WBTC"). Ledger filtering compares symbols only
after they have been folded to one canonical base-asset form here.
"""

import re

_QUOTE_SUFFIX = re.compile(r"[:/-](USDT|USDC|BTC|ETH|BNB|EUR|USD|DAI)$")
_MARKET_SUFFIX = re.compile(r"-(SPOT|PERP|FUTURES)$")

# Wrapped / bridged aliases that should account as the underlying asset.
SYMBOL_ALIASES = {
    "WETH": "ETH",
    "WBTC": "BTC",
    "WBNB": "BNB",
    "WAXE": "AXE",
    "WFTM": "FTM",
    "WAVAX": "AVAX",
    "WMATIC": "MATIC",
    "WPOL": "POL",
    "WCRO": "CRO",
    "WSOL": "SOL",
    "USDC.E": "USDC",
    "USDC.P": "USDC",
    "USDT.E": "USDT",
    "USDT.P": "USDT",
    "BTC.B": "BTC",
    "MANTLE": "MNT",
    "LUNA": "LUNC",
}


def normalize_symbol(symbol: str | None) -> str:
    """Fold an exchange/wallet symbol to its canonical base asset.

    Examples:
        "btc/usdt" -> "BTC", "ETH-PERP" -> "ETH", "0x1::coin::APT" -> "APT",
        "SOLUSDC" -> "SOL", "WETH" -> "ETH".

    Returns "" for empty input, which never matches a target symbol.
    """
    if not symbol:
        return ""

    s = str(symbol).upper().strip()

    # Module-qualified names ("0x...::Module::Coin", "Spot::BTC")
    if "::" in s:
        return normalize_symbol(s.split("::")[-1])

    # Base:Quote
    if ":" in s:
        return normalize_symbol(s.split(":")[0])

    s = _MARKET_SUFFIX.sub("", s)
    s = _QUOTE_SUFFIX.sub("", s)

    # Glued market pairs ("BTCUSDT"); the bare quote assets keep their name.
    if s.endswith("USDT") and len(s) > 4:
        s = s[:-4]
    if s.endswith("USDC") and len(s) > 4:
        s = s[:-4]
    if s.endswith("USD") and len(s) > 3:
        s = s[:-3]

    return SYMBOL_ALIASES.get(s, s)


def symbols_match(left: str | None, right: str | None) -> bool:
    """Compare two symbols after normalization; empty symbols never match."""
    a = normalize_symbol(left)
    return bool(a) and a == normalize_symbol(right)
