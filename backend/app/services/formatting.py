"""Number and currency formatting for exports and reports."""

from __future__ import annotations

from app.config import settings

# Indonesian magnitude suffixes: triliun, miliar, juta
_MAGNITUDES = [
    (1e12, "T"),
    (1e9, "M"),
    (1e6, "jt"),
]


def format_number(value: float, decimals: int = 1) -> str:
    """Fixed decimals with thousands separators, e.g. ``1,234.5``."""
    return f"{value:,.{decimals}f}"


def _format_id(value: float, min_decimals: int = 0, max_decimals: int = 2) -> str:
    """Indonesian grouping: ``.`` for thousands, ``,`` for decimals."""
    text = f"{value:,.{max_decimals}f}"
    if max_decimals > min_decimals and "." in text:
        whole, frac = text.split(".")
        frac = frac.rstrip("0").ljust(min_decimals, "0")
        text = f"{whole}.{frac}" if frac else whole
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: float) -> str:
    """Compact currency string, e.g. ``Rp 2,5 T`` for 2.5 trillion."""
    prefix = "Rp" if settings.currency_code == "IDR" else settings.currency_code
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    for threshold, suffix in _MAGNITUDES:
        if magnitude >= threshold:
            return f"{sign}{prefix} {_format_id(magnitude / threshold, 1, 2)} {suffix}"
    return f"{sign}{prefix} {_format_id(magnitude, 0, 0)}"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"
