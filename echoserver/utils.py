from datetime import datetime
from typing import Optional

LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

NS_PER_US = 1_000
NS_PER_MS = 1_000_000
NS_PER_S = 1_000_000_000


def _fraction(value: int, digits: int) -> str:
    """Render ``value / 10**digits`` without trailing zeros, e.g. ``12.5``."""
    whole, frac = divmod(value, 10**digits)
    frac_text = str(frac).rjust(digits, "0").rstrip("0")
    return f"{whole}.{frac_text}" if frac_text else str(whole)


def format_duration(ns: int) -> str:
    """Format a duration in nanoseconds in its natural unit.

    Mirrors the way Go prints ``time.Duration`` values, which is what the
    access log format has always used: ``850ns``, ``12.5µs``, ``1.2ms``,
    ``2.5s``, ``1m30s``, ``1h0m0s``.
    """
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < NS_PER_MS:
        return f"{sign}{_fraction(ns, 3)}µs"
    if ns < NS_PER_S:
        return f"{sign}{_fraction(ns, 6)}ms"

    seconds, frac = divmod(ns, NS_PER_S)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + _fraction(seconds * NS_PER_S + frac, 9) + "s"


def format_timestamp(when: Optional[datetime] = None) -> str:
    return (when or datetime.now()).strftime(LOG_DATE_FORMAT)
