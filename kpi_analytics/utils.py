"""
Shared helpers: numeric coercion of raw row values and label formatting.
"""

import logging
import math
from typing import Any

from .config import DISPLAY_LABEL_MAX

logger = logging.getLogger(__name__)


def safe_float(val: Any) -> float | None:
    """Coerce a raw value to float, returning None for anything non-numeric.

    NaN and infinities count as missing observations. Strings such as
    ``"12.5"`` or ``"78%"`` are accepted because the persistence layer
    returns DECIMAL columns as text.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return None
        if val.endswith("%"):
            val = val[:-1]
    try:
        result = float(val)
    except (ValueError, TypeError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def truncate_label(label: str, max_len: int = DISPLAY_LABEL_MAX) -> str:
    """Shorten long category names for chart axes ("Hydraulic press lea…")."""
    label = str(label)
    if len(label) <= max_len:
        return label
    return label[: max_len - 3] + "…"
