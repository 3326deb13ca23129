# ==============================================================================
# NUMBER PARSING
# ==============================================================================
# Form values for money and quantities. "nan" and "inf" are valid Python
# floats but never valid amounts.
# ==============================================================================

import math
from typing import Any, Optional


def to_number(value: Any, cast=float) -> Optional[float]:
    """Parse a form value; None when it isn't a finite number."""
    if value is None or value == '':
        return None
    try:
        number = cast(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def percent(part: float, total: float) -> int:
    """Whole percentage, halves rounded up (1 of 8 is 13)."""
    return int(math.floor(part * 100 / total + 0.5))
