# ==============================================================================
# ID GENERATION
# ==============================================================================
# Identifiers are short and human-readable (printed on delivery notes), so
# they are random numbers with a prefix, re-drawn on collision.
# ==============================================================================

import random
import time
from typing import Iterable


def random_id(prefix: str, taken: Iterable[str] = (), low: int = 0,
              high: int = 99999, width: int = 0) -> str:
    """
    `<prefix>-<random number>` not present in `taken`.

    Args:
        width: Zero-pad the number to this many digits
    """
    taken = set(taken)
    while True:
        candidate = f"{prefix}-{random.randint(low, high):0{width}d}"
        if candidate not in taken:
            return candidate


def epoch_id(prefix: str) -> str:
    """`<prefix>-<epoch milliseconds>`."""
    return f"{prefix}-{int(time.time() * 1000)}"
