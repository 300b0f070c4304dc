"""
Game selection strategies.

Picks an unseen game from the full catalog or from
balanced partitions with a full-catalog fallback.
"""

from review_guesser.selection.strategy import (
    DEFAULT_FALLBACK_APP_ID,
    Exhausted,
    RandomSelector,
    Resolved,
    SelectionMode,
    SelectionResult,
    pick_unseen,
)

__all__ = [
    "DEFAULT_FALLBACK_APP_ID",
    "Exhausted",
    "RandomSelector",
    "Resolved",
    "SelectionMode",
    "SelectionResult",
    "pick_unseen",
]
