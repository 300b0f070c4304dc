"""
Steam Review Guesser core.

Picks unseen Steam store entries one at a time, remembers which ones
were shown and how each guess went, and moves that history between
devices through a portable CSV export.
"""

from review_guesser.config import Settings, get_settings
from review_guesser.logger import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
