"""argtrim package root."""

from argtrim.exceptions import NeverRaise, NeverThrown
from argtrim.invariants import never

__all__ = ["__version__", "NeverRaise", "NeverThrown", "never"]

__version__ = "0.1.0"
