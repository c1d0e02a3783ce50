"""Exception markers for argtrim."""

from __future__ import annotations


class NeverRaise(RuntimeError):
    """Sentinel exception that should be unreachable.

    Raising this exception means an internal invariant of the rewrite was
    broken, for example a removal plan pointing past the end of a call's
    argument list. It is never a user error.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})

    @property
    def env_dict(self) -> dict[str, str]:
        return {key: repr(value) for key, value in sorted(self.env.items())}


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""
