"""Exceptions raised inside declutter.

None of these escape the scan orchestrator or the rule engine; they are
turned into soft-error strings on the owning result.
"""


class DeclutterError(Exception):
    """Base class for declutter errors."""


class InvalidPatternError(DeclutterError):
    """A criterion pattern does not compile as a regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class AccessResolutionError(DeclutterError):
    """A scan location's access token could not be turned into a readable root."""


class PrivilegeError(DeclutterError):
    """Privilege escalation is unavailable, was refused, or failed."""
