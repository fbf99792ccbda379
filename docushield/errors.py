from __future__ import annotations


class AuditError(Exception):
    """Base class for every failure the audit pipeline reports to its caller."""


class ParseError(AuditError, ValueError):
    """Engine text is not a JSON object, even after stripping code fences."""

    def __init__(self, message: str, *, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class EngineInvocationError(AuditError, RuntimeError):
    """The reasoning engine call failed (network, quota, auth, timeout)."""


class UnknownCaseTypeError(AuditError, ValueError):
    pass


class ArchiveError(AuditError, ValueError):
    pass


class ChecklistConfigError(AuditError, ValueError):
    pass
