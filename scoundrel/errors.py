"""
Error taxonomy for the engine.

Every error carries a stable ``error_code`` that is sent to clients
unchanged. Rejections (validation, security) leave the stored session
untouched; an integrity violation destroys it.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error the engine reports to a client."""
    error_code = "ENGINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ActionValidationError(EngineError):
    """The action breaks a game rule for the current state."""
    error_code = "VALIDATION_ERROR"


class SecurityError(EngineError):
    """The action was refused by the integrity layer; client may retry."""
    error_code = "SECURITY_ERROR"


class RateLimitExceeded(SecurityError):
    error_code = "RATE_LIMIT_EXCEEDED"


class TimestampDriftError(SecurityError):
    error_code = "TIMESTAMP_DRIFT"


class SequenceMismatchError(SecurityError):
    error_code = "SEQUENCE_MISMATCH"


class IntegrityViolation(EngineError):
    """Stored state does not match its checksum. Fatal for the session."""
    error_code = "INTEGRITY_VIOLATION"


class SessionNotFound(EngineError):
    """Session is missing or has expired."""
    error_code = "SESSION_NOT_FOUND"


class StoreError(EngineError):
    """Persistence failed. Nothing was committed; safe to retry."""
    error_code = "STORE_ERROR"


class CorruptSession(IntegrityViolation):
    """Stored session document cannot be decoded. Fatal for the session."""
