"""
Domain exceptions
=================

Services raise these; ``app.main`` turns them into ``{"error": message}``
responses with the matching status code.

Usage:
    from app.core.exceptions import NotFoundError, CapacityExceeded

    if meeting is None:
        raise NotFoundError("Meeting not found")
"""


class KnowledgeConnectError(Exception):
    """Base exception for all business-rule failures."""

    http_status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ============================================
# 400-type
# ============================================

class ValidationError(KnowledgeConnectError):
    """Missing or malformed input."""

    http_status = 400


class InvalidUpdate(ValidationError):
    """Update payload names a field outside the allow-list."""

    def __init__(self, message: str = "Invalid updates!"):
        super().__init__(message)


class CapacityExceeded(ValidationError):
    def __init__(self, message: str = "Meeting has reached maximum participants"):
        super().__init__(message)


class AlreadyJoined(ValidationError):
    def __init__(self, message: str = "You have already joined this meeting"):
        super().__init__(message)


# ============================================
# Auth
# ============================================

class AuthenticationError(KnowledgeConnectError):
    """Missing, invalid or expired credential."""

    http_status = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class AuthorizationError(KnowledgeConnectError):
    """Caller is authenticated but not allowed to perform the action."""

    http_status = 403


# ============================================
# 404-type
# ============================================

class NotFoundError(KnowledgeConnectError):
    http_status = 404


class MappingNotFound(NotFoundError):
    def __init__(self, message: str = "Mapping not found"):
        super().__init__(message)
