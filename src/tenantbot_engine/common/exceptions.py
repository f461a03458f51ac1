"""Tenantbot-Engine exception hierarchy."""


class TenantbotError(Exception):
    """Base exception for all Tenantbot errors."""

    def __init__(self, message: str = "", code: str = "TENANTBOT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class TenantNotFoundError(TenantbotError):
    """Raised when a client id does not resolve to a tenant."""

    def __init__(self, message: str = "Client not found"):
        super().__init__(message, code="NOT_FOUND")


class StorageLimitExceededError(TenantbotError):
    """Raised when a profile edit would push a tenant past its storage limit."""

    def __init__(self, message: str = "Storage limit exceeded"):
        super().__init__(message, code="STORAGE_LIMIT")


class InvalidHistoryModeError(TenantbotError):
    """Raised when a history clear request names an unknown mode."""

    def __init__(self, message: str = "Unknown history clear mode"):
        super().__init__(message, code="INVALID_MODE")
