"""Custom exception types for the release dashboard."""


class ReleaseDashboardError(Exception):
    """Base exception for all recoverable release dashboard errors."""


class ConfigurationError(ReleaseDashboardError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(ReleaseDashboardError):
    """Raised when GitHub credentials are unavailable or rejected."""


class ApiError(ReleaseDashboardError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class StorageError(ReleaseDashboardError):
    """Raised when the persisted release table cannot be read or written."""


class InvalidQueryError(ReleaseDashboardError):
    """Raised when aggregate query parameters cannot be interpreted."""


class DataValidationError(ReleaseDashboardError):
    """Raised when a persisted row does not match the release record schema."""
