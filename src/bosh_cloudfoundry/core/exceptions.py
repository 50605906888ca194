"""Custom exceptions for the Cloud Foundry plugin."""

from typing import Optional


class CloudFoundryError(Exception):
    """Base exception for all plugin errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ValidationError(CloudFoundryError):
    """User-supplied input is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.field = field


class ImmutableAttributeError(ValidationError):
    """Attempted change to a property that is locked after creation."""
    pass


class ParseError(CloudFoundryError):
    """Manifest on disk is malformed."""
    pass


class NotFoundError(CloudFoundryError):
    """Expected file is absent."""
    pass


class ConfigurationError(CloudFoundryError):
    """Configuration error."""
    pass


class AuthenticationError(CloudFoundryError):
    """Director credentials are missing or rejected."""
    pass


class DirectorError(CloudFoundryError):
    """Director communication error."""
    pass


class UploadError(DirectorError):
    """Release or stemcell upload failed."""
    pass


class DeployError(DirectorError):
    """Deployment submission failed."""
    pass
