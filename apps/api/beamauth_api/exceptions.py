"""Error kinds raised by the beam authorization services."""


class BeamAuthError(Exception):
    """Base class for service errors."""


class ValidationError(BeamAuthError):
    """Malformed or missing required input."""


class PermissionDenied(BeamAuthError):
    """Actor lacks the required role or capability."""


class NotFound(BeamAuthError):
    """Referenced entity does not exist."""


class TransportFailure(BeamAuthError):
    """A notification channel could not deliver a message."""
