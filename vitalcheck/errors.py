"""Exception hierarchy for the health monitoring core."""


class VitalCheckError(Exception):
    """Base class for all errors raised by vitalcheck."""


class AuthorizationError(VitalCheckError):
    """An operation that writes health data was attempted without a valid session."""


class StorageError(VitalCheckError):
    """The storage collaborator failed to read or write a key."""


class EncryptionError(VitalCheckError):
    """Health data could not be encrypted before persisting."""


class DecryptionError(VitalCheckError):
    """Stored health data could not be decrypted or parsed."""


class ModelUnavailableError(VitalCheckError):
    """The learned classifier has not been trained."""
