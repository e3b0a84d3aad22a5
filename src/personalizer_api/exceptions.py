"""Domain exceptions raised by the Personalizer API services."""


class PersonalizerError(Exception):
    """Base class for errors the HTTP layer maps to a response."""

    status_code = 500


class ValidationError(PersonalizerError):
    """The request is missing or has invalid data."""

    status_code = 400


class UploadRejected(ValidationError):
    """An uploaded file is missing, too large or not an allowed image."""


class ClientNotFound(PersonalizerError):
    status_code = 404


class TokenNotFound(PersonalizerError):
    """No access token has been relayed for the shop."""

    status_code = 404
