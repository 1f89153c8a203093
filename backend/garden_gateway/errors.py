from __future__ import annotations


UNAUTHORIZED_MESSAGE = "Unauthorized"


class ConfigurationError(RuntimeError):
    """Required configuration is absent; the process must not start."""


class GatewayError(Exception):
    """Base for failures that map onto a `{"msg": ...}` response.

    `detail` is for server logs only. `public_message` is the only text a
    client ever sees.
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, detail: str = "", *, public_message: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail
        if public_message is not None:
            self.public_message = public_message


class AuthenticationError(GatewayError):
    status_code = 401
    public_message = UNAUTHORIZED_MESSAGE


class MissingCredential(AuthenticationError):
    pass


class MalformedCredential(AuthenticationError):
    pass


class InvalidCredential(AuthenticationError):
    pass


class VerifierUnavailable(AuthenticationError):
    pass


class ValidationError(GatewayError):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, public_message=message)


class UpstreamError(GatewayError):
    public_message = "Upstream service error"


class UpstreamTimeout(UpstreamError):
    public_message = "Upstream service timed out"


class PersistenceError(GatewayError):
    public_message = "Database error"
