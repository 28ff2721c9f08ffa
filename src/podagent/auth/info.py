"""Authorization header parsing."""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from podagent.api.errors import InvalidAuthError, NotAuthenticatedError


class AuthInfo(BaseModel):
    """Credentials extracted from a request."""

    token: str

    model_config = {"frozen": True}


class AuthInfoParser(ABC):
    """Turns an Authorization header value into AuthInfo."""

    @abstractmethod
    def parse(self, auth_header: str | None) -> AuthInfo:
        """Parse the header.

        Raises:
            NotAuthenticatedError: No credentials were supplied.
            InvalidAuthError: Credentials are present but malformed.
        """
        ...


class BearerAuthInfoParser(AuthInfoParser):
    """Accepts `Authorization: Bearer <token>`."""

    SCHEME = "bearer"

    def parse(self, auth_header: str | None) -> AuthInfo:
        if auth_header is None or not auth_header.strip():
            raise NotAuthenticatedError()

        scheme, _, value = auth_header.strip().partition(" ")
        if scheme.lower() != self.SCHEME:
            raise InvalidAuthError(f"Unsupported authorization scheme: {scheme}")

        token = value.strip()
        if not token:
            raise InvalidAuthError("Bearer token is empty")

        return AuthInfo(token=token)
