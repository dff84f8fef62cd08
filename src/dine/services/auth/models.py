"""Data models for authentication."""

from pydantic import BaseModel


class TokenPayload(BaseModel):
    """
    Identity extracted from a verified token.

    Tokens carry the user id and nothing else. Anything beyond identity must be
    re-fetched from the user repository.

    Attributes:
        id: User id from the 'id' claim
    """

    id: str


class AuthenticatedUser(BaseModel):
    """Identity attached to a request by the access-token gate."""

    id: str


class UserPublic(BaseModel):
    """User fields safe to return to clients."""

    id: str
    email: str


class AuthResult(BaseModel):
    """
    Outcome of register/login/refresh.

    Attaching the tokens to a transport session (cookies) is the caller's job.
    """

    access_token: str
    refresh_token: str
    user: UserPublic
