"""JWT bearer verification and caller identity."""

from typing import Annotated

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as ClaimsValidationError

from student_insights.core.config import Settings, get_settings
from student_insights.core.errors import InvalidCredentialError, UnauthenticatedError

logger = structlog.get_logger(__name__)

MISSING_TOKEN_MSG = "Authentication token not provided"
INVALID_TOKEN_MSG = "Invalid token"

_optional_security = HTTPBearer(auto_error=False)


class CallerIdentity(BaseModel):
    """Authenticated caller, built from verified token claims.

    The identity system signs Portuguese claim names (``id``, ``nome``,
    ``acesso``, ``escolaId``); the English names are accepted as well.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(validation_alias=AliasChoices("id", "sub", "user_id"))
    name: str = Field(default="", validation_alias=AliasChoices("nome", "name"))
    access_level: str = Field(default="", validation_alias=AliasChoices("acesso", "access_level"))
    school_id: str | None = Field(
        default=None, validation_alias=AliasChoices("escolaId", "school_id")
    )

    def is_administrator(self, admin_access_level: str) -> bool:
        return self.access_level == admin_access_level


def verify_token(token: str, settings: Settings | None = None) -> CallerIdentity:
    """Verify signature and expiry of ``token`` and return the caller it names."""
    active = settings or get_settings()
    secret = active.auth.jwt_secret.get_secret_value()
    if not secret:
        logger.error("JWT secret is not configured; rejecting token")
        raise InvalidCredentialError(INVALID_TOKEN_MSG)

    try:
        claims = jwt.decode(token, secret, algorithms=active.auth.algorithms_list)
    except JWTError as e:
        logger.warning("JWT verification failed", error=str(e))
        raise InvalidCredentialError(INVALID_TOKEN_MSG) from e

    try:
        # Numeric ids are common in the issuing system; normalize to str.
        normalized = {k: str(v) if isinstance(v, int) else v for k, v in claims.items()}
        return CallerIdentity.model_validate(normalized)
    except ClaimsValidationError as e:
        logger.warning("JWT claims do not describe a caller", error=str(e))
        raise InvalidCredentialError(INVALID_TOKEN_MSG) from e


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(_optional_security),
) -> CallerIdentity:
    """Extract the bearer token and return the verified caller."""
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError(MISSING_TOKEN_MSG)
    return verify_token(credentials.credentials)


CurrentCaller = Annotated[CallerIdentity, Depends(get_current_caller)]
