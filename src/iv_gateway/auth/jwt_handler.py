"""JWT access-token verification for tokens issued by the identity service.

The ledger never authenticates users itself: the identity collaborator signs
an HS256 access token carrying ``sub`` (account id) and ``email_verified``.
"""

from dataclasses import dataclass

from jose import JWTError, jwt

from config.settings import settings
from src.iv_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


@dataclass(frozen=True)
class Identity:
    account_id: str
    email_verified: bool


def decode_identity(token: str) -> Identity:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: token invalid, expired, of the wrong type, or
        missing a subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    account_id = payload.get("sub")
    if not account_id:
        raise InvalidCredentialsError()
    return Identity(
        account_id=str(account_id),
        email_verified=bool(payload.get("email_verified", False)),
    )
