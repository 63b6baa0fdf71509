"""JWT token creation and verification for the admin API.

HS256 (symmetric HMAC) with the shared JWT_SECRET. Tokens are minted by the
operator tooling (see run_api_tests.py); this service only verifies them.

No token revocation: once issued, a token is valid until expiry.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)

ADMIN_ROLE = "admin"


def create_admin_token(subject: str, expires_in: timedelta | None = None) -> str:
    """Issue an access token carrying the admin role claim."""
    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "role": ADMIN_ROLE,
        "type": "access",
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else _ACCESS_EXPIRE),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: bad signature, expired, or not an access token.
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
    return payload
