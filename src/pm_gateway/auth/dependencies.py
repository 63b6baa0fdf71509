"""FastAPI dependency: require_admin.

Usage in any admin router:
    from src.pm_gateway.auth.dependencies import require_admin

    @router.post("/admin/thing")
    async def thing(admin: Annotated[str, Depends(require_admin)]):
        ...
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.pm_common.errors import AdminRequiredError, InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import ADMIN_ROLE, decode_token

# auto_error=False so a missing header surfaces as our 1003 envelope, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Validate the Bearer token and return the admin subject.

    Raises InvalidCredentialsError (401) for a missing or invalid token and
    AdminRequiredError (403) for a valid token without the admin role.
    """
    if credentials is None or not credentials.credentials:
        raise InvalidCredentialsError()
    payload = decode_token(credentials.credentials)

    subject = payload.get("sub")
    if not subject:
        raise InvalidCredentialsError()
    if payload.get("role") != ADMIN_ROLE:
        raise AdminRequiredError()
    return subject
