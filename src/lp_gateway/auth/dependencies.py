"""FastAPI dependencies: get_current_holder / require_admin.

Usage in any protected router:
    from src.lp_gateway.auth.dependencies import get_current_holder

    @router.post("/trades")
    async def execute(principal: Principal = Depends(get_current_holder)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.lp_common.errors import AdminRequiredError, InvalidCredentialsError
from src.lp_gateway.auth.jwt_handler import ROLE_ADMIN, ROLE_HOLDER, decode_token

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class Principal:
    holder_id: str
    role: str = ROLE_HOLDER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


async def get_current_holder(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Validate the Bearer token and return the caller's identity.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return Principal(holder_id=payload["sub"], role=payload.get("role", ROLE_HOLDER))


async def require_admin(
    principal: Principal = Depends(get_current_holder),
) -> Principal:
    """Raises HTTP 403 (AdminRequiredError, 1007) for non-operator tokens."""
    if not principal.is_admin:
        raise AdminRequiredError()
    return principal
