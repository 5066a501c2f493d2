from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.core.security import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


class Role(str, Enum):
    OWNER = "owner"
    ACCOUNTANT = "accountant"
    CLERK = "clerk"


ROLE_PERMISSIONS: dict[Role, set[str]] = {
    Role.OWNER: {"ledger:manage", "ledger:sell", "ledger:view"},
    Role.ACCOUNTANT: {"ledger:manage", "ledger:view"},
    Role.CLERK: {"ledger:sell", "ledger:view"},
}


@dataclass(frozen=True)
class Principal:
    subject: str
    role: Role


def get_current_principal(request: Request, token: str | None = Depends(oauth2_scheme)) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw_token = token
    if not raw_token:
        # Tolerate clients that send the raw token without the "Bearer " prefix.
        auth_header = request.headers.get("authorization", "").strip()
        if auth_header and " " not in auth_header:
            raw_token = auth_header
    if not raw_token:
        raise credentials_exception

    try:
        payload = decode_token(raw_token)
    except JWTError:
        raise credentials_exception from None

    subject = payload.get("sub")
    if subject is None or payload.get("type") != "access":
        raise credentials_exception
    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unknown role") from None
    return Principal(subject=str(subject), role=role)


def require_permission(permission: str):
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        permissions = ROLE_PERMISSIONS.get(principal.role, set())
        if permission not in permissions:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {permission}",
            )
        return principal

    return checker
