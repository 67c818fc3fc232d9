import secrets
import string
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBearer, HTTPAuthorizationCredentials
from app.config import get_settings
from app.schemas.auth import TokenPayload

security = HTTPBearer(auto_error=False)
basic_security = HTTPBasic(auto_error=False)

ADMIN_ROLE = "ADMIN"

# Use Argon2 for password hashing
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Argon2 verify; the digest comparison inside is constant-time."""
    if not hashed or not plain:
        return False
    return pwd_context.verify(plain, hashed)


def generate_management_password(length: int | None = None) -> str:
    """Random numeric code shown to the reporter once. Only its hash is stored."""
    length = length or get_settings().management_password_length
    return "".join(secrets.choice(string.digits) for _ in range(length))


def decode_token(token: str) -> TokenPayload | None:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return TokenPayload(
            sub=payload["sub"],
            role=payload.get("role", ""),
            exp=payload["exp"],
        )
    except (JWTError, KeyError):
        return None


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> TokenPayload:
    """Caller must present a valid bearer token with the ADMIN role."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.role != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admin can access.",
        )
    return payload
