from datetime import datetime, timedelta, timezone
import secrets
from typing import Any, Union
from jose import jwt, JWTError
from passlib.context import CryptContext
from jobline.core.config import settings

# Use argon2 for hashing as it is more modern and avoids bcrypt's 72-byte limit issues
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_access_token(subject: Union[str, Any], expires_delta: timedelta = None) -> str:
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> Union[str, None]:
    """Returns the token subject, or None when the token is invalid or expired."""
    try:
        decoded_token = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return decoded_token.get("sub")

def generate_shareable_link() -> str:
    """
    Opaque token for the public client status page.

    Pure randomness from the OS CSPRNG: nothing about the application id or
    creation time can be recovered from it.
    """
    return secrets.token_urlsafe(settings.SHARE_LINK_BYTES)
