import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
import bcrypt

from ...backends.base import BackendAdapter
from ...backends.factory import get_backend
from ...core import errors
from ...core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from . import schemas

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")
# Same scheme for routes that also serve anonymous callers (the public request form).
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


async def identity_from_token(token: str, backend: BackendAdapter) -> schemas.Identity:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        token_data = schemas.TokenData(sub=payload.get("sub"))
        if token_data.sub is None:
            logger.warning("Token sub (user id) is missing.")
            raise credentials_exception
    except JWTError as e:
        logger.error(f"JWT decoding error: {e}")
        raise credentials_exception
    except ValidationError as e:
        logger.error(f"Token data validation error: {e}")
        raise credentials_exception

    try:
        profile = await backend.get_profile(token_data.sub)
    except errors.NotFoundError:
        logger.warning(f"Profile not found for user id: {token_data.sub}")
        raise credentials_exception
    if not profile.is_active:
        logger.warning(f"User {token_data.sub} is inactive.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return schemas.Identity(user_id=profile.user_id, email=profile.email)


async def get_current_identity(
    token: Annotated[str, Depends(oauth2_scheme)],
    backend: Annotated[BackendAdapter, Depends(get_backend)],
) -> schemas.Identity:
    return await identity_from_token(token, backend)


async def get_optional_identity(
    token: Annotated[Optional[str], Depends(optional_oauth2_scheme)],
    backend: Annotated[BackendAdapter, Depends(get_backend)],
) -> Optional[schemas.Identity]:
    """The caller's identity, or None when no bearer token was sent."""
    if token is None:
        return None
    return await identity_from_token(token, backend)
