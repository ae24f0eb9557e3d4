"""API routes for authentication and profile management."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from typing import Annotated, Optional

from ...backends.base import BackendAdapter
from ...backends.factory import get_backend
from . import schemas
from . import security as auth_security
from . import service as auth_service

logger = logging.getLogger(__name__)
router = APIRouter(
    tags=["Authentication"],
    prefix="/auth"
)
profiles_router = APIRouter(
    tags=["Profiles"],
    prefix="/profiles"
)


def get_profile_repository(
    backend: Annotated[BackendAdapter, Depends(get_backend)],
) -> auth_service.ProfileRepository:
    return auth_service.ProfileRepository(backend, auth_service.AccessControlGate(backend))


@router.post("/token", response_model=schemas.Token)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    backend: Annotated[BackendAdapter, Depends(get_backend)],
):
    profile = await auth_service.authenticate(backend, form_data.username, form_data.password)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    access_token = auth_security.create_access_token(data={"sub": profile.user_id})
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/register", response_model=schemas.Profile, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_in: schemas.UserRegister,
    backend: Annotated[BackendAdapter, Depends(get_backend)],
):
    return await auth_service.register_profile(backend, user_in)


@router.get("/me", response_model=schemas.Profile)
async def read_current_profile(
    identity: Annotated[schemas.Identity, Depends(auth_security.get_current_identity)],
    backend: Annotated[BackendAdapter, Depends(get_backend)],
):
    return await backend.get_profile(identity.user_id)


@profiles_router.get("", response_model=list[schemas.Profile])
async def list_profiles(
    identity: Annotated[Optional[schemas.Identity], Depends(auth_security.get_optional_identity)],
    repository: Annotated[auth_service.ProfileRepository, Depends(get_profile_repository)],
):
    return await repository.list_profiles(identity)


@profiles_router.patch("/{user_id}", response_model=schemas.Profile)
async def update_profile(
    user_id: str,
    changes: schemas.ProfileUpdate,
    identity: Annotated[Optional[schemas.Identity], Depends(auth_security.get_optional_identity)],
    repository: Annotated[auth_service.ProfileRepository, Depends(get_profile_repository)],
):
    return await repository.update_profile(identity, user_id, changes)
