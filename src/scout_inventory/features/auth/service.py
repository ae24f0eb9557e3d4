"""Role resolution, profile management and credential checks."""

import logging
from typing import Any, Mapping, Optional, Union

from ...backends.base import BackendAdapter
from ...common.domains import Role
from ...core import errors
from . import schemas
from .security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class AccessControlGate:
    """Resolves the caller's role from its profile and guards repository calls.

    Every repository consults the gate before touching the backend, so a
    caller without the required role is refused at the persistence boundary
    regardless of what the UI offered.
    """

    def __init__(self, backend: BackendAdapter):
        self.backend = backend

    async def resolve_role(self, identity: schemas.Identity) -> Role:
        """The role recorded on the identity's profile; operator when there is none."""
        try:
            profile = await self.backend.get_profile(identity.user_id)
        except errors.NotFoundError:
            logger.debug(f"No profile for {identity.user_id}; treating as operator.")
            return Role.OPERATOR
        return profile.role

    async def is_admin(self, identity: Optional[schemas.Identity]) -> bool:
        if identity is None:
            return False
        return await self.resolve_role(identity) == Role.ADMIN

    def require_authenticated(
        self, identity: Optional[schemas.Identity], action: str = "do this"
    ) -> schemas.Identity:
        if identity is None:
            raise errors.AuthorizationError(f"You must be signed in to {action}.")
        return identity

    async def require_admin(
        self, identity: Optional[schemas.Identity], action: str = "do this"
    ) -> schemas.Identity:
        identity = self.require_authenticated(identity, action)
        if not await self.is_admin(identity):
            logger.warning(f"User {identity.user_id} was refused: {action} needs the admin role.")
            raise errors.AuthorizationError(f"Only administrators may {action}.")
        return identity


async def authenticate(
    backend: BackendAdapter, email: str, password: str
) -> Optional[schemas.ProfileCredentials]:
    """Returns the profile whose password matches, otherwise None."""
    profile = await backend.find_profile_by_email(email)
    if profile is None or not verify_password(password, profile.hashed_password):
        return None
    return profile


async def register_profile(
    backend: BackendAdapter, user_in: schemas.UserRegister, role: Role = Role.OPERATOR
) -> schemas.Profile:
    """Creates a profile with a hashed password.

    Raises:
        errors.ValidationError: if the e-mail is already registered.
    """
    if await backend.find_profile_by_email(user_in.email) is not None:
        raise errors.ValidationError("Email already registered.")
    profile = await backend.create_profile(
        schemas.ProfileCreate(
            email=user_in.email,
            full_name=user_in.full_name,
            hashed_password=get_password_hash(user_in.password),
            role=role,
        )
    )
    logger.info(f"Registered {profile.role.value} profile {profile.user_id} ({profile.email}).")
    return profile


class ProfileRepository:
    """Admin-only listing and role management of profiles."""

    def __init__(self, backend: BackendAdapter, gate: AccessControlGate):
        self.backend = backend
        self.gate = gate

    async def list_profiles(self, actor: Optional[schemas.Identity]) -> list[schemas.Profile]:
        await self.gate.require_admin(actor, "list profiles")
        return await self.backend.list_profiles()

    async def update_profile(
        self,
        actor: Optional[schemas.Identity],
        user_id: str,
        changes: Union[schemas.ProfileUpdate, Mapping[str, Any]],
    ) -> schemas.Profile:
        await self.gate.require_admin(actor, "change profiles")
        profile = await self.backend.update_profile(user_id, changes)
        logger.info(f"Profile {user_id} updated by {actor.user_id}: role={profile.role.value}, active={profile.is_active}.")
        return profile
