"""
CRUD operations for profiles.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import OwnershipError, ProfileNotFound, UpstreamError
from app.core.profile_document import default_profile_json
from app.db.models.profile import Profile, PLAN_FREE, PLAN_PRO

logger = logging.getLogger(__name__)

# JSON columns that must never be read back as null
JSON_FIELDS = ("directive_json", "onboarding_json", "personal_json", "profile_json")


async def get_profile(db: AsyncSession, user_id: str) -> Optional[Profile]:
    """
    Get a profile by identity.

    Args:
        db: Database session
        user_id: Identity subject

    Returns:
        Optional[Profile]: Profile if found, None otherwise
    """
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


def new_profile(user_id: str, email: Optional[str]) -> Profile:
    """A profile with every field at its default value."""
    return Profile(
        id=user_id,
        email=email,
        plan=PLAN_FREE,
        is_active=False,
        onboarding_completed=False,
        directive_json={},
        onboarding_json={},
        personal_json={},
        profile_json=default_profile_json(),
    )


async def resolve_profile(db: AsyncSession, user_id: str, email: Optional[str]) -> Profile:
    """
    Load the profile for a freshly authenticated identity, creating it if needed.

    An existing profile only gets its null JSON documents defaulted;
    ``onboarding_completed`` and ``contact_email`` are never touched, so
    logging in again keeps the user's progress.
    """
    profile = await get_profile(db, user_id)

    if profile is None:
        logger.info(f"[PROFILE] Creating profile for new identity {user_id}")
        profile = new_profile(user_id, email)
        db.add(profile)
    else:
        for field in JSON_FIELDS:
            if getattr(profile, field) is None:
                default = default_profile_json() if field == "profile_json" else {}
                setattr(profile, field, default)
        if not profile.email and email:
            profile.email = email

    await db.flush()
    await db.commit()
    return profile


async def update_profile(db: AsyncSession, db_obj: Profile, values: Dict[str, Any]) -> Profile:
    """
    Apply column values to a profile and persist them.

    Raises:
        UpstreamError: if the store rejects the write
    """
    profile_id = db_obj.id
    for field, value in values.items():
        setattr(db_obj, field, value)

    try:
        db.add(db_obj)
        await db.flush()
        await db.commit()
        await db.refresh(db_obj)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"[PROFILE] Store write failed for {profile_id}")
        raise UpstreamError("Could not save the profile", details=str(e)) from e
    return db_obj


class ProfileStore:
    """
    Profile access scoped to the authenticated identity.

    Reads and writes are limited to ``owner_id``'s own row; a write for any
    other id raises OwnershipError.
    """

    def __init__(self, db: AsyncSession, owner_id: str, email: Optional[str] = None):
        self.db = db
        self.owner_id = owner_id
        self.email = email

    async def get(self) -> Optional[Profile]:
        try:
            return await get_profile(self.db, self.owner_id)
        except SQLAlchemyError as e:
            logger.exception(f"[PROFILE] Store read failed for {self.owner_id}")
            raise UpstreamError("Could not load the profile", details=str(e)) from e

    async def require(self) -> Profile:
        profile = await self.get()
        if profile is None:
            raise ProfileNotFound()
        return profile

    async def update(self, user_id: str, values: Dict[str, Any]) -> Profile:
        if user_id != self.owner_id:
            logger.warning(f"[PROFILE] Identity {self.owner_id} attempted to write profile {user_id}")
            raise OwnershipError()
        profile = await self.get()
        if profile is None:
            # First profile access: the row was not created at login
            profile = new_profile(self.owner_id, self.email)
        return await update_profile(self.db, profile, values)


class AdminProfileStore:
    """
    Privileged profile access that is not scoped to a session identity.

    Only the payment webhook uses this store.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def activate_pro_plan(self, user_id: str) -> bool:
        """
        Set ``plan=pro`` and ``is_active=True``. Replaying it is harmless.

        Returns:
            bool: False when no profile exists for ``user_id``
        """
        profile = await get_profile(self.db, user_id)
        if profile is None:
            return False
        profile.plan = PLAN_PRO
        profile.is_active = True
        await self.db.flush()
        await self.db.commit()
        return True
