"""
API endpoints for the caller's own profile.

Every write stores the whole ``profile_json`` document; concurrent autosaves
from the same user are last-write-wins.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_profile_store
from app.core.exceptions import InvalidPayload
from app.core.profile_document import (
    append_array_field,
    completion_percentage,
    merge_section,
    normalize_document,
    remove_array_field,
    validate_document,
    validate_section,
)
from app.crud.profile import ProfileStore
from app.db.models.profile import Profile
from app.schemas.profile import (
    ArrayItemRequest,
    DocumentResponse,
    OkResponse,
    ProfileRead,
    SaveProfileRequest,
    SectionUpdateRequest,
    UpdateFullProfileRequest,
    UpdateProfileRequest,
)
from app.services.profile_export import export_profile

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/profile",
    tags=["profile"],
)


def to_profile_read(profile: Profile) -> ProfileRead:
    read = ProfileRead.model_validate(profile)
    read.profile_json = normalize_document(read.profile_json)
    read.completion = completion_percentage(read.profile_json)
    return read


async def _store_section(store: ProfileStore, document: Dict[str, Any], section: str) -> DocumentResponse:
    document = validate_section(document, section)
    await store.update(store.owner_id, {"profile_json": document})
    return DocumentResponse(profile_json=document, completion=completion_percentage(document))


async def _current_document(store: ProfileStore) -> Dict[str, Any]:
    profile = await store.get()
    return normalize_document(profile.profile_json if profile else None)


@router.get("", response_model=ProfileRead)
async def get_my_profile(store: ProfileStore = Depends(get_profile_store)):
    """
    Get the caller's profile with its completion percentage.
    """
    profile = await store.require()
    return to_profile_read(profile)


@router.post("/save", response_model=OkResponse)
async def save_profile(
    body: SaveProfileRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Store a complete profile document and mark onboarding as completed.
    """
    document = validate_document(body.profile_json)
    await store.update(store.owner_id, {
        "profile_json": document,
        "onboarding_completed": True,
    })
    logger.info(f"[PROFILE] Saved profile_json for {store.owner_id}")
    return OkResponse()


@router.post("/update", response_model=OkResponse)
async def update_profile(
    body: UpdateProfileRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Update the legacy fields: ``directive_json``, ``onboarding_json`` and
    ``onboarding_completed``.
    """
    values = body.model_dump(exclude_none=True)
    if not values:
        raise InvalidPayload("No fields to update")
    await store.update(store.owner_id, values)
    return OkResponse()


@router.post("/update-full", response_model=OkResponse)
async def update_full_profile(
    body: UpdateFullProfileRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Update the extended profile columns.

    Only the fields present in the body are written.
    """
    values = body.model_dump(exclude_none=True)
    if not values:
        raise InvalidPayload("No fields to update")
    await store.update(store.owner_id, values)
    logger.info(f"[PROFILE] Updated {', '.join(sorted(values))} for {store.owner_id}")
    return OkResponse()


@router.post("/section", response_model=DocumentResponse)
async def update_section(
    body: SectionUpdateRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Autosave one wizard step: shallow-merge ``fields`` into ``section``.
    """
    document = merge_section(await _current_document(store), body.section, body.fields)
    return await _store_section(store, document, body.section)


@router.post("/section/{section}/{field}/items", response_model=DocumentResponse)
async def add_array_item(
    section: str,
    field: str,
    body: ArrayItemRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """Append a trimmed string to an array field. Blank values leave it unchanged."""
    document = append_array_field(await _current_document(store), section, field, body.value)
    return await _store_section(store, document, section)


@router.delete("/section/{section}/{field}/items/{index}", response_model=DocumentResponse)
async def remove_array_item(
    section: str,
    field: str,
    index: int,
    store: ProfileStore = Depends(get_profile_store),
):
    document = remove_array_field(await _current_document(store), section, field, index)
    return await _store_section(store, document, section)


@router.post("/export-n8n", response_model=OkResponse)
async def export_to_n8n(store: ProfileStore = Depends(get_profile_store)):
    """
    Send the profile document to the n8n automation webhook.
    """
    profile = await store.require()
    await export_profile(profile)
    return OkResponse()
