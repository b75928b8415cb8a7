# This project was developed with assistance from AI tools.
"""Export profile routes with RBAC and organization scoping.

Service errors (``ProfileError`` subclasses) propagate to the app-level
handler in ``main.py``, which renders them as RFC 7807 responses.
"""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentOrg, require_roles
from ..schemas.profile import (
    AuditChainVerifyResponse,
    AuditEventResponse,
    DraftRequest,
    MappingDocument,
    ProfileCreate,
    ProfileDeleteResponse,
    ProfileDraft,
    ProfileFieldsResponse,
    ProfileListResponse,
    ProfileResponse,
    ProfileUpdate,
    ResolvedProfile,
)
from ..services import profile as profile_service
from ..services.audit import verify_audit_chain
from ..services.defaults import new_draft, switch_platform

router = APIRouter()

_READ = [Depends(require_roles(UserRole.ADMIN, UserRole.PROCESSOR, UserRole.LOAN_OFFICER))]
_WRITE = [Depends(require_roles(*UserRole.profile_editors()))]


# ---------------------------------------------------------------------------
# Collection-level routes (declared before /{profile_id})
# ---------------------------------------------------------------------------


@router.get("/", response_model=ProfileListResponse, dependencies=_READ)
async def list_profiles(
    ctx: CurrentOrg,
    active_only: bool = False,
    search: str | None = None,
    session: AsyncSession = Depends(get_db),
) -> ProfileListResponse:
    """List the org's export profiles, optionally filtered by name or platform.

    Inactive profiles are included by default.
    """
    profiles = await profile_service.list_profiles(
        session, ctx, active_only=active_only, search=search,
    )
    return ProfileListResponse(
        data=[ProfileResponse.model_validate(p) for p in profiles],
        total=len(profiles),
        default_profile_ids=[p.id for p in profiles if p.is_default],
    )


@router.post(
    "/",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=_WRITE,
)
async def create_profile(
    body: ProfileCreate,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.create_profile(
        session,
        ctx,
        profile_name=body.profile_name,
        platform=body.platform,
        extension_namespace=body.extension_namespace,
        schema_version=body.schema_version,
        is_default=body.is_default,
        is_active=body.is_active,
        overrides=body.overrides,
    )
    return ProfileResponse.model_validate(profile)


@router.post("/drafts", response_model=ProfileDraft, dependencies=_READ)
async def build_draft(body: DraftRequest) -> ProfileDraft:
    """Start an unsaved draft, or switch one to another platform (edits are discarded)."""
    if body.draft is None:
        return new_draft(body.platform)
    return switch_platform(body.draft, body.platform)


@router.get("/resolve", response_model=ResolvedProfile, dependencies=_READ)
async def resolve_profile(
    ctx: CurrentOrg,
    profile_id: str | None = None,
    session: AsyncSession = Depends(get_db),
) -> ResolvedProfile:
    """Profile an export should use: the given one, else the org's active default."""
    return await profile_service.resolve_profile(session, ctx, profile_id)


@router.get("/defaults", response_model=list[ProfileResponse], dependencies=_READ)
async def list_default_profiles(
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> list[ProfileResponse]:
    profiles = await profile_service.find_default_profiles(session, ctx)
    return [ProfileResponse.model_validate(p) for p in profiles]


@router.get(
    "/audit/verify",
    response_model=AuditChainVerifyResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def verify_audit(
    session: AsyncSession = Depends(get_db),
) -> AuditChainVerifyResponse:
    """Verify audit trail hash chain integrity."""
    result = await verify_audit_chain(session)
    return AuditChainVerifyResponse(**result)


# ---------------------------------------------------------------------------
# Single-profile routes
# ---------------------------------------------------------------------------


@router.get("/{profile_id}", response_model=ProfileResponse, dependencies=_READ)
async def get_profile(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.get_profile(session, ctx, profile_id)
    return ProfileResponse.model_validate(profile)


@router.patch("/{profile_id}", response_model=ProfileResponse, dependencies=_WRITE)
async def update_profile(
    profile_id: str,
    body: ProfileUpdate,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.update_profile(
        session, ctx, profile_id, **body.model_dump(exclude_unset=True),
    )
    return ProfileResponse.model_validate(profile)


@router.delete("/{profile_id}", response_model=ProfileDeleteResponse, dependencies=_WRITE)
async def delete_profile(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileDeleteResponse:
    """Hard-delete a profile. Deleting the default leaves the org without one."""
    was_default = await profile_service.delete_profile(session, ctx, profile_id)
    remaining = await profile_service.find_default_profiles(session, ctx)
    return ProfileDeleteResponse(
        profile_id=profile_id,
        was_default=was_default,
        org_has_default=bool(remaining),
    )


@router.post(
    "/{profile_id}/duplicate",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=_WRITE,
)
async def duplicate_profile(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.duplicate_profile(session, ctx, profile_id)
    return ProfileResponse.model_validate(profile)


@router.post("/{profile_id}/activate", response_model=ProfileResponse, dependencies=_WRITE)
async def activate_profile(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.set_active(session, ctx, profile_id, True)
    return ProfileResponse.model_validate(profile)


@router.post("/{profile_id}/deactivate", response_model=ProfileResponse, dependencies=_WRITE)
async def deactivate_profile(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.set_active(session, ctx, profile_id, False)
    return ProfileResponse.model_validate(profile)


@router.post("/{profile_id}/default", response_model=ProfileResponse, dependencies=_WRITE)
async def set_default(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.set_default_profile(session, ctx, profile_id)
    return ProfileResponse.model_validate(profile)


@router.delete("/{profile_id}/default", response_model=ProfileResponse, dependencies=_WRITE)
async def clear_default(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.clear_default(session, ctx, profile_id)
    return ProfileResponse.model_validate(profile)


@router.get("/{profile_id}/mapping", response_model=MappingDocument, dependencies=_READ)
async def export_mapping(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> MappingDocument:
    """Full mapping_json document with platform defaults merged in."""
    profile = await profile_service.get_profile(session, ctx, profile_id)
    return profile_service.export_mapping_document(profile)


@router.put("/{profile_id}/mapping", response_model=ProfileResponse, dependencies=_WRITE)
async def import_mapping(
    profile_id: str,
    body: MappingDocument,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.import_mapping_document(session, ctx, profile_id, body)
    return ProfileResponse.model_validate(profile)


@router.get("/{profile_id}/fields", response_model=ProfileFieldsResponse, dependencies=_READ)
async def get_profile_fields(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> ProfileFieldsResponse:
    profile = await profile_service.get_profile(session, ctx, profile_id)
    return profile_service.describe_fields(profile)


@router.get(
    "/{profile_id}/history",
    response_model=list[AuditEventResponse],
    dependencies=_READ,
)
async def get_profile_history(
    profile_id: str,
    ctx: CurrentOrg,
    session: AsyncSession = Depends(get_db),
) -> list[AuditEventResponse]:
    events = await profile_service.get_profile_history(session, ctx, profile_id)
    return [AuditEventResponse.model_validate(e) for e in events]
