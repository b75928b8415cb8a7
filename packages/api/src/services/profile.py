# This project was developed with assistance from AI tools.
"""Export profile repository: lifecycle operations scoped to one organization.

Every call takes the caller's OrgContext explicitly; a profile in another
organization is indistinguishable from a missing one. Each write is a single
transaction -- there is no multi-profile saga, so a caller-composed workflow
("unset old default, set new default") can leave the org with no default.
That state is legal and is reported by ``resolve_profile``.

When ``SINGLE_DEFAULT_PER_ORG`` is on, any write that marks a profile
default unsets the org's other defaults in the same transaction.
"""

import copy
import logging
import re
import uuid
from contextlib import asynccontextmanager

from db import FieldMappingProfile
from db.enums import AuditEventType, ExportPlatform
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from ..core.config import settings
from ..schemas.auth import OrgContext
from ..schemas.profile import (
    MappingDocument,
    ProfileFieldsResponse,
    ProfileOverrides,
    ResolvedProfile,
    ValidationRules,
    ValidationRulesUpdate,
)
from .audit import get_profile_events, write_audit_event
from .catalog import extension_field_type, get_platform, match_platforms
from .defaults import generate_default_mapping
from .errors import (
    AmbiguousDefaultError,
    NoDefaultProfileError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .mapping import (
    apply_rule_changes,
    compact_overrides,
    merge_with_defaults,
    qualify_extension_fields,
    render_rows,
    required_core_fields,
    validate_core_keys,
    validate_extension_keys,
)

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"
MAX_NAME_LENGTH = 255

_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9]{1,10}$")

_UPDATABLE_FIELDS = {
    "profile_name",
    "platform",
    "schema_version",
    "extension_namespace",
    "is_active",
    "is_default",
    "core_field_mapping",
    "extension_field_mapping",
    "validation_rules",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _storage(session: AsyncSession, action: str):
    """Roll back and re-raise persistence failures as StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Storage failure during %s: %s", action, exc)
        raise StorageError(f"Failed to {action}: {exc}") from exc


def _require_org(ctx: OrgContext | None) -> str:
    if ctx is None or not ctx.org_id or not ctx.org_id.strip():
        raise ValidationError("org_id is required.")
    return ctx.org_id


def _require_name(profile_name: str | None) -> str:
    if profile_name is None or not profile_name.strip():
        raise ValidationError("profile_name is required.")
    if len(profile_name) > MAX_NAME_LENGTH:
        raise ValidationError(f"profile_name must be at most {MAX_NAME_LENGTH} characters.")
    return profile_name


def _check_namespace(namespace: str) -> str:
    if not isinstance(namespace, str) or not _NAMESPACE_RE.match(namespace):
        raise ValidationError(
            f"extension_namespace '{namespace}' must be 1-10 alphanumeric characters."
        )
    return namespace


def _stored_rules(profile: FieldMappingProfile) -> ValidationRules:
    return ValidationRules(**(profile.validation_rules or {}))


async def _unset_other_defaults(
    session: AsyncSession,
    ctx: OrgContext,
    new_default_id: str,
) -> list[str]:
    """Clear ``is_default`` on the org's other defaults, auditing each one."""
    stmt = select(FieldMappingProfile).where(
        FieldMappingProfile.org_id == ctx.org_id,
        FieldMappingProfile.is_default.is_(True),
        FieldMappingProfile.id != new_default_id,
    )
    result = await session.execute(stmt)
    previous = list(result.scalars().all())
    for other in previous:
        other.is_default = False
        other.updated_at = func.now()
    if not previous:
        return []

    await session.flush()
    for other in previous:
        await write_audit_event(
            session,
            ctx,
            event_type=AuditEventType.PROFILE_DEFAULT_CHANGED,
            profile_id=other.id,
            event_data={"is_default": False, "replaced_by": new_default_id},
        )
    ids = [other.id for other in previous]
    logger.warning(
        "Default flag moved to profile %s in org %s; unset on %s",
        new_default_id,
        ctx.org_id,
        ids,
    )
    return ids


async def _get_scoped(
    session: AsyncSession,
    org_id: str,
    profile_id: str,
) -> FieldMappingProfile:
    stmt = select(FieldMappingProfile).where(
        FieldMappingProfile.id == profile_id,
        FieldMappingProfile.org_id == org_id,
    )
    result = await session.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError(f"Export profile '{profile_id}' not found.")
    return profile


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_profiles(
    session: AsyncSession,
    ctx: OrgContext,
    *,
    active_only: bool = False,
    search: str | None = None,
) -> list[FieldMappingProfile]:
    """Return the org's profiles, oldest first. Inactive ones are included unless asked.

    ``search`` matches the profile name or the platform key/label, ignoring case.
    """
    org_id = _require_org(ctx)
    stmt = (
        select(FieldMappingProfile)
        .where(FieldMappingProfile.org_id == org_id)
        .order_by(FieldMappingProfile.created_at.asc(), FieldMappingProfile.id.asc())
    )
    if active_only:
        stmt = stmt.where(FieldMappingProfile.is_active.is_(True))
    if search and search.strip():
        term = search.strip()
        clauses = [FieldMappingProfile.profile_name.icontains(term, autoescape=True)]
        platforms = match_platforms(term)
        if platforms:
            clauses.append(FieldMappingProfile.platform.in_(platforms))
        stmt = stmt.where(or_(*clauses))
    async with _storage(session, "list profiles"):
        result = await session.execute(stmt)
        return list(result.scalars().all())


async def get_profile(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
) -> FieldMappingProfile:
    """Return one profile in the caller's org. Raises NotFoundError otherwise."""
    org_id = _require_org(ctx)
    async with _storage(session, "load profile"):
        return await _get_scoped(session, org_id, profile_id)


async def find_default_profiles(
    session: AsyncSession,
    ctx: OrgContext,
    *,
    active_only: bool = False,
) -> list[FieldMappingProfile]:
    """Every profile flagged default -- zero, one, or (lenient policy) several."""
    org_id = _require_org(ctx)
    stmt = (
        select(FieldMappingProfile)
        .where(
            FieldMappingProfile.org_id == org_id,
            FieldMappingProfile.is_default.is_(True),
        )
        .order_by(FieldMappingProfile.created_at.asc(), FieldMappingProfile.id.asc())
    )
    if active_only:
        stmt = stmt.where(FieldMappingProfile.is_active.is_(True))
    async with _storage(session, "find default profiles"):
        result = await session.execute(stmt)
        return list(result.scalars().all())


async def get_profile_history(session: AsyncSession, ctx: OrgContext, profile_id: str):
    """Audit events recorded for a profile, including after it was deleted."""
    _require_org(ctx)
    async with _storage(session, "load profile history"):
        return await get_profile_events(session, ctx, profile_id)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_profile(
    session: AsyncSession,
    ctx: OrgContext,
    *,
    profile_name: str,
    platform: str | ExportPlatform = ExportPlatform.MISMO_34,
    extension_namespace: str | None = None,
    schema_version: str | None = None,
    is_default: bool = False,
    is_active: bool = True,
    overrides: ProfileOverrides | None = None,
) -> FieldMappingProfile:
    """Create a profile from the platform defaults plus explicit overrides.

    Only overrides that differ from the platform defaults are stored.

    Raises:
        ValidationError: Missing org, missing or overlong name, bad namespace, unknown platform,
            or unknown core field in the overrides.
        StorageError: The insert failed.
    """
    org_id = _require_org(ctx)
    _require_name(profile_name)
    target = get_platform(platform)
    namespace = _check_namespace(
        extension_namespace if extension_namespace is not None else settings.DEFAULT_EXTENSION_NAMESPACE
    )

    overrides = overrides or ProfileOverrides()
    validate_core_keys(overrides.core_fields)
    validate_extension_keys(overrides.extension_fields)

    defaults = generate_default_mapping(target.key)
    rules = apply_rule_changes(defaults.validation_rules, overrides.validation_rules)

    profile = FieldMappingProfile(
        id=str(uuid.uuid4()),
        org_id=org_id,
        profile_name=profile_name,
        platform=target.key,
        schema_version=schema_version or settings.DEFAULT_SCHEMA_VERSION,
        extension_namespace=namespace,
        is_active=is_active,
        is_default=is_default,
        core_field_mapping=compact_overrides(overrides.core_fields, defaults.core_fields),
        extension_field_mapping=compact_overrides(overrides.extension_fields, defaults.extension_fields),
        validation_rules=rules.model_dump(),
        created_by=ctx.user_id,
    )

    async with _storage(session, "create profile"):
        if is_default and settings.SINGLE_DEFAULT_PER_ORG:
            await _unset_other_defaults(session, ctx, profile.id)
        session.add(profile)
        await session.flush()
        await write_audit_event(
            session,
            ctx,
            event_type=AuditEventType.PROFILE_CREATED,
            profile_id=profile.id,
            event_data={
                "profile_name": profile_name,
                "platform": target.key.value,
                "is_default": is_default,
            },
        )
        await session.commit()
        await session.refresh(profile)

    logger.info(
        "Created export profile %s (%s) for org %s", profile.id, target.key.value, org_id,
    )
    return profile


async def _apply_updates(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
    updates: dict,
    event_type: AuditEventType,
) -> FieldMappingProfile:
    org_id = _require_org(ctx)

    async with _storage(session, "update profile"):
        profile = await _get_scoped(session, org_id, profile_id)

        ignored = sorted(set(updates) - _UPDATABLE_FIELDS)
        if ignored:
            logger.debug("Ignoring non-updatable fields on profile %s: %s", profile_id, ignored)
        given = {k: v for k, v in updates.items() if k in _UPDATABLE_FIELDS and v is not None}

        # Validate everything before touching the row
        platform = get_platform(given.get("platform", profile.platform)).key
        if "profile_name" in given:
            _require_name(given["profile_name"])
        if "extension_namespace" in given:
            _check_namespace(given["extension_namespace"])
        if "core_field_mapping" in given:
            validate_core_keys(given["core_field_mapping"])
        if "extension_field_mapping" in given:
            validate_extension_keys(given["extension_field_mapping"])
        rule_changes = given.get("validation_rules")
        if rule_changes is not None and not isinstance(rule_changes, ValidationRulesUpdate):
            rule_changes = ValidationRulesUpdate(**rule_changes)

        # Mapping tables are compacted against the (possibly new) platform's defaults
        defaults = generate_default_mapping(platform)
        platform_changed = platform != profile.platform
        profile.platform = platform
        if platform_changed:
            # Drop stored overrides that match the new platform's defaults
            profile.core_field_mapping = compact_overrides(
                profile.core_field_mapping or {}, defaults.core_fields,
            )
            profile.extension_field_mapping = compact_overrides(
                profile.extension_field_mapping or {}, defaults.extension_fields,
            )
        if "profile_name" in given:
            profile.profile_name = given["profile_name"]
        if "schema_version" in given:
            profile.schema_version = given["schema_version"]
        if "extension_namespace" in given:
            profile.extension_namespace = given["extension_namespace"]
        if "is_active" in given:
            profile.is_active = bool(given["is_active"])
        if "core_field_mapping" in given:
            profile.core_field_mapping = compact_overrides(given["core_field_mapping"], defaults.core_fields)
        if "extension_field_mapping" in given:
            profile.extension_field_mapping = compact_overrides(
                given["extension_field_mapping"], defaults.extension_fields,
            )
        if rule_changes is not None:
            profile.validation_rules = apply_rule_changes(_stored_rules(profile), rule_changes).model_dump()

        if "is_default" in given:
            if given["is_default"] and settings.SINGLE_DEFAULT_PER_ORG:
                await _unset_other_defaults(session, ctx, profile.id)
            profile.is_default = bool(given["is_default"])

        profile.updated_at = func.now()
        await session.flush()
        await write_audit_event(
            session,
            ctx,
            event_type=event_type,
            profile_id=profile.id,
            event_data={"fields": sorted(given)},
        )
        await session.commit()
        await session.refresh(profile)

    return profile


async def update_profile(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
    **updates,
) -> FieldMappingProfile:
    """Merge the given fields into a profile.

    ``id``, ``org_id``, ``created_at`` and ``created_by`` are immutable and
    silently ignored. Mapping tables replace the stored table; validation
    rules merge onto the stored rule set. ``None`` values mean "unchanged".

    Raises:
        NotFoundError: No such profile in the caller's org.
        ValidationError: Invalid name, namespace, platform, or mapping keys.
        StorageError: The update failed.
    """
    profile = await _apply_updates(
        session, ctx, profile_id, updates, AuditEventType.PROFILE_UPDATED,
    )
    logger.info("Updated export profile %s for org %s", profile_id, ctx.org_id)
    return profile


async def set_active(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
    active: bool,
) -> FieldMappingProfile:
    """Activate or deactivate a profile. Inactive profiles are kept for history."""
    return await _apply_updates(
        session, ctx, profile_id, {"is_active": active}, AuditEventType.PROFILE_UPDATED,
    )


async def set_default_profile(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
) -> FieldMappingProfile:
    """Make a profile the org default."""
    profile = await _apply_updates(
        session, ctx, profile_id, {"is_default": True}, AuditEventType.PROFILE_DEFAULT_CHANGED,
    )
    logger.info("Export profile %s is now the default for org %s", profile_id, ctx.org_id)
    return profile


async def clear_default(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
) -> FieldMappingProfile:
    """Remove the default flag. No other profile is promoted."""
    profile = await _apply_updates(
        session, ctx, profile_id, {"is_default": False}, AuditEventType.PROFILE_DEFAULT_CHANGED,
    )
    logger.warning("Default flag cleared on profile %s for org %s", profile_id, ctx.org_id)
    return profile


async def duplicate_profile(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
) -> FieldMappingProfile:
    """Deep-copy a profile under a new id as a non-default "(Copy)".

    Audit fields are not copied; the new row is stamped fresh.
    """
    org_id = _require_org(ctx)

    async with _storage(session, "duplicate profile"):
        source = await _get_scoped(session, org_id, profile_id)
        clone_name = _require_name(f"{source.profile_name}{COPY_SUFFIX}")
        clone = FieldMappingProfile(
            id=str(uuid.uuid4()),
            org_id=source.org_id,
            profile_name=clone_name,
            platform=source.platform,
            schema_version=source.schema_version,
            extension_namespace=source.extension_namespace,
            is_active=source.is_active,
            is_default=False,
            core_field_mapping=copy.deepcopy(source.core_field_mapping or {}),
            extension_field_mapping=copy.deepcopy(source.extension_field_mapping or {}),
            validation_rules=copy.deepcopy(source.validation_rules or {}),
            created_by=ctx.user_id,
        )
        session.add(clone)
        await session.flush()
        await write_audit_event(
            session,
            ctx,
            event_type=AuditEventType.PROFILE_DUPLICATED,
            profile_id=clone.id,
            event_data={"source_profile_id": source.id},
        )
        await session.commit()
        await session.refresh(clone)

    logger.info("Duplicated export profile %s as %s", profile_id, clone.id)
    return clone


async def delete_profile(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
) -> bool:
    """Hard-delete a profile.

    Returns:
        True when the deleted profile was flagged default. The org is then
        left without a default; nothing is promoted in its place.
    """
    org_id = _require_org(ctx)

    async with _storage(session, "delete profile"):
        profile = await _get_scoped(session, org_id, profile_id)
        was_default = bool(profile.is_default)
        await session.delete(profile)
        await write_audit_event(
            session,
            ctx,
            event_type=AuditEventType.PROFILE_DELETED,
            profile_id=profile_id,
            event_data={"profile_name": profile.profile_name, "was_default": was_default},
        )
        await session.commit()

    if was_default:
        logger.warning(
            "Deleted default export profile %s; org %s has no default until one is set",
            profile_id,
            org_id,
        )
    else:
        logger.info("Deleted export profile %s for org %s", profile_id, org_id)
    return was_default


# ---------------------------------------------------------------------------
# Resolution and mapping_json documents
# ---------------------------------------------------------------------------


def build_resolved_profile(profile: FieldMappingProfile) -> ResolvedProfile:
    """Merge a stored profile with its platform defaults for the export orchestrator."""
    defaults = generate_default_mapping(profile.platform)
    core = merge_with_defaults(profile.core_field_mapping, defaults.core_fields)
    extensions = merge_with_defaults(profile.extension_field_mapping, defaults.extension_fields)
    return ResolvedProfile(
        profile_id=profile.id,
        profile_name=profile.profile_name,
        platform=profile.platform,
        schema_version=profile.schema_version,
        extension_namespace=profile.extension_namespace,
        is_active=profile.is_active,
        core_fields=core,
        extension_fields=extensions,
        qualified_extension_fields=qualify_extension_fields(profile.extension_namespace, extensions),
        extension_field_types={
            name: extension_field_type(profile.platform, name) for name in extensions
        },
        required_core_fields=required_core_fields(),
        validation_rules=_stored_rules(profile),
    )


async def resolve_profile(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str | None = None,
) -> ResolvedProfile:
    """Resolve the profile an export should use.

    With ``profile_id``: that profile, which must be active. Without: the
    org's single active default. The engine never picks a winner among
    several defaults.

    Raises:
        NotFoundError: ``profile_id`` does not exist in the org.
        ValidationError: ``profile_id`` names an inactive profile.
        NoDefaultProfileError: No id given and no active default exists.
        AmbiguousDefaultError: No id given and several active defaults exist.
    """
    if profile_id is not None:
        profile = await get_profile(session, ctx, profile_id)
        if not profile.is_active:
            raise ValidationError(f"Export profile '{profile_id}' is inactive.")
        return build_resolved_profile(profile)

    defaults = await find_default_profiles(session, ctx, active_only=True)
    if not defaults:
        raise NoDefaultProfileError(
            f"Organization '{ctx.org_id}' has no active default export profile; "
            "select a profile explicitly."
        )
    if len(defaults) > 1:
        ids = [p.id for p in defaults]
        logger.warning("Org %s has %d active default profiles: %s", ctx.org_id, len(ids), ids)
        raise AmbiguousDefaultError(
            f"Organization '{ctx.org_id}' has {len(ids)} active default export profiles; "
            "select a profile explicitly.",
            ids,
        )
    return build_resolved_profile(defaults[0])


def export_mapping_document(profile: FieldMappingProfile) -> MappingDocument:
    """Full ``mapping_json`` document (defaults merged) for copy/export."""
    resolved = build_resolved_profile(profile)
    return MappingDocument(
        core_fields=resolved.core_fields,
        extension_fields=resolved.extension_fields,
        validation_rules=resolved.validation_rules,
    )


def describe_fields(profile: FieldMappingProfile) -> ProfileFieldsResponse:
    """Merged tables as editor rows, flagging stored overrides."""
    defaults = generate_default_mapping(profile.platform)
    return ProfileFieldsResponse(
        profile_id=profile.id,
        extension_namespace=profile.extension_namespace,
        core_fields=render_rows(profile.core_field_mapping, defaults.core_fields),
        extension_fields=render_rows(profile.extension_field_mapping, defaults.extension_fields),
    )


async def import_mapping_document(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
    document: MappingDocument,
) -> FieldMappingProfile:
    """Replace a profile's tables and rules from a ``mapping_json`` document.

    Entries equal to the platform defaults are dropped so the stored tables
    stay sparse; the rule set is replaced as a whole.
    """
    org_id = _require_org(ctx)
    validate_core_keys(document.core_fields)
    validate_extension_keys(document.extension_fields)

    async with _storage(session, "import mapping"):
        profile = await _get_scoped(session, org_id, profile_id)
        defaults = generate_default_mapping(profile.platform)
        profile.core_field_mapping = compact_overrides(document.core_fields, defaults.core_fields)
        profile.extension_field_mapping = compact_overrides(
            document.extension_fields, defaults.extension_fields,
        )
        profile.validation_rules = document.validation_rules.model_dump()
        profile.updated_at = func.now()
        await session.flush()
        await write_audit_event(
            session,
            ctx,
            event_type=AuditEventType.PROFILE_MAPPING_IMPORTED,
            profile_id=profile.id,
            event_data={
                "core_overrides": len(profile.core_field_mapping),
                "extension_overrides": len(profile.extension_field_mapping),
            },
        )
        await session.commit()
        await session.refresh(profile)

    logger.info("Imported mapping document into export profile %s", profile_id)
    return profile
