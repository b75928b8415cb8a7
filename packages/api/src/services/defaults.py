# This project was developed with assistance from AI tools.
"""Default mapping generation per target platform.

``generate_default_mapping`` is a pure function of the platform key: the
core table is the same for every platform, the extension table is the base
set plus the platform's overlay, and the validation rules are strict except
for generic MISMO 3.4, which is the permissive fallback export and tolerates
partial data.
"""

from db.enums import ExportPlatform

from ..core.config import settings
from ..schemas.profile import MappingDocument, ProfileDraft, ValidationRules
from .catalog import CORE_FIELDS, extension_fields_for, get_platform


def default_validation_rules(platform_key: str | ExportPlatform) -> ValidationRules:
    platform = get_platform(platform_key)
    return ValidationRules(
        require_all_borrowers=True,
        require_subject_property=True,
        strict_enum_validation=True,
        allow_partial_data=platform.key == ExportPlatform.MISMO_34,
        require_signatures=False,
    )


def generate_default_mapping(platform_key: str | ExportPlatform) -> MappingDocument:
    """Build the complete default mapping for a platform.

    Returns a new document on every call.

    Raises:
        ValidationError: Unknown platform key.
    """
    platform = get_platform(platform_key)
    return MappingDocument(
        core_fields={f.mismo_name: f.default_path for f in CORE_FIELDS},
        extension_fields={ext.field_name: ext.default_path for ext in extension_fields_for(platform.key)},
        validation_rules=default_validation_rules(platform.key),
    )


def new_draft(platform_key: str | ExportPlatform, profile_name: str = "") -> ProfileDraft:
    """Start an unsaved profile pre-filled with the platform's defaults."""
    platform = get_platform(platform_key)
    return ProfileDraft(
        profile_name=profile_name,
        platform=platform.key,
        schema_version=settings.DEFAULT_SCHEMA_VERSION,
        extension_namespace=settings.DEFAULT_EXTENSION_NAMESPACE,
        mapping=generate_default_mapping(platform.key),
    )


def switch_platform(draft: ProfileDraft, platform_key: str | ExportPlatform) -> ProfileDraft:
    """Move an unsaved draft to another platform.

    The whole mapping is replaced by the new platform's defaults; any
    in-progress field or rule edits are discarded. Name, version, namespace
    and default flag are kept.
    """
    platform = get_platform(platform_key)
    return draft.model_copy(
        update={"platform": platform.key, "mapping": generate_default_mapping(platform.key)},
    )
