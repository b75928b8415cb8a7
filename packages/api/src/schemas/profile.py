# This project was developed with assistance from AI tools.
"""Export profile request/response schemas."""

from datetime import datetime

from db.enums import ExportPlatform, ExtensionFieldType
from pydantic import BaseModel, ConfigDict, Field

from . import FieldPath

NAMESPACE_PATTERN = r"^[A-Za-z0-9]{1,10}$"


class ValidationRules(BaseModel):
    """Independent export policy switches. No rule implies another."""

    require_all_borrowers: bool = True
    require_subject_property: bool = True
    allow_partial_data: bool = False
    strict_enum_validation: bool = True
    require_signatures: bool = False


class ValidationRulesUpdate(BaseModel):
    """Partial rule change -- unset rules keep their stored value."""

    require_all_borrowers: bool | None = None
    require_subject_property: bool | None = None
    allow_partial_data: bool | None = None
    strict_enum_validation: bool | None = None
    require_signatures: bool | None = None


class MappingDocument(BaseModel):
    """The ``mapping_json`` shape used for copy/export/import as plain JSON."""

    core_fields: dict[str, str] = Field(default_factory=dict)
    extension_fields: dict[str, str] = Field(default_factory=dict)
    validation_rules: ValidationRules = Field(default_factory=ValidationRules)


class PlatformEntry(BaseModel):
    platform_key: ExportPlatform
    label: str
    extension_overlay: dict[str, str] = Field(default_factory=dict)


class CoreFieldEntry(BaseModel):
    mismo_name: str
    default_path: str
    required: bool


class ExtensionFieldEntry(BaseModel):
    field_name: str
    primitive_type: ExtensionFieldType
    default_path: str
    description: str = ""
    platform: ExportPlatform | None = Field(
        default=None,
        description="Platform whose overlay adds this field; None for base fields.",
    )


class FieldCatalogResponse(BaseModel):
    core_fields: list[CoreFieldEntry]
    extension_fields: list[ExtensionFieldEntry]


class ProfileOverrides(BaseModel):
    """Explicit overrides applied on top of the generated defaults at creation."""

    core_fields: dict[str, str] = Field(default_factory=dict)
    extension_fields: dict[str, str] = Field(default_factory=dict)
    validation_rules: ValidationRulesUpdate | None = None


class ProfileCreate(BaseModel):
    """Create a new export profile for the caller's organization."""

    profile_name: str = Field(max_length=255)
    platform: ExportPlatform = ExportPlatform.MISMO_34
    schema_version: str | None = None
    extension_namespace: str | None = Field(default=None, pattern=NAMESPACE_PATTERN)
    is_default: bool = False
    is_active: bool = True
    overrides: ProfileOverrides | None = None


class ProfileUpdate(BaseModel):
    """Partial update. Mapping tables, when given, replace the stored table."""

    profile_name: str | None = Field(default=None, max_length=255)
    platform: ExportPlatform | None = None
    schema_version: str | None = None
    extension_namespace: str | None = Field(default=None, pattern=NAMESPACE_PATTERN)
    is_active: bool | None = None
    is_default: bool | None = None
    core_field_mapping: dict[str, str] | None = None
    extension_field_mapping: dict[str, str] | None = None
    validation_rules: ValidationRulesUpdate | None = None


class ProfileResponse(BaseModel):
    """Stored profile. Mapping tables hold overrides only."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    profile_name: str
    platform: ExportPlatform
    schema_version: str
    extension_namespace: str
    is_active: bool
    is_default: bool
    core_field_mapping: dict[str, str] = Field(default_factory=dict)
    extension_field_mapping: dict[str, str] = Field(default_factory=dict)
    validation_rules: ValidationRules
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class ProfileListResponse(BaseModel):
    data: list[ProfileResponse]
    total: int
    default_profile_ids: list[str] = Field(
        default_factory=list,
        description="Ids of profiles flagged default. Empty means the org has no default.",
    )


class ProfileFieldsResponse(BaseModel):
    """Merged mapping tables, row by row, marking which rows are overrides."""

    profile_id: str
    extension_namespace: str
    core_fields: list[FieldPath]
    extension_fields: list[FieldPath]


class ProfileDraft(BaseModel):
    """Unsaved profile being edited; never persisted by the engine."""

    profile_name: str = ""
    platform: ExportPlatform = ExportPlatform.MISMO_34
    schema_version: str = "3.4"
    extension_namespace: str = Field(default="LG", pattern=NAMESPACE_PATTERN)
    is_default: bool = False
    mapping: MappingDocument = Field(default_factory=MappingDocument)


class DraftRequest(BaseModel):
    """Start a draft, or switch an existing draft to another platform."""

    platform: ExportPlatform
    draft: ProfileDraft | None = None


class ResolvedProfile(BaseModel):
    """What the export orchestrator consumes: a profile with defaults merged in."""

    profile_id: str
    profile_name: str
    platform: ExportPlatform
    schema_version: str
    extension_namespace: str
    is_active: bool
    core_fields: dict[str, str]
    extension_fields: dict[str, str]
    qualified_extension_fields: dict[str, str]
    extension_field_types: dict[str, ExtensionFieldType]
    required_core_fields: list[str]
    validation_rules: ValidationRules


class AuditEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    event_type: str
    user_id: str | None = None
    profile_id: str | None = None
    event_data: dict | None = None


class ProfileDeleteResponse(BaseModel):
    profile_id: str
    was_default: bool
    org_has_default: bool = Field(
        description="False when the org is left without any default profile.",
    )


class AuditChainVerifyResponse(BaseModel):
    """Response for audit hash chain verification."""

    status: str
    events_checked: int
    first_break_id: int | None = None
