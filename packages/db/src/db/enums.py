# This project was developed with assistance from AI tools.
"""
Domain enums for export field-mapping profiles.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class ExportPlatform(str, enum.Enum):
    """Target loan-processing platforms a profile can export to.

    Values are the platform keys stored on each profile; they are kept
    exactly as the upstream integrations spell them.
    """

    MISMO_34 = "MISMO_34"
    ENCOMPASS = "Encompass"
    LENDINGPAD = "LendingPad"
    ARIVE = "Arive"
    LENDINGWISE = "LendingWise"
    CUSTOM = "Custom"

    @classmethod
    def from_key(cls, key: "str | ExportPlatform") -> "ExportPlatform":
        """Look up a platform by key. Raises ValueError for unknown keys."""
        if isinstance(key, cls):
            return key
        return cls(key)


class ExtensionFieldType(str, enum.Enum):
    DECIMAL = "decimal"
    CURRENCY = "currency"
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PROCESSOR = "processor"
    LOAN_OFFICER = "loan_officer"

    @classmethod
    def profile_editors(cls) -> frozenset["UserRole"]:
        """Roles allowed to create, edit, or delete export profiles."""
        return frozenset({cls.ADMIN, cls.PROCESSOR})


class AuditEventType(str, enum.Enum):
    PROFILE_CREATED = "profile_created"
    PROFILE_UPDATED = "profile_updated"
    PROFILE_DUPLICATED = "profile_duplicated"
    PROFILE_DELETED = "profile_deleted"
    PROFILE_DEFAULT_CHANGED = "profile_default_changed"
    PROFILE_MAPPING_IMPORTED = "profile_mapping_imported"
