# This project was developed with assistance from AI tools.
"""
Export profile domain models

Field-mapping profiles that bind an organization's internal deal data to a
target platform's MISMO 3.4 export layout, plus the append-only audit trail
of changes made to them.
"""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    func,
)

from .database import Base
from .enums import ExportPlatform


def _new_profile_id() -> str:
    return str(uuid.uuid4())


class FieldMappingProfile(Base):
    """Org-scoped export profile: platform + sparse field overrides + validation rules.

    ``core_field_mapping`` and ``extension_field_mapping`` hold only the
    entries that differ from the platform defaults; consumers merge them
    with the generated defaults before use.
    """

    __tablename__ = "field_mapping_profiles"
    # Fetch server-side timestamps on INSERT/UPDATE so async callers never lazy-load
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=_new_profile_id)
    org_id = Column(String(255), nullable=False, index=True)
    profile_name = Column(String(255), nullable=False)
    platform = Column(
        Enum(ExportPlatform, name="export_platform", native_enum=False),
        nullable=False,
        default=ExportPlatform.MISMO_34,
    )
    schema_version = Column(String(20), nullable=False, default="3.4")
    extension_namespace = Column(String(10), nullable=False, default="LG")
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False, index=True)
    core_field_mapping = Column(JSON, nullable=False, default=dict)
    extension_field_mapping = Column(JSON, nullable=False, default=dict)
    validation_rules = Column(JSON, nullable=False, default=dict)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<FieldMappingProfile(id={self.id}, org='{self.org_id}', "
            f"platform='{self.platform}', default={self.is_default})>"
        )


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    org_id = Column(String(255), nullable=True, index=True)
    user_id = Column(String(255), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    # No FK: profiles are hard-deleted but their history is kept
    profile_id = Column(String(36), nullable=True, index=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
