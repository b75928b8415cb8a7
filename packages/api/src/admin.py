# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for database administration UI

Access the admin panel at: http://localhost:8000/admin

When AUTH_DISABLED=false, requires admin credentials via login form.
When AUTH_DISABLED=true, admin panel is open (dev mode).
"""

from db import AuditEvent, FieldMappingProfile
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin.

    When AUTH_DISABLED=true, authenticate() always returns True (dev mode).
    Otherwise, requires login with SQLADMIN_USER / SQLADMIN_PASSWORD.
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")
        if username == settings.SQLADMIN_USER and password == settings.SQLADMIN_PASSWORD:
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class FieldMappingProfileAdmin(ModelView, model=FieldMappingProfile):
    column_list = [
        FieldMappingProfile.id,
        FieldMappingProfile.org_id,
        FieldMappingProfile.profile_name,
        FieldMappingProfile.platform,
        FieldMappingProfile.extension_namespace,
        FieldMappingProfile.is_active,
        FieldMappingProfile.is_default,
        FieldMappingProfile.updated_at,
    ]
    column_searchable_list = [FieldMappingProfile.profile_name, FieldMappingProfile.org_id]
    column_sortable_list = [
        FieldMappingProfile.org_id,
        FieldMappingProfile.profile_name,
        FieldMappingProfile.created_at,
        FieldMappingProfile.updated_at,
    ]
    column_default_sort = [(FieldMappingProfile.updated_at, True)]
    # Read-only: writes go through the API
    can_create = False
    can_edit = False
    can_delete = False
    name = "Export Profile"
    name_plural = "Export Profiles"
    icon = "fa-solid fa-sitemap"


class AuditEventAdmin(ModelView, model=AuditEvent):
    column_list = [
        AuditEvent.id,
        AuditEvent.timestamp,
        AuditEvent.event_type,
        AuditEvent.org_id,
        AuditEvent.user_id,
        AuditEvent.profile_id,
    ]
    column_searchable_list = [AuditEvent.profile_id, AuditEvent.org_id]
    column_sortable_list = [AuditEvent.id, AuditEvent.timestamp, AuditEvent.event_type]
    column_default_sort = [(AuditEvent.timestamp, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Audit Event"
    name_plural = "Audit Events"
    icon = "fa-solid fa-shield-alt"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    # SQLAdmin requires a sync engine; derive from the async DATABASE_URL
    engine = create_engine(settings.DATABASE_URL.replace("+asyncpg", ""), echo=False)
    auth_backend = AdminAuth(
        secret_key=settings.SQLADMIN_SECRET_KEY,
    )
    admin = Admin(app, engine, title="Export Profiles Admin", authentication_backend=auth_backend)

    admin.add_view(FieldMappingProfileAdmin)
    admin.add_view(AuditEventAdmin)

    return admin
