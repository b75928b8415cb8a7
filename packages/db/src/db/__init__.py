# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, engine, get_db, get_db_service
from .enums import AuditEventType, ExportPlatform, ExtensionFieldType, UserRole
from .models import AuditEvent, FieldMappingProfile

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "engine",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "AuditEventType",
    "ExportPlatform",
    "ExtensionFieldType",
    "UserRole",
    # Models
    "AuditEvent",
    "FieldMappingProfile",
]
