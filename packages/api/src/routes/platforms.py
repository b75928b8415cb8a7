# This project was developed with assistance from AI tools.
"""Read-only platform and field catalog routes."""

from db.enums import ExportPlatform, UserRole
from fastapi import APIRouter, Depends

from ..middleware.auth import require_roles
from ..schemas.profile import FieldCatalogResponse, MappingDocument, PlatformEntry
from ..services.catalog import list_core_fields, list_extension_fields, list_platforms
from ..services.defaults import generate_default_mapping

router = APIRouter(
    dependencies=[
        Depends(require_roles(UserRole.ADMIN, UserRole.PROCESSOR, UserRole.LOAN_OFFICER)),
    ],
)


@router.get("/", response_model=list[PlatformEntry])
async def get_platforms() -> list[PlatformEntry]:
    """Supported target platforms, in display order."""
    return list_platforms()


@router.get("/fields", response_model=FieldCatalogResponse)
async def get_field_catalog() -> FieldCatalogResponse:
    return FieldCatalogResponse(
        core_fields=list_core_fields(),
        extension_fields=list_extension_fields(),
    )


@router.get("/{platform}/defaults", response_model=MappingDocument)
async def get_platform_defaults(platform: ExportPlatform) -> MappingDocument:
    """Default mapping a new profile on this platform starts from."""
    return generate_default_mapping(platform)
