# This project was developed with assistance from AI tools.
"""Static catalogs for export profiles.

Platform catalog, canonical MISMO 3.4 core fields, and namespaced extension
fields. Pure data -- no I/O. Every platform carries an explicit (possibly
empty) extension overlay so an unknown platform can never silently fall
through to "no overlay".
"""

from dataclasses import dataclass, field

from db.enums import ExportPlatform, ExtensionFieldType

from ..schemas.profile import CoreFieldEntry, ExtensionFieldEntry, PlatformEntry
from .errors import ValidationError


@dataclass(frozen=True)
class CoreField:
    mismo_name: str
    default_path: str
    required: bool


@dataclass(frozen=True)
class ExtensionField:
    field_name: str
    primitive_type: ExtensionFieldType
    default_path: str
    description: str = ""


@dataclass(frozen=True)
class Platform:
    key: ExportPlatform
    label: str
    overlay: tuple[ExtensionField, ...] = field(default_factory=tuple)


CORE_FIELDS: tuple[CoreField, ...] = (
    # Loan
    CoreField("LoanIdentifier", "deal.deal_number", required=True),
    CoreField("LoanPurposeType", "deal.loan_purpose", required=True),
    CoreField("BaseLoanAmount", "deal.loan_amount", required=True),
    CoreField("NoteRatePercent", "deal.interest_rate", required=True),
    CoreField("LoanTermMonths", "deal.loan_term_months", required=True),
    CoreField("AmortizationType", "deal.amortization_type", required=False),
    # Borrower
    CoreField("BorrowerFirstName", "borrower.first_name", required=True),
    CoreField("BorrowerMiddleName", "borrower.middle_name", required=False),
    CoreField("BorrowerLastName", "borrower.last_name", required=True),
    # Subject property
    CoreField("AddressLineText", "property.address_street", required=True),
    CoreField("CityName", "property.address_city", required=True),
    CoreField("StateCode", "property.address_state", required=True),
    CoreField("PostalCode", "property.address_zip", required=True),
    CoreField("CountyName", "property.county", required=False),
    CoreField("PropertyEstimatedValueAmount", "property.estimated_value", required=False),
    CoreField("PropertyCurrentUsageType", "property.occupancy_type", required=False),
)

BASE_EXTENSION_FIELDS: tuple[ExtensionField, ...] = (
    ExtensionField(
        "DSCRRatio", ExtensionFieldType.DECIMAL, "deal.dscr",
        "Debt service coverage ratio",
    ),
    ExtensionField(
        "LTVRatio", ExtensionFieldType.DECIMAL, "deal.ltv",
        "Loan-to-value ratio",
    ),
    ExtensionField(
        "MonthlyPITIA", ExtensionFieldType.CURRENCY, "deal.monthly_pitia",
        "Monthly principal, interest, taxes, insurance and association dues",
    ),
    ExtensionField(
        "LoanProductType", ExtensionFieldType.STRING, "deal.loan_product",
        "Business-purpose loan product",
    ),
)

PLATFORMS: tuple[Platform, ...] = (
    Platform(ExportPlatform.MISMO_34, "MISMO 3.4"),
    Platform(
        ExportPlatform.ENCOMPASS,
        "Encompass",
        overlay=(
            ExtensionField(
                "EncompassLoanGuid", ExtensionFieldType.STRING, "deal.external_id",
                "Encompass loan GUID",
            ),
        ),
    ),
    Platform(
        ExportPlatform.LENDINGPAD,
        "LendingPad",
        overlay=(
            ExtensionField(
                "LendingPadFileNumber", ExtensionFieldType.STRING, "deal.external_id",
                "LendingPad loan file number",
            ),
        ),
    ),
    Platform(ExportPlatform.ARIVE, "Arive"),
    Platform(ExportPlatform.LENDINGWISE, "LendingWise"),
    Platform(ExportPlatform.CUSTOM, "Custom"),
)

_PLATFORMS_BY_KEY = {p.key: p for p in PLATFORMS}
_CORE_FIELDS_BY_NAME = {f.mismo_name: f for f in CORE_FIELDS}


def get_platform(platform_key: str | ExportPlatform) -> Platform:
    """Return the catalog entry for a platform key.

    Raises:
        ValidationError: The key is not a known platform.
    """
    try:
        key = ExportPlatform.from_key(platform_key)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown platform '{platform_key}'. "
            f"Expected one of: {', '.join(p.value for p in ExportPlatform)}."
        ) from exc
    return _PLATFORMS_BY_KEY[key]


def match_platforms(term: str) -> list[ExportPlatform]:
    """Platforms whose key or label contains ``term``, ignoring case."""
    needle = term.casefold()
    return [
        p.key for p in PLATFORMS
        if needle in p.key.value.casefold() or needle in p.label.casefold()
    ]


def is_core_field(name: str) -> bool:
    return name in _CORE_FIELDS_BY_NAME


def core_default_path(name: str) -> str | None:
    entry = _CORE_FIELDS_BY_NAME.get(name)
    return entry.default_path if entry else None


def extension_fields_for(platform_key: str | ExportPlatform) -> tuple[ExtensionField, ...]:
    """Base extension fields followed by the platform's overlay."""
    return BASE_EXTENSION_FIELDS + get_platform(platform_key).overlay


def extension_field_type(platform_key: str | ExportPlatform, field_name: str) -> ExtensionFieldType:
    """Declared type of an extension field; org-defined fields are strings."""
    for ext in extension_fields_for(platform_key):
        if ext.field_name == field_name:
            return ext.primitive_type
    return ExtensionFieldType.STRING


def list_platforms() -> list[PlatformEntry]:
    """Platform catalog in declaration order, for profile creation screens."""
    return [
        PlatformEntry(
            platform_key=p.key,
            label=p.label,
            extension_overlay={ext.field_name: ext.default_path for ext in p.overlay},
        )
        for p in PLATFORMS
    ]


def list_core_fields() -> list[CoreFieldEntry]:
    return [
        CoreFieldEntry(mismo_name=f.mismo_name, default_path=f.default_path, required=f.required)
        for f in CORE_FIELDS
    ]


def list_extension_fields() -> list[ExtensionFieldEntry]:
    """Every known extension field, tagged with the platform that adds it."""
    entries = [
        ExtensionFieldEntry(
            field_name=ext.field_name,
            primitive_type=ext.primitive_type,
            default_path=ext.default_path,
            description=ext.description,
        )
        for ext in BASE_EXTENSION_FIELDS
    ]
    for p in PLATFORMS:
        entries.extend(
            ExtensionFieldEntry(
                field_name=ext.field_name,
                primitive_type=ext.primitive_type,
                default_path=ext.default_path,
                description=ext.description,
                platform=p.key,
            )
            for ext in p.overlay
        )
    return entries
