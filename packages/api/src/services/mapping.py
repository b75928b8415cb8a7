# This project was developed with assistance from AI tools.
"""Mapping table editing and resolution.

Profiles store sparse override tables: only the fields whose path differs
from the platform default. Everything that reads a table goes through
``merge_with_defaults`` / ``resolve_field`` so stored overrides and catalog
defaults are combined the same way everywhere. Paths are opaque dotted
strings; their existence in the deal model is checked by the export
orchestrator at resolution time, not here.
"""

from collections.abc import Mapping

from ..schemas import FieldPath
from ..schemas.profile import ValidationRules, ValidationRulesUpdate
from .catalog import CORE_FIELDS, is_core_field
from .errors import ValidationError


def set_mapping(table: Mapping[str, str], key: str, path: str) -> dict[str, str]:
    """Return a copy of ``table`` with ``key`` mapped to ``path``."""
    updated = dict(table)
    updated[key] = path
    return updated


def remove_mapping(table: Mapping[str, str], key: str) -> dict[str, str]:
    """Return a copy of ``table`` without ``key``; the field falls back to its default."""
    updated = dict(table)
    updated.pop(key, None)
    return updated


def reset_mapping() -> dict[str, str]:
    """An empty override table -- every field resolves to its default."""
    return {}


def resolve_field(overrides: Mapping[str, str] | None, key: str, catalog_default: str | None) -> str | None:
    """Path for ``key``: the stored override if present, else the catalog default."""
    if overrides and key in overrides:
        return overrides[key]
    return catalog_default


def merge_with_defaults(
    overrides: Mapping[str, str] | None,
    defaults: Mapping[str, str],
) -> dict[str, str]:
    """Full table: every default key resolved, plus override-only keys.

    Default keys keep catalog order; org-defined keys follow in the order
    they were stored.
    """
    overrides = overrides or {}
    merged = {key: resolve_field(overrides, key, path) for key, path in defaults.items()}
    for key, path in overrides.items():
        if key not in merged:
            merged[key] = path
    return merged


def compact_overrides(table: Mapping[str, str], defaults: Mapping[str, str]) -> dict[str, str]:
    """Drop entries equal to their default so only real overrides are stored."""
    return {key: path for key, path in table.items() if defaults.get(key) != path}


def render_rows(overrides: Mapping[str, str] | None, defaults: Mapping[str, str]) -> list[FieldPath]:
    """Merged table as editor rows, flagging which rows are overrides."""
    overrides = overrides or {}
    return [
        FieldPath(field=key, path=path, is_override=key in overrides)
        for key, path in merge_with_defaults(overrides, defaults).items()
    ]


def validate_core_keys(table: Mapping[str, str]) -> None:
    """Core tables may only use canonical MISMO field names.

    Raises:
        ValidationError: The table names a field that is not in the core catalog.
    """
    unknown = sorted(key for key in table if not is_core_field(key))
    if unknown:
        raise ValidationError(f"Unknown core field(s): {', '.join(unknown)}.")
    _validate_paths(table)


def validate_extension_keys(table: Mapping[str, str]) -> None:
    """Extension names are stored unprefixed; the profile namespace is applied on output.

    Raises:
        ValidationError: A name is empty or already carries a namespace prefix.
    """
    for key in table:
        if not key or not key.strip():
            raise ValidationError("Extension field names must not be empty.")
        if ":" in key:
            raise ValidationError(
                f"Extension field '{key}' must be unprefixed; "
                "the profile's extension namespace is applied on export."
            )
    _validate_paths(table)


def _validate_paths(table: Mapping[str, str]) -> None:
    for key, path in table.items():
        if not isinstance(path, str):
            raise ValidationError(f"Path for '{key}' must be a string.")


def required_core_fields() -> list[str]:
    """Canonical names an export must resolve under strict validation."""
    return [f.mismo_name for f in CORE_FIELDS if f.required]


def qualified_extension_name(namespace: str, field_name: str) -> str:
    return f"{namespace}:{field_name}"


def qualify_extension_fields(namespace: str, table: Mapping[str, str]) -> dict[str, str]:
    return {qualified_extension_name(namespace, key): path for key, path in table.items()}


def apply_rule_changes(rules: ValidationRules | Mapping | None, changes: ValidationRulesUpdate | None) -> ValidationRules:
    """Overlay explicitly set rules onto a stored rule set."""
    base = rules if isinstance(rules, ValidationRules) else ValidationRules(**(rules or {}))
    if changes is None:
        return base
    return base.model_copy(update=changes.model_dump(exclude_none=True))
