# This project was developed with assistance from AI tools.
"""Shared schema components."""

from pydantic import BaseModel


class FieldPath(BaseModel):
    """A single field-to-path binding, as shown in mapping editors."""

    field: str
    path: str
    is_override: bool = False
