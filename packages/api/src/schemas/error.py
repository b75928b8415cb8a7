# This project was developed with assistance from AI tools.
"""RFC 7807 Problem Details error response schema."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """RFC 7807 Problem Details, extended with a machine-readable error code.

    See https://datatracker.ietf.org/doc/html/rfc7807
    """

    type: str = Field(default="about:blank")
    title: str = Field(description="Short human-readable summary of the problem.")
    status: int
    detail: str = ""
    code: str = Field(
        default="",
        description="Error class name, e.g. NoDefaultProfileError. Empty for generic HTTP errors.",
    )
    request_id: str = Field(
        default="",
        description="Correlation ID for tracing this request in logs.",
    )
    profile_ids: list[str] | None = Field(
        default=None,
        description="Conflicting default profile ids, set only for ambiguous-default errors.",
    )
