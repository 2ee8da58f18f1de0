"""Pydantic schemas for registration requests, records and responses.

Public JSON uses the camelCase names of the registration form; the hosted
table uses snake_case columns. ``screenshot_url`` keeps its snake_case name
on requests because that is what existing clients send.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Public field name -> table column
COLUMN_BY_FIELD: dict[str, str] = {
    "team_name": "team_name",
    "team_id": "team_id",
    "name": "name",
    "email": "email",
    "college": "college",
    "phone": "phone",
    "member2_name": "member2_name",
    "member3_name": "member3_name",
    "upi_id": "upi_id",
    "screenshot_url": "screenshot_url",
}


class RegistrationSubmission(BaseModel):
    """Raw registration input, before validation.

    Every field is optional at the schema level so that missing values are
    reported by the intake service as ``missing_required_fields`` (400)
    instead of a framework-specific 422.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    email: str | None = Field(None, description="Team leader email; rate-limit key.")
    name: str | None = Field(None, description="Submitter / team leader name.")
    team_name: str | None = Field(None, alias="teamName")
    team_id: str | None = Field(None, alias="teamId")
    college: str | None = None
    phone: str | None = None
    member2_name: str | None = Field(None, alias="member2Name")
    member3_name: str | None = Field(None, alias="member3Name")
    upi_id: str | None = Field(
        None,
        alias="upiId",
        description="Payment transaction reference (free text, not verified).",
    )
    screenshot_url: str | None = Field(
        None,
        description="Reference to an already uploaded proof-of-payment object.",
    )
    event_name: str | None = Field(
        None,
        alias="eventName",
        description="Event name for the confirmation email (defaults to APP_EVENT_NAME).",
    )

    def to_row(self) -> dict[str, Any]:
        """Build the table row for this submission.

        ``id`` and ``created_at`` are never sent; the store assigns them.
        An empty third member is stored as null.
        """
        row = {column: getattr(self, field) for field, column in COLUMN_BY_FIELD.items()}
        row["member3_name"] = self.member3_name or None
        return row


class RegistrationRecord(BaseModel):
    """A persisted registration row."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str = Field(..., description="Store-assigned identifier.")
    email: str
    name: str
    team_name: str | None = Field(None, alias="teamName")
    team_id: str | None = Field(None, alias="teamId")
    college: str | None = None
    phone: str | None = None
    member2_name: str | None = Field(None, alias="member2Name")
    member3_name: str | None = Field(None, alias="member3Name")
    upi_id: str | None = Field(None, alias="upiId")
    screenshot_url: str | None = Field(None, alias="screenshotUrl")
    created_at: datetime = Field(..., alias="createdAt", description="Store-assigned insert time.")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "RegistrationRecord":
        return cls.model_validate(
            {
                "id": row["id"],
                "created_at": row["created_at"],
                **{field: row.get(column) for field, column in COLUMN_BY_FIELD.items()},
            }
        )


class RegisterResponse(BaseModel):
    """Successful registration."""

    success: bool = True
    data: RegistrationRecord
    notified: bool = Field(
        False,
        description="True when a confirmation email was sent as part of this registration.",
    )


class ConfirmationRequest(BaseModel):
    """Body of POST /send-confirmation. All fields are required."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str | None = None
    email: str | None = None
    team_name: str | None = Field(None, alias="teamName")
    team_id: str | None = Field(None, alias="teamId")
    event_name: str | None = Field(None, alias="eventName")


class ConfirmationResponse(BaseModel):
    success: bool = True
    message: str = "Confirmation email sent successfully"


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    error: str = Field(..., description="Stable, machine-readable error code.")
    message: str = Field(..., description="Human-readable explanation.")
    request_id: str | None = None
    details: dict[str, Any] | None = None
