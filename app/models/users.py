"""User documents as read from the ``users`` collection."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.database import StoredDocument
from app.models.appointments import clean_text, document_fields


class UserRecord(BaseModel):
    """A registered patient or staff member. Never written by this service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = ""
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    phone: str | None = None
    role: str | None = None

    @field_validator(
        "email",
        "display_name",
        "first_name",
        "last_name",
        "phone_number",
        "phone",
        "role",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        """Treat empty strings as missing."""
        return clean_text(v)

    @classmethod
    def from_document(cls, document: StoredDocument) -> "UserRecord":
        """Build a record from a stored user document."""
        record = cls.model_validate(document_fields(document))
        return record.model_copy(update={"id": document.id})

    @property
    def contact_phone(self) -> str | None:
        """Preferred phone number, falling back to the legacy ``phone`` field."""
        return self.phone_number or self.phone
