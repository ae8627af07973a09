"""Appointment documents as read from the ``appointments`` collection."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.database import StoredDocument

# Values the booking flow writes when it does not know the patient yet
PLACEHOLDER_NAMES = frozenset({"Patient", "Unknown Patient"})
PLACEHOLDER_PHONE = "N/A"

# Name written when nothing better can be derived
UNKNOWN_PATIENT_NAME = "Unknown Patient"


def clean_text(value: Any) -> str | None:
    """Return the value as a string, or None for missing and empty values.

    Whitespace is kept as stored: only an empty string counts as empty, and only
    the exact placeholder strings count as placeholders.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value or None


def document_fields(document: StoredDocument) -> dict[str, Any]:
    """Stored fields minus the keys the record models reserve for themselves."""
    return {
        key: value
        for key, value in document.data.items()
        if key not in ("id", "raw", "version")
    }


class AppointmentRecord(BaseModel):
    """
    One scheduled clinic visit.

    Placeholder values stored by older booking flows ("Patient", "Unknown Patient",
    "N/A", empty strings, a zero amount) are read as missing, so callers only ever
    test for None. The untouched document stays available in ``raw``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = ""

    # Identity linkage
    user_id: str | None = Field(default=None, alias="userId")
    user_email: str | None = Field(default=None, alias="userEmail")
    patient_email: str | None = Field(default=None, alias="patientEmail")
    email: str | None = None
    patient_id: str | None = Field(default=None, alias="patientId")

    # Display
    user_name: str | None = Field(default=None, alias="userName")
    user_phone: str | None = Field(default=None, alias="userPhone")

    # Commerce
    amount: int | float | str | None = None
    service_category: str | None = Field(default=None, alias="serviceCategory")
    service_name: str | None = Field(default=None, alias="serviceName")
    service_type: str | None = Field(default=None, alias="type")

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    version: Any = Field(default=None, exclude=True)

    @field_validator(
        "user_id",
        "user_email",
        "patient_email",
        "email",
        "patient_id",
        "service_category",
        "service_name",
        "service_type",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        """Treat empty strings as missing."""
        return clean_text(v)

    @field_validator("user_name", mode="before")
    @classmethod
    def drop_placeholder_name(cls, v: Any) -> str | None:
        """Treat placeholder patient names as missing."""
        name = clean_text(v)
        return None if name in PLACEHOLDER_NAMES else name

    @field_validator("user_phone", mode="before")
    @classmethod
    def drop_placeholder_phone(cls, v: Any) -> str | None:
        """Treat the "N/A" phone placeholder as missing."""
        phone = clean_text(v)
        return None if phone == PLACEHOLDER_PHONE else phone

    @field_validator("amount", mode="before")
    @classmethod
    def drop_zero_amount(cls, v: Any) -> Any:
        """An amount of zero means the appointment has not been priced."""
        if isinstance(v, bool):
            return None
        if isinstance(v, str):
            return clean_text(v)
        if v == 0:
            return None
        return v

    @classmethod
    def from_document(cls, document: StoredDocument) -> "AppointmentRecord":
        """Build a record from a stored appointment document."""
        record = cls.model_validate(document_fields(document))
        return record.model_copy(
            update={"id": document.id, "raw": dict(document.data), "version": document.version}
        )

    @property
    def has_complete_identity(self) -> bool:
        """Name, email and phone are all known."""
        return (
            self.user_name is not None
            and self.user_email is not None
            and self.user_phone is not None
        )

    @property
    def has_complete_pricing(self) -> bool:
        """Amount and service category are both known."""
        return self.amount is not None and self.service_category is not None

    @property
    def service_key(self) -> str | None:
        """Service identifier used for pricing lookups."""
        return self.service_name or self.service_type
