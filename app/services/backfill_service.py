"""Field-level backfill rules for appointment documents.

Every function here is pure: it looks at an already-loaded appointment (and user)
and returns the fields that should change, keyed by their stored field names.
Nothing is written here; see ``migration_service`` for the batch job.
"""

from collections.abc import Mapping
from typing import Any

from app.core.pricing import ServicePrice
from app.models.appointments import UNKNOWN_PATIENT_NAME, AppointmentRecord
from app.models.users import UserRecord
from app.services.identity_service import email_local_part

DEFAULT_AMOUNT = 500
DEFAULT_CATEGORY = "Medical"


def needs_identity_backfill(appointment: AppointmentRecord) -> bool:
    """True unless name, email and phone are all filled in."""
    return not appointment.has_complete_identity


def needs_pricing_backfill(appointment: AppointmentRecord) -> bool:
    """True unless amount and service category are both filled in."""
    return not appointment.has_complete_pricing


def _drop_unchanged(appointment: AppointmentRecord, patch: dict[str, Any]) -> dict[str, Any]:
    # A placeholder can be rewritten with the same placeholder; that is not a change
    return {name: value for name, value in patch.items() if appointment.raw.get(name) != value}


def derive_user_name(user: UserRecord | None, candidate_email: str | None) -> str:
    """Best display name available for an appointment's patient."""
    if user is not None:
        if user.display_name:
            return user.display_name
        if user.first_name:
            return user.first_name
        if user.email:
            return email_local_part(user.email)
    elif candidate_email:
        return email_local_part(candidate_email)
    return UNKNOWN_PATIENT_NAME


def compute_identity_patch(
    appointment: AppointmentRecord,
    user: UserRecord | None,
    candidate_email: str | None = None,
) -> dict[str, Any]:
    """
    Work out which patient fields an appointment is missing.

    Each field is only ever filled in, never overwritten:
    - userName: from the user's display name, first name or email local part;
      without a user, from the local part of the appointment's own email
    - userEmail: from the user's email; without a user, the appointment's own email
    - userPhone: from the user's phoneNumber or phone only

    Args:
        appointment: Appointment being reconciled
        user: Matched user, if any
        candidate_email: Email found on the appointment itself

    Returns:
        Fields to set; empty when nothing can or needs to change
    """
    if user is None and not candidate_email:
        return {}

    patch: dict[str, Any] = {}

    if appointment.user_name is None:
        patch["userName"] = derive_user_name(user, candidate_email)

    if appointment.user_email is None:
        if user is not None:
            if user.email:
                patch["userEmail"] = user.email
        else:
            patch["userEmail"] = candidate_email

    if appointment.user_phone is None and user is not None and user.contact_phone:
        patch["userPhone"] = user.contact_phone

    return _drop_unchanged(appointment, patch)


def compute_pricing_patch(
    appointment: AppointmentRecord,
    pricing: Mapping[str, ServicePrice],
    default_amount: int = DEFAULT_AMOUNT,
    default_category: str = DEFAULT_CATEGORY,
) -> dict[str, Any]:
    """
    Work out a missing amount and/or service category from the price list.

    The service is looked up by serviceName, falling back to type. Unknown services
    get ``default_amount`` and ``default_category``. Amount and category are
    checked independently.

    Args:
        appointment: Appointment being reconciled
        pricing: Service name to price mapping
        default_amount: Amount for services missing from ``pricing``
        default_category: Category for services missing from ``pricing``

    Returns:
        Fields to set; empty when both are already present
    """
    service_key = appointment.service_key
    price = pricing.get(service_key) if service_key else None

    patch: dict[str, Any] = {}

    if appointment.amount is None:
        patch["amount"] = price.amount if price else default_amount

    if appointment.service_category is None:
        patch["serviceCategory"] = price.category if price else default_category

    return _drop_unchanged(appointment, patch)
