"""Match appointments to the users who booked them."""

from collections.abc import Sequence

from app.models.appointments import AppointmentRecord
from app.models.users import UserRecord


def extract_candidate_email(appointment: AppointmentRecord) -> str | None:
    """Email the appointment refers to: userEmail, then patientEmail, then email."""
    return appointment.user_email or appointment.patient_email or appointment.email


def email_local_part(email: str) -> str:
    """Part of an email address before the '@'."""
    return email.split("@", 1)[0]


def find_email_matches(email: str, users: Sequence[UserRecord]) -> list[UserRecord]:
    """All users whose email equals ``email``, ignoring case, in supplied order."""
    wanted = email.lower()
    return [user for user in users if user.email is not None and user.email.lower() == wanted]


def resolve_user(
    appointment: AppointmentRecord,
    users: Sequence[UserRecord],
) -> UserRecord | None:
    """
    Find the user an appointment belongs to.

    Strict priority, first match wins:
    1. a user whose email equals the candidate email (case-insensitive)
    2. a user whose id equals the appointment's patientId

    Ties go to the first user in ``users``, so callers must pass a stable order.

    Args:
        appointment: Appointment to resolve
        users: Every known user, already loaded

    Returns:
        The matching user, or None if nobody matches
    """
    email = extract_candidate_email(appointment)
    if email:
        matches = find_email_matches(email, users)
        if matches:
            return matches[0]

    if appointment.patient_id:
        for user in users:
            if user.id == appointment.patient_id:
                return user

    return None
