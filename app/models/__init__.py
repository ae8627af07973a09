"""Document models."""

from app.models.appointments import AppointmentRecord
from app.models.users import UserRecord

__all__ = [
    "AppointmentRecord",
    "UserRecord",
]
