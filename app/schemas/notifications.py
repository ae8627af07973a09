"""Patient notification schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class ParticipantRole(str, Enum):
    """Who is on either end of a chat."""

    PATIENT = "patient"
    ADMIN = "admin"
    DOCTOR = "doctor"


class NotificationType(str, Enum):
    """Notification document types the patient app understands."""

    NEW_MESSAGE = "new_message"
    APPOINTMENT_APPROVED = "appointment_approved"
    APPOINTMENT_DECLINED = "appointment_declined"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    PAYMENT_RECEIVED = "payment_received"


class ChatRecipient(BaseModel):
    """Resolved receiver of a chat message."""

    recipient_id: str
    recipient_role: ParticipantRole


class MessageNotificationRequest(BaseModel):
    """Schema for announcing a newly sent chat message."""

    chat_id: str = Field(..., min_length=1)
    sender_id: str = Field(..., min_length=1)
    sender_name: str = Field(..., min_length=1, max_length=200)
    sender_role: ParticipantRole
    message_text: str = Field(..., min_length=1)


class PatientRef(BaseModel):
    """Patient a notification is addressed to."""

    user_id: str = Field(..., min_length=1)
    user_email: str = Field(default="")
    user_name: str = Field(default="")


class AppointmentApprovedRequest(PatientRef):
    """Schema for an appointment approval notification."""

    service_name: str = Field(..., min_length=1)
    appointment_date: str = Field(..., min_length=1)
    time_slot: str = Field(..., min_length=1)
    amount: float | None = Field(default=None, ge=0)


class AppointmentDeclinedRequest(PatientRef):
    """Schema for an appointment decline notification."""

    service_name: str = Field(..., min_length=1)
    appointment_date: str = Field(..., min_length=1)
    time_slot: str = Field(..., min_length=1)
    reason: str | None = None


class AppointmentCancelledRequest(PatientRef):
    """Schema for an appointment cancellation notification."""

    service_name: str = Field(..., min_length=1)
    appointment_date: str = Field(..., min_length=1)
    time_slot: str = Field(..., min_length=1)
    reason: str | None = None


class PaymentReceivedRequest(PatientRef):
    """Schema for a payment confirmation notification."""

    appointment_id: str | None = None
    amount: float = Field(..., ge=0)
    transaction_id: str = Field(..., min_length=1)
    service_name: str = Field(..., min_length=1)


class NotificationCreatedResponse(BaseModel):
    """Schema for notification creation response."""

    notification_id: str | None
    recipient_id: str | None = None
    message: str
