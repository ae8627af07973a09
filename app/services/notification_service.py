"""Notification documents for the patient app and the staff inbox."""

from collections.abc import Mapping
from typing import Any

import structlog
from google.cloud.firestore import SERVER_TIMESTAMP

from app.database import DocumentStore
from app.schemas.notifications import (
    AppointmentApprovedRequest,
    AppointmentCancelledRequest,
    AppointmentDeclinedRequest,
    ChatRecipient,
    MessageNotificationRequest,
    NotificationType,
    ParticipantRole,
    PaymentReceivedRequest,
)

logger = structlog.get_logger(__name__)

MESSAGE_PREVIEW_LENGTH = 100

# Staff messages are addressed to these shared inbox ids rather than to a person
STAFF_SENDER_IDS = frozenset({"admin", "doctor"})
STAFF_INBOX_ID = "admin"


def resolve_chat_recipient(chat: Mapping[str, Any], sender_id: str) -> ChatRecipient | None:
    """
    Work out who should hear about a message in a chat.

    Chats only record the patient (as ``patientId`` or ``userId``); staff share one
    inbox. A message from the patient goes to the staff inbox, a message from staff
    goes to the patient.

    Args:
        chat: Chat document fields
        sender_id: ID of whoever sent the message

    Returns:
        The recipient, or None if the sender is not part of the chat
    """
    patient_id = chat.get("patientId") or chat.get("userId")

    if sender_id in (chat.get("patientId"), chat.get("userId")):
        return ChatRecipient(recipient_id=STAFF_INBOX_ID, recipient_role=ParticipantRole.ADMIN)

    if sender_id in STAFF_SENDER_IDS:
        if not patient_id:
            return None
        return ChatRecipient(recipient_id=patient_id, recipient_role=ParticipantRole.PATIENT)

    return None


def preview(text: str, length: int = MESSAGE_PREVIEW_LENGTH) -> str:
    """Shorten a message for display in a notification."""
    if len(text) > length:
        return text[:length] + "..."
    return text


def format_rand(amount: float) -> str:
    """Format an amount in Rand without a trailing '.0' for whole numbers."""
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return f"R{amount}"


class NotificationService:
    """Service for writing notification documents."""

    def __init__(
        self,
        store: DocumentStore,
        notifications_collection: str = "notifications",
        chats_collection: str = "chats",
    ):
        """Initialize service with a document store."""
        self.store = store
        self.notifications_collection = notifications_collection
        self.chats_collection = chats_collection

    async def _create(self, notification: dict[str, Any]) -> str:
        document = {
            **notification,
            "read": False,
            "readAt": None,
            "createdAt": SERVER_TIMESTAMP,
        }
        notification_id = await self.store.add(self.notifications_collection, document)
        logger.info(
            "notification_created",
            notification_id=notification_id,
            type=notification["type"],
            user_id=notification["userId"],
        )
        return notification_id

    async def send_message_notification(
        self,
        data: MessageNotificationRequest,
        recipient: ChatRecipient,
    ) -> str:
        """
        Tell a chat participant they have a new message.

        Args:
            data: The message that was sent
            recipient: Who receives the notification

        Returns:
            ID of the notification document
        """
        return await self._create(
            {
                "userId": recipient.recipient_id,
                "type": NotificationType.NEW_MESSAGE.value,
                "title": f"New message from {data.sender_name}",
                "message": preview(data.message_text),
                "priority": "medium",
                "relatedTo": {
                    "chatId": data.chat_id,
                    "senderId": data.sender_id,
                    "senderRole": data.sender_role.value,
                },
                "actionUrl": "/chat",
            }
        )

    async def notify_message_recipient(
        self,
        data: MessageNotificationRequest,
    ) -> tuple[str | None, ChatRecipient | None]:
        """
        Find the other side of a chat and notify them.

        Failures are logged and swallowed: a message that was sent must not be
        reported as failed because its notification could not be written.

        Args:
            data: The message that was sent

        Returns:
            Tuple of (notification_id, recipient); notification_id is None when
            nothing was sent
        """
        try:
            chat = await self.store.get(self.chats_collection, data.chat_id)
            if chat is None:
                logger.warning("chat_not_found", chat_id=data.chat_id)
                return None, None

            recipient = resolve_chat_recipient(chat.data, data.sender_id)
            if recipient is None:
                logger.warning(
                    "chat_recipient_unresolved",
                    chat_id=data.chat_id,
                    sender_id=data.sender_id,
                )
                return None, None

            notification_id = await self.send_message_notification(data, recipient)
            return notification_id, recipient

        except Exception as e:
            logger.error(
                "message_notification_failed",
                chat_id=data.chat_id,
                sender_id=data.sender_id,
                error=str(e),
            )
            return None, None

    async def send_appointment_approved(
        self,
        data: AppointmentApprovedRequest,
        appointment_id: str,
    ) -> str:
        """Tell a patient their appointment was confirmed."""
        message = (
            f"Your appointment for {data.service_name} on {data.appointment_date} "
            f"at {data.time_slot} has been confirmed."
        )
        if data.amount:
            message += f" Amount: {format_rand(data.amount)}"

        return await self._create(
            {
                "userId": data.user_id,
                "userEmail": data.user_email,
                "userName": data.user_name,
                "type": NotificationType.APPOINTMENT_APPROVED.value,
                "title": "✅ Appointment Confirmed!",
                "message": message,
                "priority": "high",
                "relatedTo": {"appointmentId": appointment_id},
                "actionUrl": "/appointments",
            }
        )

    async def send_appointment_declined(
        self,
        data: AppointmentDeclinedRequest,
        appointment_id: str,
    ) -> str:
        """Tell a patient their appointment could not be confirmed."""
        message = (
            f"Unfortunately, your appointment for {data.service_name} on "
            f"{data.appointment_date} at {data.time_slot} could not be confirmed."
        )
        if data.reason:
            message += f" Reason: {data.reason}"
        message += " Please contact us for alternative dates."

        return await self._create(
            {
                "userId": data.user_id,
                "userEmail": data.user_email,
                "userName": data.user_name,
                "type": NotificationType.APPOINTMENT_DECLINED.value,
                "title": "❌ Appointment Not Approved",
                "message": message,
                "priority": "high",
                "relatedTo": {"appointmentId": appointment_id},
                "actionUrl": "/appointments",
            }
        )

    async def send_appointment_cancelled(
        self,
        data: AppointmentCancelledRequest,
        appointment_id: str,
    ) -> str:
        """Tell a patient their appointment was cancelled, with the reason if given."""
        message = (
            f"Your appointment for {data.service_name} on {data.appointment_date} "
            f"at {data.time_slot} has been cancelled."
        )
        if data.reason:
            message += f" Reason: {data.reason}"

        return await self._create(
            {
                "userId": data.user_id,
                "userEmail": data.user_email,
                "userName": data.user_name,
                "type": NotificationType.APPOINTMENT_CANCELLED.value,
                "title": "🗓️ Appointment Cancelled",
                "message": message,
                "priority": "medium",
                "relatedTo": {"appointmentId": appointment_id},
                "actionUrl": "/appointments",
            }
        )

    async def send_payment_received(self, data: PaymentReceivedRequest) -> str:
        """Tell a patient their payment has been received."""
        return await self._create(
            {
                "userId": data.user_id,
                "userEmail": data.user_email,
                "userName": data.user_name,
                "type": NotificationType.PAYMENT_RECEIVED.value,
                "title": "💰 Payment Confirmed",
                "message": (
                    f"Your payment of R{data.amount:.2f} for {data.service_name} has been "
                    f"received. Transaction ID: {data.transaction_id}"
                ),
                "priority": "medium",
                "relatedTo": {"appointmentId": data.appointment_id},
                "actionUrl": "/billing",
            }
        )
