"""Notification endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.dependencies import AdminUser, CurrentUser, NotificationServiceDep, is_admin
from app.schemas.notifications import (
    AppointmentApprovedRequest,
    AppointmentCancelledRequest,
    AppointmentDeclinedRequest,
    MessageNotificationRequest,
    NotificationCreatedResponse,
    PaymentReceivedRequest,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "/messages",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Notify the other participant of a chat about a new message",
)
async def notify_new_message(
    request: MessageNotificationRequest,
    current_user: CurrentUser,
    service: NotificationServiceDep,
) -> NotificationCreatedResponse:
    """
    Notify the other side of a chat that a message was sent.

    Patients may only announce their own messages; staff may send as the shared
    "admin" or "doctor" identities. The call succeeds even if no notification could
    be written, since the message itself has already been delivered.

    Args:
        request: The message that was sent
        current_user: Authenticated user
        service: Notification service

    Returns:
        Notification id and recipient, both None when nothing was sent
    """
    if not is_admin(current_user) and request.sender_id != current_user.get("uid"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot send notifications on behalf of another user",
        )

    notification_id, recipient = await service.notify_message_recipient(request)

    return NotificationCreatedResponse(
        notification_id=notification_id,
        recipient_id=recipient.recipient_id if recipient else None,
        message="Notification sent" if notification_id else "No notification sent",
    )


@router.post(
    "/appointments/{appointment_id}/approved",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Tell a patient their appointment is confirmed (admin only)",
)
async def notify_appointment_approved(
    appointment_id: str,
    request: AppointmentApprovedRequest,
    admin_user: AdminUser,
    service: NotificationServiceDep,
) -> NotificationCreatedResponse:
    """Create an appointment approval notification for the patient."""
    notification_id = await service.send_appointment_approved(request, appointment_id)
    return NotificationCreatedResponse(
        notification_id=notification_id,
        recipient_id=request.user_id,
        message="Approval notification sent",
    )


@router.post(
    "/appointments/{appointment_id}/declined",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Tell a patient their appointment was not approved (admin only)",
)
async def notify_appointment_declined(
    appointment_id: str,
    request: AppointmentDeclinedRequest,
    admin_user: AdminUser,
    service: NotificationServiceDep,
) -> NotificationCreatedResponse:
    """Create an appointment decline notification for the patient."""
    notification_id = await service.send_appointment_declined(request, appointment_id)
    return NotificationCreatedResponse(
        notification_id=notification_id,
        recipient_id=request.user_id,
        message="Decline notification sent",
    )


@router.post(
    "/appointments/{appointment_id}/cancelled",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Tell a patient their appointment was cancelled (admin only)",
)
async def notify_appointment_cancelled(
    appointment_id: str,
    request: AppointmentCancelledRequest,
    admin_user: AdminUser,
    service: NotificationServiceDep,
) -> NotificationCreatedResponse:
    """Create an appointment cancellation notification for the patient."""
    notification_id = await service.send_appointment_cancelled(request, appointment_id)
    return NotificationCreatedResponse(
        notification_id=notification_id,
        recipient_id=request.user_id,
        message="Cancellation notification sent",
    )


@router.post(
    "/payments",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Tell a patient their payment was received (admin only)",
)
async def notify_payment_received(
    request: PaymentReceivedRequest,
    admin_user: AdminUser,
    service: NotificationServiceDep,
) -> NotificationCreatedResponse:
    """Create a payment confirmation notification for the patient."""
    notification_id = await service.send_payment_received(request)
    return NotificationCreatedResponse(
        notification_id=notification_id,
        recipient_id=request.user_id,
        message="Payment notification sent",
    )
