from fastapi import APIRouter, Depends

from registration_api.api.deps import get_notification_sender
from registration_api.schemas.registration import (
    ConfirmationRequest,
    ConfirmationResponse,
    ErrorResponse,
)
from registration_api.services.notification_service import NotificationSender

router = APIRouter(tags=["Notifications"])


@router.post(
    "/send-confirmation",
    response_model=ConfirmationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "A required field is missing"},
        405: {"model": ErrorResponse, "description": "Only POST (and OPTIONS) are allowed"},
        500: {"model": ErrorResponse, "description": "Mail configuration missing or relay failure"},
    },
)
async def send_confirmation(
    payload: ConfirmationRequest,
    notifier: NotificationSender = Depends(get_notification_sender),
) -> ConfirmationResponse:
    """Send the registration confirmation email.

    All of ``name``, ``email``, ``teamName``, ``teamId`` and ``eventName``
    are required.
    """
    await notifier.send(
        payload.email,
        {
            "name": payload.name,
            "event_name": payload.event_name,
            "team_name": payload.team_name,
            "team_id": payload.team_id,
        },
    )
    return ConfirmationResponse()
