from fastapi import APIRouter, Depends

from registration_api.api.deps import get_intake_service
from registration_api.schemas.registration import (
    ErrorResponse,
    RegisterResponse,
    RegistrationSubmission,
)
from registration_api.services.intake_service import RegistrationIntakeService

router = APIRouter(tags=["Registration"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed fields"},
    405: {"model": ErrorResponse, "description": "Only POST (and OPTIONS) are allowed"},
    429: {"model": ErrorResponse, "description": "Per-email registration limit reached"},
    500: {"model": ErrorResponse, "description": "Rate-limit check, storage or store failure"},
}


@router.post("/register", response_model=RegisterResponse, responses=ERROR_RESPONSES)
async def register(
    payload: RegistrationSubmission,
    intake: RegistrationIntakeService = Depends(get_intake_service),
) -> RegisterResponse:
    """Store a registration whose payment screenshot is already uploaded.

    Only ``email`` and ``name`` are required on this path; the remaining
    fields, including the ``screenshot_url`` reference, are stored as sent.
    Domain errors are rendered by the global exception handlers.

    Args:
        payload: Registration fields (camelCase JSON).
        intake: Intake service.

    Returns:
        RegisterResponse: ``{"success": true, "data": <record>}``.
    """
    result = await intake.submit(payload)
    return RegisterResponse(data=result.record, notified=result.notified)
