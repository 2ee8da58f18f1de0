from fastapi import APIRouter, Depends, File, Form, UploadFile

from registration_api.api.deps import get_intake_service
from registration_api.api.routes.register import ERROR_RESPONSES
from registration_api.core.file_validation import read_upload_file_limited
from registration_api.schemas.registration import RegisterResponse, RegistrationSubmission
from registration_api.services.intake_service import RegistrationIntakeService

router = APIRouter(tags=["Registration"])


@router.post("/registrations", response_model=RegisterResponse, responses=ERROR_RESPONSES)
async def register_with_proof(
    name: str | None = Form(None),
    email: str | None = Form(None),
    college: str | None = Form(None),
    phone: str | None = Form(None),
    member2_name: str | None = Form(None, alias="member2Name"),
    member3_name: str | None = Form(None, alias="member3Name"),
    upi_id: str | None = Form(None, alias="upiId"),
    team_name: str | None = Form(None, alias="teamName"),
    team_id: str | None = Form(None, alias="teamId"),
    event_name: str | None = Form(None, alias="eventName"),
    screenshot: UploadFile | None = File(None, description="Payment screenshot (max 5MB)"),
    intake: RegistrationIntakeService = Depends(get_intake_service),
) -> RegisterResponse:
    """Public registration form submission with the payment screenshot.

    Runs the full pipeline: validation, per-email rate limit, screenshot
    upload, insert, then the confirmation email when team details are known.

    Returns:
        RegisterResponse: ``{"success": true, "data": <record>}``.
    """
    proof = await read_upload_file_limited(screenshot) if screenshot is not None else None
    submission = RegistrationSubmission(
        name=name,
        email=email,
        college=college,
        phone=phone,
        member2_name=member2_name,
        member3_name=member3_name,
        upi_id=upi_id,
        team_name=team_name,
        team_id=team_id,
        event_name=event_name,
    )
    result = await intake.submit(submission, proof, public_form=True)
    return RegisterResponse(data=result.record, notified=result.notified)
