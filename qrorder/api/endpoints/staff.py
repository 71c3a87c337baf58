"""Customer-to-staff requests."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from qrorder.api.responses import ok
from qrorder.core.errors import ValidationError
from qrorder.schemas.auth import CallStaffRequest
from qrorder.services.notifications import call_staff

router: APIRouter = APIRouter()


@router.post("/call-staff")
def request_staff(payload: CallStaffRequest) -> JSONResponse:
    table_number = str(payload.table_number if payload.table_number is not None else "").strip()
    if not table_number:
        raise ValidationError("Missing tableNumber")
    return ok(call_staff(table_number, payload.reason), message="Staff has been notified")
