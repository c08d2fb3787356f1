# =======================================================================================
# keycustody/api/routes/keys.py - Key Registration Endpoints
# =======================================================================================
from typing import List
from fastapi import APIRouter, Depends, Response
from ...models.schemas import DeleteResponse, KeyRecord, KeyRecordCreate, PrintRequest
from ...services.registration_service import RegistrationService
from ...utils.exceptions import KeyCustodyError
from ..dependencies import get_registration_service
from ..errors import to_http_exception

router = APIRouter()


@router.get("/keys", response_model=List[KeyRecord])
def list_keys(service: RegistrationService = Depends(get_registration_service)):
    return service.list_records()


@router.post("/keys", response_model=KeyRecord, status_code=201)
def add_key(form: KeyRecordCreate, service: RegistrationService = Depends(get_registration_service)):
    try:
        return service.add_record(form)
    except KeyCustodyError as e:
        raise to_http_exception(e)


@router.delete("/keys/{record_id}", response_model=DeleteResponse)
def delete_key(record_id: str, service: RegistrationService = Depends(get_registration_service)):
    try:
        service.delete_record(record_id)
    except KeyCustodyError as e:
        raise to_http_exception(e)
    return DeleteResponse(success=True, message="Key record deleted")


@router.post("/keys/print")
def print_keys(request: PrintRequest, service: RegistrationService = Depends(get_registration_service)):
    """PDF sheet of barcode labels for the selected key records."""
    try:
        pdf = service.print_selected(request.ids)
    except KeyCustodyError as e:
        raise to_http_exception(e)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="key-labels.pdf"'},
    )
