# =======================================================================================
# keycustody/api/routes/scan.py - Scan Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import ScanSubmitRequest, ScanSubmitResponse
from ...services.scan_workflow import ScanWorkflowService
from ...utils.exceptions import KeyCustodyError
from ..dependencies import get_scan_workflow
from ..errors import to_http_exception

router = APIRouter()


@router.post("/scan", response_model=ScanSubmitResponse)
def submit_scan(request: ScanSubmitRequest, workflow: ScanWorkflowService = Depends(get_scan_workflow)):
    """Sign a key in or out for a scanned identity."""
    try:
        return workflow.submit(
            request.identityToken, request.keyBarcode, request.action,
            request.actor, request.timestamp,
        )
    except KeyCustodyError as e:
        raise to_http_exception(e)
