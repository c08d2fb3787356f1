# =======================================================================================
# keycustody/api/routes/scanner.py - Scan Station Control
# =======================================================================================
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool
from ...models.schemas import (
    CaptureOptionsRequest, CaptureStartRequest, CaptureStateResponse, DevicesResponse,
    FrameDecodeResponse, RescanRequest,
)
from ...utils.exceptions import KeyCustodyError
from ...workers.scan_worker import ScanStation
from ..dependencies import get_scan_station
from ..errors import to_http_exception

router = APIRouter(prefix="/scanner")


@router.get("/devices", response_model=DevicesResponse)
def list_devices(station: ScanStation = Depends(get_scan_station)):
    try:
        return DevicesResponse(backend=station.backend.name, devices=station.list_devices())
    except KeyCustodyError as e:
        raise to_http_exception(e)


@router.get("/state", response_model=CaptureStateResponse)
def get_state(station: ScanStation = Depends(get_scan_station)):
    return station.state()


@router.post("/start", response_model=CaptureStateResponse)
def start_capture(request: CaptureStartRequest = None, station: ScanStation = Depends(get_scan_station)):
    request = request or CaptureStartRequest()
    try:
        return station.start(request.device, request.action, request.actor, request.frames)
    except KeyCustodyError as e:
        raise to_http_exception(e)


@router.post("/stop", response_model=CaptureStateResponse)
def stop_capture(station: ScanStation = Depends(get_scan_station)):
    return station.stop()


@router.post("/reset", response_model=CaptureStateResponse)
def reset_capture(station: ScanStation = Depends(get_scan_station)):
    return station.reset()


@router.post("/rescan-identity", response_model=CaptureStateResponse)
def rescan_identity(request: RescanRequest = None, station: ScanStation = Depends(get_scan_station)):
    request = request or RescanRequest()
    try:
        return station.rescan_identity(request.frames)
    except KeyCustodyError as e:
        raise to_http_exception(e)


@router.post("/rescan-item", response_model=CaptureStateResponse)
def rescan_item(request: RescanRequest = None, station: ScanStation = Depends(get_scan_station)):
    request = request or RescanRequest()
    try:
        return station.rescan_item(request.frames)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except KeyCustodyError as e:
        raise to_http_exception(e)


@router.put("/options", response_model=CaptureStateResponse)
def set_options(request: CaptureOptionsRequest, station: ScanStation = Depends(get_scan_station)):
    return station.set_options(request.action, request.actor)


@router.post("/frame", response_model=FrameDecodeResponse)
async def decode_frame(image: UploadFile = File(...), station: ScanStation = Depends(get_scan_station)):
    """Decode one still image from the client camera and feed it to the capture."""
    data = await image.read()
    try:
        return await run_in_threadpool(station.feed_frame, data)
    except KeyCustodyError as e:
        raise to_http_exception(e)
