# =======================================================================================
# keycustody/workers/scan_worker.py - Background Scan Station
# =======================================================================================
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Iterator, List, Optional, Set
from sqlalchemy.exc import SQLAlchemyError
from ..config import config
from ..models.enums import NoticeLevel, ScanAction
from ..models.schemas import (
    ActorMetadata, CaptureStateResponse, DeviceInfo, FrameDecodeResponse, Notice,
    ScanSubmitResponse,
)
from ..scanner.base import DecodeBackend
from ..scanner.factory import get_decode_backend
from ..scanner.session import ScanSession
from ..services.preference_service import PreferenceService
from ..services.scan_workflow import ScanWorkflowService
from ..utils.exceptions import CaptureDeviceError, DeviceBusyError, KeyCustodyError
from ..utils.validators import IdentityValidator

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# Device claims: one decode loop per device across the process
# ----------------------------------------------------------------------
_claimed_devices: Set[str] = set()
_claims_lock = threading.Lock()


def claim_device(key: str):
    with _claims_lock:
        if key in _claimed_devices:
            raise DeviceBusyError(f"Capture device {key} is already in use")
        _claimed_devices.add(key)


def release_device(key: str):
    with _claims_lock:
        _claimed_devices.discard(key)


class ScanStation:
    """Owns the decode backend, the capture thread and the scan session."""

    MAX_NOTICES = 20
    JOIN_TIMEOUT = 3.0

    def __init__(self, backend: Optional[DecodeBackend] = None,
                 workflow: Optional[ScanWorkflowService] = None,
                 preferences: Optional[PreferenceService] = None,
                 duplicate_window: Optional[float] = None):
        self.backend = backend or get_decode_backend()
        self.workflow = workflow or ScanWorkflowService()
        self.preferences = preferences or PreferenceService()
        self.session = ScanSession(self._submit, self.notify, duplicate_window)
        self.notices: Deque[Notice] = deque(maxlen=self.MAX_NOTICES)
        self.device: Optional[str] = None
        self.last_result: Optional[ScanSubmitResponse] = None
        self._thread: Optional[threading.Thread] = None
        self._claim: Optional[str] = None
        self._capture_generation = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------
    def notify(self, level: NoticeLevel, message: str):
        self.notices.append(Notice(level=level, message=message, at=datetime.now(timezone.utc)))
        if level == "error":
            logger.error("[scan] %s", message)
        elif level == "warning":
            logger.warning("[scan] %s", message)
        else:
            logger.info("[scan] %s", message)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------
    def list_devices(self) -> List[DeviceInfo]:
        try:
            return self.backend.list_devices()
        except CaptureDeviceError as e:
            self.notify("error", f"Failed to get device list. Please check permissions. ({e})")
            raise

    def _default_device(self) -> str:
        if self.device:
            return self.device
        if config.SCANNER_DEVICE:
            return config.SCANNER_DEVICE
        devices = self.list_devices()
        if not devices:
            self.notify("error", "No capture device found")
            raise CaptureDeviceError("No capture device found")
        return devices[0].id

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self, device: Optional[str] = None, action: Optional[ScanAction] = None,
              actor: Optional[ActorMetadata] = None, frames: bool = False) -> CaptureStateResponse:
        """
        Start a new capture. With frames=True no local device is opened and
        decoded text arrives through feed_frame().
        """
        if actor is None and self.session.actor is None:
            actor = self.preferences.prefill()
        self.session.set_options(action, actor)

        with self._lock:
            self._release_capture()
            self.session.stop()
            generation = self.session.start()
            if not frames:
                self._start_capture(generation, device)
        return self.state()

    def stop(self) -> CaptureStateResponse:
        with self._lock:
            self.session.stop()
            self._release_capture()
        return self.state()

    def reset(self) -> CaptureStateResponse:
        with self._lock:
            self.session.reset()
            self._release_capture()
        return self.state()

    def rescan_identity(self, frames: bool = False) -> CaptureStateResponse:
        with self._lock:
            generation = self.session.rescan_identity()
            if not frames and not self._capturing_generation(generation):
                self._release_capture()
                self._start_capture(generation)
        return self.state()

    def rescan_item(self, frames: bool = False) -> CaptureStateResponse:
        with self._lock:
            generation = self.session.rescan_item()
            if not frames and not self._capturing_generation(generation):
                self._release_capture()
                self._start_capture(generation)
        return self.state()

    def set_options(self, action: Optional[ScanAction] = None,
                    actor: Optional[ActorMetadata] = None) -> CaptureStateResponse:
        self.session.set_options(action, actor)
        return self.state()

    def shutdown(self):
        self.stop()

    # ------------------------------------------------------------------
    # Capture loop
    # ------------------------------------------------------------------
    def _capturing_generation(self, generation: int) -> bool:
        return (
            self._thread is not None and self._thread.is_alive()
            and self._capture_generation == generation
        )

    def _start_capture(self, generation: int, device: Optional[str] = None):
        try:
            target = device or self._default_device()
        except CaptureDeviceError:
            self.session.abort(generation)
            raise
        self._open_capture(target, generation)

    def _open_capture(self, device: str, generation: int):
        claim = f"{self.backend.name}:{device}"
        try:
            claim_device(claim)
        except DeviceBusyError as e:
            self.session.abort(generation)
            self.notify("error", str(e))
            raise

        try:
            stream = self.backend.start_capture(device)
        except CaptureDeviceError as e:
            release_device(claim)
            self.session.abort(generation)
            self.notify("error", str(e))
            raise

        self._claim = claim
        self._capture_generation = generation
        self.device = device
        self._thread = threading.Thread(
            target=self._run_loop, args=(stream, claim, generation), daemon=True,
            name=f"scan-{claim}",
        )
        self._thread.start()
        logger.debug("[scan] capture %s started on %s", generation, claim)

    def _run_loop(self, stream: Iterator[str], claim: str, generation: int):
        try:
            for text in stream:
                if self.session.generation != generation:
                    break
                self.session.feed(text, generation)
                if not self.session.scanning:
                    break
        except CaptureDeviceError as e:
            if self.session.abort(generation):
                self.notify("error", str(e))
        except Exception as e:
            logger.exception("[scan] capture loop failed")
            if self.session.abort(generation):
                self.notify("error", f"Scanning stopped: {e}")
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
            release_device(claim)
            logger.debug("[scan] capture %s ended on %s", generation, claim)

    def _release_capture(self):
        """Signal the backend, wait for the loop to hand the device back."""
        thread = self._thread
        if thread is None:
            return
        self.backend.stop()
        if thread is not threading.current_thread():
            thread.join(self.JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning("[scan] capture thread did not stop within %.1fs", self.JOIN_TIMEOUT)
        self._thread = None
        self._claim = None

    # ------------------------------------------------------------------
    # Still frames
    # ------------------------------------------------------------------
    def feed_frame(self, data: bytes) -> FrameDecodeResponse:
        """Decode one still image and push the result into the session."""
        text = self.backend.decode_image(data)
        accepted = self.session.feed(text) if text else False
        return FrameDecodeResponse(decoded=text, accepted=accepted, state=self.session.state)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def _submit(self, identity_token: str, key_barcode: str, action: ScanAction,
                actor: Optional[ActorMetadata]):
        try:
            result = self.workflow.submit(identity_token, key_barcode, action, actor)
        except KeyCustodyError as e:
            # stay on the completed scan so the key can be rescanned
            self.notify("error", str(e))
            return
        except SQLAlchemyError as e:
            logger.error("[scan] store error: %s", e)
            self.notify("error", "Failed to update key. Please try again.")
            return

        self.last_result = result
        self.notify("success", result.message)
        self.session.reset(announce=False)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    def state(self) -> CaptureStateResponse:
        session = self.session
        return CaptureStateResponse(
            state=session.state,
            device=self.device,
            maskedIdentity=IdentityValidator.mask(session.identity_token) if session.identity_token else None,
            keyBarcode=session.key_barcode,
            action=session.action,
            actor=session.actor,
            notices=list(self.notices),
            lastResult=self.last_result,
        )


# ----------------------------------------------------------------------
# Global instance + entrypoint
# ----------------------------------------------------------------------
_station: Optional[ScanStation] = None
_station_lock = threading.Lock()


def get_scan_station() -> ScanStation:
    global _station
    with _station_lock:
        if _station is None:
            _station = ScanStation()
        return _station


def start_scan_worker():
    """Called from FastAPI startup when SCANNER_AUTOSTART is set."""
    if not config.SCANNER_AUTOSTART:
        logger.debug("[scan] SCANNER_AUTOSTART not set; station idle until started")
        return
    try:
        get_scan_station().start()
    except (CaptureDeviceError, ValueError) as e:
        logger.warning("[scan] autostart skipped: %s", e)


def stop_scan_worker():
    if _station is not None:
        _station.shutdown()
