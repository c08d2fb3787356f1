# =======================================================================================
# keycustody/scanner/session.py - Two-Step Scan Capture
# =======================================================================================
import logging
import threading
import time
from typing import Callable, Optional
from ..config import config
from ..models.enums import CaptureState, NoticeLevel, ScanAction
from ..models.schemas import ActorMetadata
from ..utils.validators import IdentityValidator

logger = logging.getLogger(__name__)

CompleteCallback = Callable[[str, str, ScanAction, Optional[ActorMetadata]], None]
NoticeCallback = Callable[[NoticeLevel, str], None]

SCANNING_STATES = (CaptureState.AWAITING_IDENTITY, CaptureState.AWAITING_KEY_ITEM)


class ScanSession:
    """
    idle -> awaiting-identity -> awaiting-key-item -> complete

    Decoded text is pushed in with feed(). Every start/stop/reset bumps
    `generation`; text fed with an older generation is dropped, which is how
    late results from a stopped decode loop are discarded.
    """

    def __init__(self, on_complete: CompleteCallback, notify: Optional[NoticeCallback] = None,
                 duplicate_window: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.on_complete = on_complete
        self.notify = notify or (lambda level, message: None)
        self.duplicate_window = (
            config.SCAN_DUPLICATE_WINDOW if duplicate_window is None else duplicate_window
        )
        self.clock = clock
        self._lock = threading.RLock()

        self.state = CaptureState.IDLE
        self.generation = 0
        self.identity_token: Optional[str] = None
        self.key_barcode: Optional[str] = None
        self.action: ScanAction = "sign-in"
        self.actor: Optional[ActorMetadata] = None
        self._last_text: Optional[str] = None
        self._last_seen = 0.0

    @property
    def scanning(self) -> bool:
        return self.state in SCANNING_STATES

    # ---------- options ----------

    def set_options(self, action: Optional[ScanAction] = None, actor: Optional[ActorMetadata] = None):
        with self._lock:
            if action is not None:
                self.action = action
            if actor is not None:
                self.actor = actor

    # ---------- transitions ----------

    def start(self) -> int:
        """Begin a new capture from the identity step."""
        with self._lock:
            self._clear()
            self.state = CaptureState.AWAITING_IDENTITY
            self.generation += 1
            return self.generation

    def stop(self):
        """Halt an in-progress capture. A completed scan is left as is."""
        with self._lock:
            if self.scanning:
                self._clear()
                self.state = CaptureState.IDLE
                self.generation += 1

    def abort(self, generation: int) -> bool:
        """Return to idle after a device failure, unless a newer capture already took over."""
        with self._lock:
            if generation != self.generation or not self.scanning:
                return False
            self._clear()
            self.state = CaptureState.IDLE
            self.generation += 1
            return True

    def reset(self, announce: bool = True):
        with self._lock:
            self._clear()
            self.state = CaptureState.IDLE
            self.generation += 1
        if announce:
            self.notify("info", "Scan has been reset.")

    def rescan_identity(self) -> int:
        with self._lock:
            was_scanning = self.scanning
            self.identity_token = None
            self.key_barcode = None
            self._last_text = None
            self.state = CaptureState.AWAITING_IDENTITY
            if not was_scanning:
                self.generation += 1
            generation = self.generation
        self.notify("info", "Please scan the identity barcode again.")
        return generation

    def rescan_item(self) -> int:
        """Scan the key again while keeping the accepted identity."""
        with self._lock:
            if self.identity_token is None:
                raise ValueError("No identity scanned yet")
            was_scanning = self.scanning
            self.key_barcode = None
            self._last_text = None
            self.state = CaptureState.AWAITING_KEY_ITEM
            if not was_scanning:
                self.generation += 1
            return self.generation

    # ---------- decoded input ----------

    def feed(self, text: str, generation: Optional[int] = None) -> bool:
        """Handle one decoded text. Returns True when it advanced the capture."""
        with self._lock:
            if generation is not None and generation != self.generation:
                logger.debug("Dropping stale decode from capture %s", generation)
                return False
            if not self.scanning:
                return False

            text = (text or "").strip()
            if not text:
                return False

            now = self.clock()
            if text == self._last_text and now - self._last_seen < self.duplicate_window:
                return False
            self._last_text = text
            self._last_seen = now

            if self.state == CaptureState.AWAITING_IDENTITY:
                if not IdentityValidator.is_valid_token(text):
                    self.notify("warning", "Not a valid identity token. Please try again.")
                    return False
                self.identity_token = text
                self.state = CaptureState.AWAITING_KEY_ITEM
                self.notify("success", "Identity scanned. Now scan the key barcode.")
                return True

            self.key_barcode = text
            self.state = CaptureState.COMPLETE
            payload = (self.identity_token, self.key_barcode, self.action, self.actor)

        self.notify("success", "Key barcode scanned successfully!")
        self.on_complete(*payload)
        return True

    def _clear(self):
        self.identity_token = None
        self.key_barcode = None
        self._last_text = None
        self._last_seen = 0.0
