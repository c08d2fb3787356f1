# =======================================================================================
# keycustody/services/preference_service.py - Remembered Actor Metadata
# =======================================================================================
import logging
from pathlib import Path
from typing import Optional
from pydantic import ValidationError
from ..config import config
from ..models.schemas import ActorMetadata, ActorPreference

logger = logging.getLogger(__name__)


class PreferenceService:
    """
    Keeps the kiosk operator's rank/name/contact on local disk so the next
    scan can be prefilled. Nothing is stored unless `remember` is set.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or config.PREFERENCES_PATH)

    def load(self) -> ActorPreference:
        if not self.path.exists():
            return ActorPreference()
        try:
            return ActorPreference.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable actor preferences at %s: %s", self.path, e)
            return ActorPreference()

    def save(self, preference: ActorPreference) -> ActorPreference:
        if not preference.remember:
            self.clear()
            return ActorPreference()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(preference.model_dump_json(), encoding="utf-8")
        logger.debug("Saved actor preferences to %s", self.path)
        return preference

    def clear(self):
        if self.path.exists():
            self.path.unlink()

    def prefill(self) -> Optional[ActorMetadata]:
        preference = self.load()
        return preference.actor if preference.remember else None
