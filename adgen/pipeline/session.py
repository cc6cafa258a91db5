"""
Session state for a single user working on one production.

Only credentials are persisted; everything else lives for the session.
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..errors import InvalidStateError
from .models import (
    AspectRatio,
    Credentials,
    ProductDescriptor,
    ReasoningModel,
    Resolution,
    SceneField,
    Storyboard,
    VideoModel,
)

if TYPE_CHECKING:
    from ..credentials import CredentialStore

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, credential_store: "CredentialStore"):
        self._credential_store = credential_store
        self._credentials = credential_store.load()
        self._locked = False

        self.reasoning_model: ReasoningModel = ReasoningModel.GEMINI_3_PRO
        self.video_model: VideoModel = VideoModel.VEO_FAST
        self.aspect_ratio: AspectRatio = "9:16"
        self.resolution: Resolution = "720p"

        self.reference_image: Optional[str] = None
        self.product: Optional[ProductDescriptor] = None
        self.storyboard: Optional[Storyboard] = None

    # ── Credentials ──────────────────────────────────────────────────────────

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def update_credentials(self, credentials: Credentials) -> None:
        """Replace and persist the credentials record. Refused while a render is running."""
        if self._locked:
            raise InvalidStateError("Credentials cannot change while a production is rendering")
        self._credential_store.save(credentials)
        self._credentials = credentials

    def lock(self) -> Credentials:
        """Lock credentials for a render run and return the snapshot to use."""
        self._locked = True
        return self._credentials

    def unlock(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    # ── Creative state ───────────────────────────────────────────────────────

    def reset_creative(self) -> None:
        """Drop the product and storyboard before a fresh analysis."""
        self.product = None
        self.storyboard = None

    def update_scene(self, index: int, field: SceneField, value: str) -> Storyboard:
        if self.storyboard is None:
            raise InvalidStateError("No storyboard to edit")
        self.storyboard = self.storyboard.update_scene(index, field, value)
        logger.info(f"Scene {index + 1} {field} updated")
        return self.storyboard

    def configured(self) -> dict[str, bool]:
        creds = self._credentials
        return {
            "gemini": bool(creds.gemini),
            "veo": bool(creds.veo),
            "kling": bool(creds.kling),
            "luma": bool(creds.luma),
        }
