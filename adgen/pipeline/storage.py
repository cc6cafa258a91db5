"""
Local clip storage.

Fetched videos are written under CLIP_DIR and handed around as file URIs:
  {CLIP_DIR}/{scene_id}_{uuid}.mp4
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from .. import config
from .models import RenderedClip

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


def clip_path(scene_id: str, clip_dir: Optional[Path] = None) -> Path:
    """Unique path for a scene's clip."""
    base = Path(clip_dir or config.CLIP_DIR)
    safe_id = _UNSAFE.sub("_", scene_id).strip("_") or "scene"
    return base / f"{safe_id}_{uuid.uuid4().hex[:12]}.mp4"


async def save_clip(scene_id: str, data: bytes, clip_dir: Optional[Path] = None) -> RenderedClip:
    """Write clip bytes to disk and return a locally addressable handle."""
    path = clip_path(scene_id, clip_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)

    clip = RenderedClip(
        scene_id=scene_id,
        uri=path.resolve().as_uri(),
        path=str(path),
        size_bytes=len(data),
    )
    logger.info(f"Clip stored for scene {scene_id}: {clip.uri}")
    return clip
