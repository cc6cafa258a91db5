"""
Stage 4: Assemble - build the master output from the ordered clips.

Real concatenation/encoding belongs to a server-side transcoder; the default
assembler settles briefly and promotes the first clip to master. Any other
implementation plugs in behind the same ``assemble`` contract.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from .. import config
from ..errors import AssemblyError
from .models import MasterArtifact, RenderedClip

logger = logging.getLogger(__name__)


class Assembler(ABC):
    """Contract: ordered clips in, one MasterArtifact out."""

    @abstractmethod
    async def assemble(self, clips: list[RenderedClip]) -> MasterArtifact:
        ...


class FirstClipAssembler(Assembler):
    def __init__(self, settle_delay: float = config.ASSEMBLE_SETTLE_DELAY):
        self.settle_delay = settle_delay

    async def assemble(self, clips: list[RenderedClip]) -> MasterArtifact:
        if not clips:
            raise AssemblyError("No clips to assemble")

        logger.info(f"Auto-editing sequence initiated for {len(clips)} clips")
        await asyncio.sleep(self.settle_delay)

        first = clips[0]
        return MasterArtifact(uri=first.uri, path=first.path, clip_count=len(clips))
