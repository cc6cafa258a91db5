"""
Stage 3: Scene Render - Veo 3.1.

One scene in, one clip out:
  - prompt:  global style + scene visual + character seed + product + quality hints
  - image:   the product reference, when it was uploaded as a data URL
  - polling: bounded, two-tier delay (short early, longer later)
"""

import asyncio
import base64
import binascii
import logging
from typing import Optional

from .. import config, veo
from ..errors import ProductionCancelledError, RenderTimeoutError, TransportError
from ..provider_factory import ProviderFactory
from .models import (
    AspectRatio,
    Credentials,
    ProductDescriptor,
    RenderedClip,
    Resolution,
    ScenePrompt,
    VideoModel,
)
from .storage import save_clip

logger = logging.getLogger(__name__)

# ── Config ───────────────────────────────────────────────────────────────────

MAX_POLL_ATTEMPTS = config.MAX_POLL_ATTEMPTS
POLL_FAST_ATTEMPTS = config.POLL_FAST_ATTEMPTS
POLL_FAST_DELAY = config.POLL_FAST_DELAY
POLL_SLOW_DELAY = config.POLL_SLOW_DELAY

DEFAULT_STYLE = "Cinematic raw footage"
QUALITY_MODIFIERS = "4k, hyper-realistic, consistent lighting, 24fps."


def build_render_prompt(
    scene: ScenePrompt,
    character_seed: str,
    product: ProductDescriptor,
    global_style: str = DEFAULT_STYLE,
) -> str:
    return (
        f"{global_style}. {scene.visual_prompt}. "
        f"Character: {character_seed}. Product: {product.name}. {QUALITY_MODIFIERS}"
    )


def extract_reference_image(product: ProductDescriptor) -> Optional[tuple[bytes, str]]:
    """
    Decode the product's reference image if it is an embedded data URL.

    Remote URLs and malformed data are ignored.
    """
    image_url = product.image_url or ""
    if not image_url.startswith("data:image"):
        return None

    header, _, b64data = image_url.partition(",")
    mime = header[len("data:"):].split(";")[0] or "image/png"
    try:
        return base64.b64decode(b64data, validate=True), mime
    except (binascii.Error, ValueError):
        logger.warning("Reference image is not valid base64, rendering without it")
        return None


def poll_delay(attempt: int) -> float:
    """Seconds to wait before poll number ``attempt`` (0-based)."""
    return POLL_FAST_DELAY if attempt < POLL_FAST_ATTEMPTS else POLL_SLOW_DELAY


async def _wait(seconds: float) -> None:
    await asyncio.sleep(seconds)


def _check_cancelled(cancel_event: Optional[asyncio.Event], scene: ScenePrompt) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ProductionCancelledError(f"Rendering of scene {scene.id} cancelled")


async def render_scene(
    scene: ScenePrompt,
    character_seed: str,
    product: ProductDescriptor,
    credentials: Credentials,
    model: VideoModel = VideoModel.VEO_FAST,
    global_style: str = DEFAULT_STYLE,
    aspect_ratio: AspectRatio = "9:16",
    resolution: Resolution = "720p",
    cancel_event: Optional[asyncio.Event] = None,
) -> RenderedClip:
    """
    Render one storyboard scene into a locally stored clip.

    Args:
        scene:          The scene to render, as edited by the user.
        character_seed: Character description shared by every scene.
        product:        Analyzed product (name and optional reference image).
        credentials:    Credential snapshot for this run.
        model:          Video model selection.
        global_style:   Storyboard-wide visual style.
        aspect_ratio:   Output aspect ratio.
        resolution:     Output resolution.
        cancel_event:   Set to abandon the scene before its next request.

    Raises:
        UnsupportedModelError: no render path or key for ``model``; raised before any request.
        RenderTimeoutError:    job still running after MAX_POLL_ATTEMPTS polls.
        FetchError:            finished video could not be downloaded.
        TransportError:        submit/poll failure or the job finished with an error.
    """
    provider = ProviderFactory.get_provider(model, credentials)

    prompt = build_render_prompt(scene, character_seed, product, global_style)
    reference = extract_reference_image(product)
    image_bytes, image_mime = reference if reference else (None, "image/png")

    _check_cancelled(cancel_event, scene)
    handle = await veo.submit_render(
        provider.api_key,
        provider.api_model,
        prompt,
        image_bytes=image_bytes,
        image_mime_type=image_mime,
        aspect_ratio=aspect_ratio,
        resolution=resolution,
    )

    attempts = 0
    while not handle.done and attempts < MAX_POLL_ATTEMPTS:
        _check_cancelled(cancel_event, scene)
        await _wait(poll_delay(attempts))
        _check_cancelled(cancel_event, scene)

        handle = await veo.poll(provider.api_key, handle)
        attempts += 1
        logger.info(f"Scene {scene.id} poll #{attempts}: done={handle.done}")

    if not handle.done:
        raise RenderTimeoutError(
            f"Video generation timed out for scene {scene.id} after {attempts} polls"
        )
    if handle.error:
        raise TransportError(f"Video generation failed for scene {scene.id}: {handle.error}")

    _check_cancelled(cancel_event, scene)
    video_bytes = await veo.fetch_asset(provider.api_key, handle)
    _check_cancelled(cancel_event, scene)
    return await save_clip(scene.id, video_bytes)
