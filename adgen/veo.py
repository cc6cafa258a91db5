"""
Veo 3.1 video generation via the Gemini API long-running operations.

  submit_render → predictLongRunning, returns a JobHandle
  poll          → GET the operation, returns an updated JobHandle
  fetch_asset   → authenticated download of the finished video

Completion is only discovered by polling; there is no callback.
"""

import base64
import logging
from typing import Optional

import httpx

from .config import ASSET_TIMEOUT, GEMINI_API_BASE, VIDEO_TIMEOUT
from .errors import CredentialMissingError, FetchError, TransportError
from .pipeline.models import JobHandle

logger = logging.getLogger(__name__)


def _client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


def _headers(api_key: str) -> dict:
    if not api_key:
        raise CredentialMissingError("Veo API key not configured")
    return {"x-goog-api-key": api_key}


def _extract_video_uri(operation: dict) -> Optional[str]:
    response = operation.get("response") or {}
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
    if not samples:
        # Some API versions return the SDK shape directly
        samples = response.get("generatedVideos") or []
    if samples and isinstance(samples[0], dict):
        return (samples[0].get("video") or {}).get("uri")
    return None


def _error_message(error) -> Optional[str]:
    if not error:
        return None
    if isinstance(error, dict):
        return error.get("message") or str(error)
    return str(error)


def _handle_from_operation(operation: dict, model: str) -> JobHandle:
    error = operation.get("error")
    return JobHandle(
        name=operation["name"],
        model=model,
        done=bool(operation.get("done", False)),
        video_uri=_extract_video_uri(operation),
        error=_error_message(error),
    )


async def submit_render(
    api_key: str,
    model: str,
    prompt: str,
    image_bytes: Optional[bytes] = None,
    image_mime_type: str = "image/png",
    aspect_ratio: str = "9:16",
    resolution: str = "720p",
) -> JobHandle:
    """
    Submit a single-video generation job.

    Args:
        api_key:         Veo (or Gemini) API key.
        model:           Veo API model name, e.g. "veo-3.1-fast-generate-preview".
        prompt:          Full render prompt.
        image_bytes:     Optional reference image to start from.
        image_mime_type: Mime type of image_bytes.
        aspect_ratio:    "9:16", "16:9" or "1:1".
        resolution:      "720p" or "1080p".

    Returns:
        JobHandle for the submitted operation.
    """
    headers = _headers(api_key)

    instance: dict = {"prompt": prompt}
    if image_bytes:
        instance["image"] = {
            "bytesBase64Encoded": base64.b64encode(image_bytes).decode("utf-8"),
            "mimeType": image_mime_type,
        }

    payload = {
        "instances": [instance],
        "parameters": {
            "sampleCount": 1,
            "aspectRatio": aspect_ratio,
            "resolution": resolution,
        },
    }

    logger.info(
        f"Veo submit: model={model}, aspect={aspect_ratio}, res={resolution}, "
        f"image={'yes' if image_bytes else 'no'}, prompt={prompt[:60]}..."
    )

    try:
        async with _client(VIDEO_TIMEOUT) as client:
            resp = await client.post(
                f"{GEMINI_API_BASE}/models/{model}:predictLongRunning",
                headers=headers,
                json=payload,
            )
    except httpx.HTTPError as e:
        raise TransportError(f"Veo submit failed: {e}") from e

    if resp.status_code != 200:
        raise TransportError(f"Veo API error {resp.status_code}: {resp.text[:500]}")

    try:
        operation = resp.json()
    except ValueError as e:
        raise TransportError(f"Veo submit returned invalid JSON: {resp.text[:200]}") from e
    if not operation.get("name"):
        raise TransportError(f"Veo submit returned no operation name: {operation}")

    handle = _handle_from_operation(operation, model)
    logger.info(f"Veo job submitted: {handle.name}")
    return handle


async def poll(api_key: str, handle: JobHandle) -> JobHandle:
    """Fetch the latest state of a submitted job."""
    headers = _headers(api_key)

    try:
        async with _client(VIDEO_TIMEOUT) as client:
            resp = await client.get(f"{GEMINI_API_BASE}/{handle.name}", headers=headers)
    except httpx.HTTPError as e:
        raise TransportError(f"Veo poll failed: {e}") from e

    if resp.status_code != 200:
        raise TransportError(f"Veo poll error {resp.status_code}: {resp.text[:500]}")

    try:
        operation = resp.json()
    except ValueError as e:
        raise TransportError(f"Veo poll returned invalid JSON: {resp.text[:200]}") from e
    operation.setdefault("name", handle.name)
    return _handle_from_operation(operation, handle.model)


async def fetch_asset(api_key: str, handle: JobHandle) -> bytes:
    """Download the finished video for a completed job."""
    if not handle.done or not handle.video_uri:
        raise FetchError(f"Job {handle.name} has no video to fetch")

    headers = _headers(api_key)

    try:
        async with _client(ASSET_TIMEOUT) as client:
            resp = await client.get(handle.video_uri, headers=headers)
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch video binary: {e}") from e

    if not resp.is_success:
        raise FetchError(f"Failed to fetch video binary: HTTP {resp.status_code}")

    logger.info(f"Fetched video for {handle.name}: {len(resp.content)} bytes")
    return resp.content
