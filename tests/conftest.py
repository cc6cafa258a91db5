"""
Pytest configuration and fixtures.
"""

import httpx
import pytest

from adgen import config
from adgen.credentials import CredentialStore
from adgen.pipeline.models import (
    Credentials,
    ProductDescriptor,
    RenderedClip,
    ScenePrompt,
    Storyboard,
)
from adgen.pipeline.session import SessionStore

_RealAsyncClient = httpx.AsyncClient


def use_transport(monkeypatch, module, handler):
    """Route a client module's HTTP calls through an httpx.MockTransport handler."""
    monkeypatch.setattr(
        module,
        "_client",
        lambda timeout: _RealAsyncClient(transport=httpx.MockTransport(handler)),
    )


def make_scene(index: int, **overrides) -> dict:
    scene = {
        "id": f"scene_{index + 1}",
        "timestamp": f"00:{index * 3:02d}",
        "visual_prompt": f"Close-up dolly shot {index + 1} of the widget",
        "audio_prompt": "Upbeat synth bed",
        "negative_prompt": "blurry, watermark",
        "transition": "cut",
    }
    scene.update(overrides)
    return scene


def make_storyboard_data(count: int = 10) -> dict:
    return {
        "character_seed_description": "Woman in her late 20s, short black bob, denim jacket",
        "global_style": "Soft morning light, cinematic film grain, raw look",
        "scenes": [make_scene(i) for i in range(count)],
    }


def make_clip(scene_id: str, tmp_path) -> RenderedClip:
    path = tmp_path / f"{scene_id}.mp4"
    path.write_bytes(b"video-" + scene_id.encode())
    return RenderedClip(scene_id=scene_id, uri=path.as_uri(), path=str(path), size_bytes=path.stat().st_size)


@pytest.fixture(autouse=True)
def clip_dir(tmp_path, monkeypatch):
    """Keep rendered clips inside the test's temp directory."""
    directory = tmp_path / "clips"
    monkeypatch.setattr(config, "CLIP_DIR", directory)
    return directory


@pytest.fixture
def credential_store(tmp_path):
    return CredentialStore(path=tmp_path / "credentials.json")


@pytest.fixture
def credentials():
    return Credentials(gemini="gemini-test-key", veo="veo-test-key")


@pytest.fixture
def session(credential_store, credentials):
    store = SessionStore(credential_store)
    store.update_credentials(credentials)
    return store


@pytest.fixture
def empty_session(credential_store):
    return SessionStore(credential_store)


@pytest.fixture
def product():
    return ProductDescriptor(
        name="Widget X",
        description="A pocket-sized smart widget",
        usp="Lasts 30 days on one charge",
        url="https://example.com/widget",
    )


@pytest.fixture
def storyboard():
    return Storyboard.model_validate(make_storyboard_data(10))


@pytest.fixture
def scene():
    return ScenePrompt(**make_scene(0))
