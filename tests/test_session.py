"""
Tests for credential persistence, the session store and provider routing.
"""

import json
from unittest.mock import MagicMock

import pytest

from adgen.credentials import CredentialStore
from adgen.errors import InvalidStateError, UnsupportedModelError
from adgen.pipeline.models import Credentials, VideoModel
from adgen.pipeline.session import SessionStore
from adgen.provider_factory import ProviderFactory


class TestCredentialStore:
    def test_missing_file_loads_empty(self, tmp_path):
        store = CredentialStore(path=tmp_path / "none.json")
        assert store.load() == Credentials()

    def test_file_round_trip_under_fixed_key(self, tmp_path):
        path = tmp_path / "credentials.json"
        store = CredentialStore(path=path)

        store.save(Credentials(gemini="g", veo="v", kling="k"))

        record = json.loads(path.read_text())
        assert list(record) == ["AFF_GEN_KEYS"]
        assert record["AFF_GEN_KEYS"]["gemini"] == "g"
        assert CredentialStore(path=path).load() == Credentials(gemini="g", veo="v", kling="k")

    def test_redis_backend(self, tmp_path):
        redis_client = MagicMock()
        redis_client.get.return_value = None
        store = CredentialStore(path=tmp_path / "unused.json", redis_client=redis_client)

        assert store.load() == Credentials()
        store.save(Credentials(gemini="g"))

        key, payload = redis_client.set.call_args.args
        assert key == "AFF_GEN_KEYS"
        assert json.loads(payload)["gemini"] == "g"
        assert not (tmp_path / "unused.json").exists()

        redis_client.get.return_value = payload
        assert store.load().gemini == "g"

    def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_text("{not json")
        assert CredentialStore(path=path).load() == Credentials()

        path.write_text(json.dumps({"AFF_GEN_KEYS": ["g"]}))
        assert CredentialStore(path=path).load() == Credentials()

    def test_corrupt_redis_record_loads_empty(self, tmp_path):
        redis_client = MagicMock()
        redis_client.get.return_value = "{broken"
        store = CredentialStore(path=tmp_path / "unused.json", redis_client=redis_client)

        assert store.load() == Credentials()


class TestSessionStore:
    def test_loads_persisted_credentials(self, credential_store):
        credential_store.save(Credentials(gemini="saved"))
        assert SessionStore(credential_store).credentials.gemini == "saved"

    def test_update_persists(self, credential_store):
        session = SessionStore(credential_store)
        session.update_credentials(Credentials(gemini="new", veo="v"))

        assert credential_store.load() == Credentials(gemini="new", veo="v")
        assert session.configured() == {"gemini": True, "veo": True, "kling": False, "luma": False}

    def test_locked_refuses_update(self, session):
        snapshot = session.lock()
        with pytest.raises(InvalidStateError):
            session.update_credentials(Credentials(gemini="other"))
        assert session.credentials == snapshot

        session.unlock()
        session.update_credentials(Credentials(gemini="other"))
        assert session.credentials.gemini == "other"

    def test_failed_save_keeps_previous_credentials(self, session, credential_store):
        before = session.credentials
        credential_store.save = MagicMock(side_effect=OSError("disk full"))

        with pytest.raises(OSError):
            session.update_credentials(Credentials(gemini="other"))
        assert session.credentials == before

    def test_update_scene_without_storyboard(self, session):
        with pytest.raises(InvalidStateError):
            session.update_scene(0, "timestamp", "00:01")


class TestProviderFactory:
    def test_veo_fast(self):
        provider = ProviderFactory.get_provider(VideoModel.VEO_FAST, Credentials(gemini="g", veo="v"))
        assert provider.family == "veo"
        assert provider.api_model == "veo-3.1-fast-generate-preview"
        assert provider.api_key == "v"

    def test_veo_key_falls_back_to_gemini(self):
        provider = ProviderFactory.get_provider(VideoModel.VEO_HIGH, Credentials(gemini="g"))
        assert provider.api_key == "g"
        assert provider.api_model == "veo-3.1-generate-preview"

    @pytest.mark.parametrize("model", [VideoModel.KLING, VideoModel.LUMA, "veo-9"])
    def test_unsupported(self, model):
        creds = Credentials(gemini="g", veo="v", kling="k", luma="l")
        with pytest.raises(UnsupportedModelError):
            ProviderFactory.get_provider(model, creds)

    def test_no_key(self):
        with pytest.raises(UnsupportedModelError):
            ProviderFactory.get_provider(VideoModel.VEO_FAST, Credentials())
