from typing import NamedTuple

from .errors import UnsupportedModelError
from .pipeline.models import Credentials, VideoModel

# Map our model selection to Veo API model names
VEO_API_NAMES = {
    VideoModel.VEO_FAST.value: "veo-3.1-fast-generate-preview",
    VideoModel.VEO_HIGH.value: "veo-3.1-generate-preview",
}


class VideoProvider(NamedTuple):
    family: str
    api_model: str
    api_key: str


class ProviderFactory:
    @staticmethod
    def get_provider(model: str, credentials: Credentials) -> VideoProvider:
        """
        Resolve a video model selection to a provider and its credential.

        Only the Veo family has a render path. The Veo key falls back to
        the Gemini key.
        """
        model = getattr(model, "value", model)
        if model.startswith("veo"):
            api_model = VEO_API_NAMES.get(model)
            api_key = credentials.veo or credentials.gemini
            if api_model and api_key:
                return VideoProvider(family="veo", api_model=api_model, api_key=api_key)

        raise UnsupportedModelError(
            f"Model {model} is currently in high demand or key not configured."
        )

    @staticmethod
    def get_model_default() -> VideoModel:
        return VideoModel.VEO_FAST
