"""
Pydantic models and enums for the production pipeline.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


SCENE_COUNT = 10


# ── Pipeline Status ──────────────────────────────────────────────────────────

class PipelineStatus(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    STORYBOARDING = "STORYBOARDING"
    RENDERING = "RENDERING"
    ASSEMBLING = "ASSEMBLING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


ACTIVE_STATUSES = {
    PipelineStatus.ANALYZING,
    PipelineStatus.STORYBOARDING,
    PipelineStatus.RENDERING,
    PipelineStatus.ASSEMBLING,
}


# ── Model Selection ──────────────────────────────────────────────────────────

class ReasoningModel(str, Enum):
    GEMINI_3_PRO = "gemini-3-pro"
    GEMINI_3_FLASH = "gemini-3-flash"


class VideoModel(str, Enum):
    VEO_FAST = "veo-3.1-fast"
    VEO_HIGH = "veo-3.1-high"
    KLING = "kling-v1.5"
    LUMA = "luma-dream-machine"


AspectRatio = Literal["9:16", "16:9", "1:1"]
Resolution = Literal["720p", "1080p"]


# ── Credentials ──────────────────────────────────────────────────────────────

class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    gemini: str = ""
    veo: str = ""
    kling: str = ""
    luma: Optional[str] = None


# ── Product ──────────────────────────────────────────────────────────────────

class ProductDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    usp: str
    url: str
    image_url: Optional[str] = None  # data URL of the user's reference image
    category: Optional[str] = None


# ── Storyboard ───────────────────────────────────────────────────────────────

class Transition(str, Enum):
    CUT = "cut"
    FADE = "fade"
    GLITCH = "glitch"
    ZOOM = "zoom"


EDITABLE_SCENE_FIELDS = (
    "timestamp",
    "visual_prompt",
    "audio_prompt",
    "negative_prompt",
    "transition",
)

SceneField = Literal["timestamp", "visual_prompt", "audio_prompt", "negative_prompt", "transition"]


class ScenePrompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: str
    visual_prompt: str
    audio_prompt: str
    negative_prompt: str
    transition: Transition = Transition.CUT

    @field_validator("transition", mode="before")
    @classmethod
    def _normalise_transition(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class Storyboard(BaseModel):
    model_config = ConfigDict(frozen=True)

    character_seed_description: str
    global_style: str
    scenes: tuple[ScenePrompt, ...]

    def update_scene(self, index: int, field: SceneField, value: str) -> "Storyboard":
        """
        Return a new storyboard with one field of one scene replaced.

        Raises:
            IndexError: index outside the scene list.
            ValueError: field is not editable, or an unknown transition.
        """
        if field not in EDITABLE_SCENE_FIELDS:
            raise ValueError(f"Scene field '{field}' is not editable")
        if not 0 <= index < len(self.scenes):
            raise IndexError(f"Scene index {index} out of range (0-{len(self.scenes) - 1})")

        new_value = Transition(value.strip().lower()) if field == "transition" else value

        scenes = list(self.scenes)
        scenes[index] = scenes[index].model_copy(update={field: new_value})
        return self.model_copy(update={"scenes": tuple(scenes)})


# ── Rendering ────────────────────────────────────────────────────────────────

class JobHandle(BaseModel):
    """Serializable handle of a long-running video generation job."""
    model_config = ConfigDict(frozen=True)

    name: str
    model: str
    done: bool = False
    video_uri: Optional[str] = None
    error: Optional[str] = None


class RenderedClip(BaseModel):
    model_config = ConfigDict(frozen=True)

    scene_id: str
    uri: str
    path: str
    size_bytes: int = 0


class MasterArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    path: str
    clip_count: int


# ── Orchestrator Snapshot ────────────────────────────────────────────────────

class ProductionSnapshot(BaseModel):
    status: PipelineStatus = PipelineStatus.IDLE
    message: str = ""
    ready: bool = False
    configuration_required: bool = False
    clips: list[RenderedClip] = Field(default_factory=list)
    total_scenes: int = 0
    master: Optional[MasterArtifact] = None
    error: Optional[str] = None


# ── API Request / Response Models ────────────────────────────────────────────

class StartRequest(BaseModel):
    url: str = Field(..., description="Product page URL")
    reference_image: Optional[str] = Field(None, description="data:image/...;base64,... reference")


class SceneUpdateRequest(BaseModel):
    field: SceneField
    value: str


class SettingsRequest(BaseModel):
    credentials: Optional[Credentials] = None
    reasoning_model: Optional[ReasoningModel] = None
    video_model: Optional[VideoModel] = None
    aspect_ratio: Optional[AspectRatio] = None
    resolution: Optional[Resolution] = None


class SettingsResponse(BaseModel):
    configured: dict[str, bool]
    reasoning_model: ReasoningModel
    video_model: VideoModel
    aspect_ratio: AspectRatio
    resolution: Resolution
