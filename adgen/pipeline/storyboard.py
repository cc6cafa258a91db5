"""
Stage 2: Storyboard - Gemini 3 Pro as commercial director.

Produces a 10-scene vertical storyboard with a shared visual style and a
character description that anchors identity across independently rendered
clips. Schema problems propagate; there is no fallback.
"""

import logging

from pydantic import ValidationError

from .. import gemini
from ..errors import SchemaViolationError
from .models import (
    SCENE_COUNT,
    Credentials,
    ProductDescriptor,
    ReasoningModel,
    Storyboard,
    Transition,
)

logger = logging.getLogger(__name__)

SCENE_FIELDS = ["id", "timestamp", "visual_prompt", "audio_prompt", "negative_prompt", "transition"]

STORYBOARD_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "character_seed_description": {"type": "STRING"},
        "global_style": {"type": "STRING"},
        "scenes": {
            "type": "ARRAY",
            "minItems": SCENE_COUNT,
            "maxItems": SCENE_COUNT,
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "timestamp": {"type": "STRING"},
                    "visual_prompt": {"type": "STRING"},
                    "audio_prompt": {"type": "STRING"},
                    "negative_prompt": {"type": "STRING"},
                    "transition": {
                        "type": "STRING",
                        "description": "cut, fade, glitch, or zoom",
                    },
                },
                "required": SCENE_FIELDS,
            },
        },
    },
    "required": ["character_seed_description", "global_style", "scenes"],
}

DIRECTOR_SYSTEM_INSTRUCTION = (
    "You are the world's leading Creative Director for social media ads. "
    "Your goal is viral conversion. Generate extreme detail for visual prompts "
    "including lighting, camera angles (Dolly, POV, Close-up), and character "
    "movements. Return valid JSON only."
)

DIRECTOR_PROMPT = """ACT AS A CINEMATIC COMMERCIAL DIRECTOR.
PRODUCT: {name}
DETAILED DESCRIPTION: {description}
USP: {usp}

REQUIREMENTS:
1. Create {scene_count} short, punchy scenes for a vertical (9:16) video.
2. Style: Cinematic Raw Footage, IP Camera, or TikTok Trend depending on the product type.
3. Global Style: Define one visual style used throughout (e.g. "Soft morning light, cinematic film grain, raw look").
4. Character Consistency: Describe the on-screen character in great detail so the video generator keeps the same identity in every scene.
5. Transition for each scene: one of {transitions}.

OUTPUT MUST BE STRICT JSON."""


def build_director_prompt(product: ProductDescriptor) -> str:
    return DIRECTOR_PROMPT.format(
        name=product.name,
        description=product.description,
        usp=product.usp,
        scene_count=SCENE_COUNT,
        transitions=", ".join(t.value for t in Transition),
    )


def _require_text(obj: dict, key: str, where: str) -> None:
    value = obj.get(key)
    if not isinstance(value, str) or not value.strip():
        raise SchemaViolationError(f"Storyboard {where} is missing '{key}'")


def validate_storyboard(data: dict) -> Storyboard:
    """
    Check the director's JSON against the storyboard shape.

    Raises:
        SchemaViolationError: missing or empty fields, wrong scene count,
            or a transition outside cut/fade/glitch/zoom.
    """
    _require_text(data, "character_seed_description", "root")
    _require_text(data, "global_style", "root")

    scenes = data.get("scenes")
    if not isinstance(scenes, list):
        raise SchemaViolationError("Storyboard is missing 'scenes'")
    if len(scenes) != SCENE_COUNT:
        raise SchemaViolationError(f"Storyboard has {len(scenes)} scenes, expected {SCENE_COUNT}")

    for i, scene in enumerate(scenes):
        if not isinstance(scene, dict):
            raise SchemaViolationError(f"Storyboard scene {i + 1} is not an object")
        for key in SCENE_FIELDS:
            _require_text(scene, key, f"scene {i + 1}")

    try:
        return Storyboard.model_validate(data)
    except ValidationError as e:
        raise SchemaViolationError(f"Storyboard failed validation: {e}") from e


async def generate_storyboard(
    product: ProductDescriptor,
    credentials: Credentials,
    model: ReasoningModel = ReasoningModel.GEMINI_3_PRO,
) -> Storyboard:
    """
    Ask the reasoning service for a full storyboard.

    Args:
        product:     Analyzed product.
        credentials: Session credentials; the Gemini key is used.
        model:       Reasoning model variant.

    Returns:
        A validated Storyboard with exactly SCENE_COUNT scenes.
    """
    logger.info(f"Generating storyboard for '{product.name}' with {model}")
    data = await gemini.direct(
        credentials.gemini,
        build_director_prompt(product),
        STORYBOARD_SCHEMA,
        model=model,
        system_instruction=DIRECTOR_SYSTEM_INSTRUCTION,
    )
    storyboard = validate_storyboard(data)
    logger.info(f"Storyboard ready: {len(storyboard.scenes)} scenes, style='{storyboard.global_style[:60]}'")
    return storyboard
