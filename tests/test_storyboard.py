"""
Tests for the analyze and storyboard stages.
"""

from unittest.mock import AsyncMock, patch

import pytest

from adgen.errors import ParseError, SchemaViolationError, TransportError
from adgen.pipeline.analyze import analyze_source
from adgen.pipeline.models import ReasoningModel, Transition
from adgen.pipeline.storyboard import (
    DIRECTOR_SYSTEM_INSTRUCTION,
    STORYBOARD_SCHEMA,
    build_director_prompt,
    generate_storyboard,
    validate_storyboard,
)

from .conftest import make_scene, make_storyboard_data


class TestAnalyzeStage:
    @pytest.mark.asyncio
    async def test_merges_reference_image(self, credentials, product):
        with patch("adgen.pipeline.analyze.gemini.analyze", new=AsyncMock(return_value=product)) as mock_analyze:
            result = await analyze_source(
                "https://example.com/widget", credentials, reference_image="data:image/png;base64,AAAA"
            )

        assert result.name == "Widget X"
        assert result.image_url == "data:image/png;base64,AAAA"
        assert product.image_url is None
        mock_analyze.assert_awaited_once_with(
            "gemini-test-key", "https://example.com/widget", model=ReasoningModel.GEMINI_3_FLASH
        )

    @pytest.mark.asyncio
    async def test_client_failure_still_returns_descriptor(self, credentials):
        with patch("adgen.gemini.generate_text", new=AsyncMock(side_effect=TransportError("down"))):
            result = await analyze_source("example.com/widget", credentials)

        assert result.name == "Pro Product"
        assert result.url == "example.com/widget"


class TestStoryboardSchema:
    def test_scene_bounds(self):
        scenes = STORYBOARD_SCHEMA["properties"]["scenes"]
        assert scenes["minItems"] == 10
        assert scenes["maxItems"] == 10
        assert set(scenes["items"]["required"]) == {
            "id", "timestamp", "visual_prompt", "audio_prompt", "negative_prompt", "transition",
        }

    def test_prompt_mentions_product(self, product):
        prompt = build_director_prompt(product)
        assert "Widget X" in prompt
        assert "Lasts 30 days on one charge" in prompt
        assert "10" in prompt


class TestValidateStoryboard:
    def test_valid(self):
        storyboard = validate_storyboard(make_storyboard_data())
        assert len(storyboard.scenes) == 10

    def test_missing_global_style(self):
        data = make_storyboard_data()
        del data["global_style"]
        with pytest.raises(SchemaViolationError, match="global_style"):
            validate_storyboard(data)

    def test_wrong_scene_count(self):
        with pytest.raises(SchemaViolationError, match="9 scenes"):
            validate_storyboard(make_storyboard_data(9))

    def test_empty_scene_field(self):
        data = make_storyboard_data()
        data["scenes"][4] = make_scene(4, audio_prompt="  ")
        with pytest.raises(SchemaViolationError, match="scene 5"):
            validate_storyboard(data)

    def test_unknown_transition(self):
        data = make_storyboard_data()
        data["scenes"][0] = make_scene(0, transition="wipe")
        with pytest.raises(SchemaViolationError):
            validate_storyboard(data)

    def test_transition_normalised(self):
        data = make_storyboard_data()
        data["scenes"][0] = make_scene(0, transition=" Fade ")
        storyboard = validate_storyboard(data)
        assert storyboard.scenes[0].transition == Transition.FADE


class TestGenerateStoryboard:
    @pytest.mark.asyncio
    async def test_ten_complete_scenes(self, product, credentials):
        with patch(
            "adgen.pipeline.storyboard.gemini.direct",
            new=AsyncMock(return_value=make_storyboard_data()),
        ) as mock_direct:
            storyboard = await generate_storyboard(product, credentials, model=ReasoningModel.GEMINI_3_PRO)

        assert len(storyboard.scenes) == 10
        for scene in storyboard.scenes:
            for field in ("id", "timestamp", "visual_prompt", "audio_prompt", "negative_prompt"):
                assert getattr(scene, field)
            assert scene.transition in set(Transition)

        args, kwargs = mock_direct.call_args
        assert args[0] == "gemini-test-key"
        assert args[2] is STORYBOARD_SCHEMA
        assert kwargs["system_instruction"] == DIRECTOR_SYSTEM_INSTRUCTION
        assert kwargs["model"] == ReasoningModel.GEMINI_3_PRO

    @pytest.mark.asyncio
    async def test_parse_error_propagates(self, product, credentials):
        with patch("adgen.pipeline.storyboard.gemini.direct", new=AsyncMock(side_effect=ParseError("bad"))):
            with pytest.raises(ParseError):
                await generate_storyboard(product, credentials)

    @pytest.mark.asyncio
    async def test_schema_violation_propagates(self, product, credentials):
        with patch("adgen.pipeline.storyboard.gemini.direct", new=AsyncMock(return_value={"scenes": []})):
            with pytest.raises(SchemaViolationError):
                await generate_storyboard(product, credentials)
