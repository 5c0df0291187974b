"""
Tests for the vision model client.
"""
import base64
import io
from unittest.mock import patch, MagicMock
import pytest
from PIL import Image
from shotcoach.schemas.analysis import AnalyzeOptions
from shotcoach.schemas.reference import ReferenceAnalysis
from shotcoach.services.openai_service import (
    analyze_image,
    analyze_reference_image,
    build_analysis_prompt,
    prepare_image,
)


def make_png(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(120, 80, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def api_key():
    with patch("shotcoach.core.config.settings.openai_api_key", "test-key"):
        yield


def test_prompt_includes_context():
    options = AnalyzeOptions(
        user_skill_level="Beginner",
        preferred_style="Street",
        time_of_day="golden hour",
        environment="outdoor",
    )
    prompt = build_analysis_prompt(options)

    assert "Skill Level: Beginner" in prompt
    assert "Preferred Style: Street" in prompt
    assert "Time of Day: golden hour" in prompt
    assert "Environment: outdoor" in prompt
    assert "Score: <0-100>" in prompt
    assert "CAMERA_ADJUST" not in prompt
    assert "Reference Photo" not in prompt


def test_prompt_with_camera_control_and_reference():
    reference = ReferenceAnalysis(picture_type="Portrait", style="Cinematic", lighting="backlit, low angle")
    options = AnalyzeOptions(ai_control_enabled=True, reference_analysis=reference)
    prompt = build_analysis_prompt(options)

    assert "CAMERA_ADJUST:" in prompt
    assert "## Reference Photo:" in prompt
    assert "- Picture Type: Portrait" in prompt
    assert "- Lighting: backlit, low angle" in prompt
    assert "- Lens: Standard lens" in prompt


def test_prompt_notes_pending_reference_without_analysis():
    prompt = build_analysis_prompt(AnalyzeOptions(has_reference_photo=True))

    assert "## Reference Photo:" in prompt
    assert "Picture Type" not in prompt


def test_prepare_image_downsizes_wide_frames():
    encoded = prepare_image(make_png(960, 720))

    with Image.open(io.BytesIO(base64.b64decode(encoded))) as img:
        assert img.format == "JPEG"
        assert img.size == (480, 360)


def test_prepare_image_keeps_small_frames():
    encoded = prepare_image(make_png(320, 240))

    with Image.open(io.BytesIO(base64.b64decode(encoded))) as img:
        assert img.size == (320, 240)


def test_analyze_image_without_api_key():
    """Test analysis is skipped when no key is configured."""
    with patch("shotcoach.services.openai_service.OpenAI") as mock_openai:
        assert analyze_image(make_png(100, 100)) is None
        mock_openai.assert_not_called()


def test_analyze_image_returns_model_text(api_key):
    mock_client = MagicMock()
    mock_client.chat.completions.create.return_value.choices = [
        MagicMock(message=MagicMock(content="Score: 81\nFeedback: Step left."))
    ]

    with patch("shotcoach.services.openai_service.OpenAI", return_value=mock_client):
        result = analyze_image(make_png(640, 480), AnalyzeOptions(ai_control_enabled=True))

    assert result == "Score: 81\nFeedback: Step left."
    kwargs = mock_client.chat.completions.create.call_args.kwargs
    user_content = kwargs["messages"][1]["content"]
    assert "CAMERA_ADJUST" in user_content[0]["text"]
    assert user_content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_analyze_image_handles_api_error(api_key):
    mock_client = MagicMock()
    mock_client.chat.completions.create.side_effect = RuntimeError("rate limited")

    with patch("shotcoach.services.openai_service.OpenAI", return_value=mock_client):
        assert analyze_image(make_png(100, 100)) is None


def test_analyze_image_handles_unreadable_image(api_key):
    with patch("shotcoach.services.openai_service.OpenAI") as mock_openai:
        assert analyze_image(b"not an image") is None
        mock_openai.assert_not_called()


def test_analyze_reference_image_without_api_key():
    with patch("shotcoach.services.openai_service.OpenAI") as mock_openai:
        assert analyze_reference_image(make_png(100, 100)) is None
        mock_openai.assert_not_called()


def test_analyze_reference_image_requests_json(api_key):
    """Test the reference breakdown is requested as JSON without the coaching persona."""
    mock_client = MagicMock()
    mock_client.chat.completions.create.return_value.choices = [
        MagicMock(message=MagicMock(content='{"pictureType": "Street"}'))
    ]

    with patch("shotcoach.services.openai_service.OpenAI", return_value=mock_client):
        result = analyze_reference_image(make_png(800, 600))

    assert result == '{"pictureType": "Street"}'
    kwargs = mock_client.chat.completions.create.call_args.kwargs
    assert kwargs["max_tokens"] == 250
    assert kwargs["temperature"] == 0.3
    assert len(kwargs["messages"]) == 1
    assert "Return JSON only" in kwargs["messages"][0]["content"][0]["text"]


def test_analyze_reference_image_handles_api_error(api_key):
    mock_client = MagicMock()
    mock_client.chat.completions.create.side_effect = RuntimeError("timeout")

    with patch("shotcoach.services.openai_service.OpenAI", return_value=mock_client):
        assert analyze_reference_image(make_png(100, 100)) is None
