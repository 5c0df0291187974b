"""
Response parser module.
Splits a raw vision-model reply into score, feedback text and optional
camera adjustments.
"""
import json
import logging
import re
from typing import Any, Dict, Optional
from pydantic import ValidationError
from shotcoach.schemas.analysis import AnalysisResponse, CameraAdjustments, FlashMode

logger = logging.getLogger(__name__)

SCORE_PATTERN = re.compile(r"Score:\s*(\d+)", re.IGNORECASE)
FEEDBACK_PATTERN = re.compile(r"Feedback:\s*([\s\S]*?)(?=CAMERA_ADJUST:|$)", re.IGNORECASE)
# Greedy so nested objects such as focusPoint are captured whole
CAMERA_PATTERN = re.compile(r"CAMERA_ADJUST:\s*(\{[\s\S]*\})", re.IGNORECASE)

# Keys as the model writes them -> CameraAdjustments fields
ADJUSTMENT_KEYS = {
    "zoom": "zoom",
    "focusPoint": "focus_point",
    "focus_point": "focus_point",
    "flash": "flash",
    "exposureCompensation": "exposure_compensation",
    "exposure_compensation": "exposure_compensation",
}
FLASH_VALUES = {mode.value for mode in FlashMode}


def parse_camera_adjustments(payload: Dict[str, Any]) -> CameraAdjustments:
    """Build adjustments from model JSON, skipping keys and flash modes we don't support."""
    fields: Dict[str, Any] = {}
    for key, value in payload.items():
        field = ADJUSTMENT_KEYS.get(key)
        if field is None or value is None:
            continue
        if field == "flash" and (not isinstance(value, str) or value not in FLASH_VALUES):
            logger.warning(f"Ignoring unsupported flash mode from model: {value}")
            continue
        fields[field] = value
    return CameraAdjustments(**fields)


def parse_ai_response(response: str) -> AnalysisResponse:
    """
    Parse a "Score: N / Feedback: ... / CAMERA_ADJUST: {...}" reply.

    Args:
        response: Raw text returned by the vision model

    Returns:
        AnalysisResponse. Score defaults to 0 when missing, feedback to the
        whole reply when unlabelled. Camera adjustments are None when the
        JSON block is malformed and neutral when the block is absent.
    """
    score_match = SCORE_PATTERN.search(response)
    score = int(score_match.group(1)) if score_match else 0

    feedback_match = FEEDBACK_PATTERN.search(response)
    feedback = feedback_match.group(1).strip() if feedback_match else response

    camera_adjustments: Optional[CameraAdjustments]
    camera_match = CAMERA_PATTERN.search(response)
    if camera_match:
        try:
            payload = json.loads(camera_match.group(1))
            if not isinstance(payload, dict):
                raise ValueError("CAMERA_ADJUST payload is not an object")
            camera_adjustments = parse_camera_adjustments(payload)
        except (json.JSONDecodeError, ValueError, ValidationError) as e:
            # Don't apply guessed adjustments when the model's JSON is broken
            logger.warning(f"Failed to parse camera adjustments: {e}")
            camera_adjustments = None
    else:
        logger.debug("No camera adjustments in response, using neutral defaults")
        camera_adjustments = CameraAdjustments.neutral()

    return AnalysisResponse(score=score, feedback=feedback, camera_adjustments=camera_adjustments)
