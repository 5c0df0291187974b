"""
Reference analysis module.
Turns the vision model's breakdown of a reference photo into a
ReferenceAnalysis, accepting either the requested JSON or loose
"field: value" text.
"""
import json
import logging
import re
from typing import Any, Dict, Optional
from shotcoach.schemas.reference import ReferenceAnalysis

logger = logging.getLogger(__name__)

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
NOT_SPECIFIED = "Not specified"

# Keys as the model writes them -> ReferenceAnalysis fields
FIELD_KEYS = {
    "pictureType": "picture_type",
    "style": "style",
    "subject": "subject",
    "composition": "composition",
    "lighting": "lighting",
    "lens": "lens",
    "colorTone": "color_tone",
    "summary": "summary",
}
REQUIRED_KEYS = ("pictureType", "style", "subject")

DEFAULT_REFERENCE_ANALYSIS = ReferenceAnalysis()


def _from_json(payload: Dict[str, Any]) -> Optional[ReferenceAnalysis]:
    if not all(payload.get(key) for key in REQUIRED_KEYS):
        return None
    fields = {
        field: str(payload[key]).strip()
        for key, field in FIELD_KEYS.items()
        if payload.get(key)
    }
    return ReferenceAnalysis(**fields)


def extract_field(text: str, field_name: str, fallback: str) -> str:
    """Pull "field: value" out of loose text, stopping at a newline, comma or brace."""
    match = re.search(rf"{field_name}[\"':\s]*([^\n,}}]+)", text, re.IGNORECASE)
    value = re.sub(r"[\"']", "", match.group(1)).strip() if match else ""
    return value if value and value != NOT_SPECIFIED else fallback


def parse_text_response(text: str) -> ReferenceAnalysis:
    defaults = DEFAULT_REFERENCE_ANALYSIS
    return ReferenceAnalysis(
        picture_type=extract_field(text, "pictureType", "") or extract_field(text, "type", defaults.picture_type),
        style=extract_field(text, "style", defaults.style),
        subject=extract_field(text, "subject", defaults.subject),
        composition=extract_field(text, "composition", defaults.composition),
        lighting=extract_field(text, "lighting", defaults.lighting),
        lens=extract_field(text, "lens", defaults.lens),
        color_tone=extract_field(text, "colorTone", "") or extract_field(text, "color", defaults.color_tone),
        summary=extract_field(text, "summary", defaults.summary),
    )


def parse_reference_analysis(response: str) -> ReferenceAnalysis:
    """
    Parse the model's reference photo breakdown.

    Args:
        response: Raw model reply, ideally a JSON object with pictureType,
            style, subject, composition, lighting, lens, colorTone, summary

    Returns:
        ReferenceAnalysis from the JSON when it names the picture type, style
        and subject; otherwise fields scraped from the text, with defaults
        for anything missing
    """
    clean_response = response.strip()

    json_match = JSON_OBJECT.search(clean_response)
    if json_match:
        try:
            payload = json.loads(json_match.group(0))
            if isinstance(payload, dict):
                analysis = _from_json(payload)
                if analysis is not None:
                    return analysis
        except json.JSONDecodeError as e:
            logger.warning(f"Reference analysis JSON parse failed: {e}")

    logger.info("Using text parsing fallback for reference analysis")
    return parse_text_response(clean_response)


def describe_reference(analysis: ReferenceAnalysis) -> str:
    """One-line summary of the reference shown alongside live feedback."""
    return f"Matching {analysis.style} {analysis.picture_type.lower()} of {analysis.subject}. {analysis.summary}"
