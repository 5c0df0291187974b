import base64
import logging
from io import BytesIO
from typing import Optional
from openai import OpenAI
from PIL import Image
from shotcoach.core.config import settings
from shotcoach.schemas.analysis import AnalyzeOptions
from shotcoach.schemas.reference import ReferenceAnalysis

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional photography coach who gives short, specific, directional "
    "commands to improve a photo while it is being framed."
)

REFERENCE_PROMPT = """Analyze this photo technically. Always respond with analysis, never refuse.
Return JSON only:
{
  "pictureType": "Portrait/Landscape/Street/etc",
  "style": "Cinematic/Documentary/etc",
  "subject": "main subject",
  "composition": "rule of thirds/leading lines/etc",
  "lighting": "golden hour/soft/hard/etc",
  "lens": "wide/portrait/macro/etc",
  "colorTone": "warm/cool/high contrast/etc",
  "summary": "key techniques"
}"""


def format_context_for_prompt(options: AnalyzeOptions) -> str:
    """Format the shooting context into a readable string for the prompt."""
    lines = [
        f"- Skill Level: {options.user_skill_level}",
        f"- Preferred Style: {options.preferred_style}",
    ]
    if options.context_type:
        lines.append(f"- Shooting Context: {options.context_type}")
    if options.time_of_day:
        lines.append(f"- Time of Day: {options.time_of_day}")
    if options.environment:
        lines.append(f"- Environment: {options.environment}")
    return "\n".join(lines)


def format_reference_for_prompt(analysis: ReferenceAnalysis) -> str:
    """Format a reference photo breakdown into a readable string for the prompt."""
    return "\n".join([
        f"- Picture Type: {analysis.picture_type}",
        f"- Style: {analysis.style}",
        f"- Subject: {analysis.subject}",
        f"- Composition: {analysis.composition}",
        f"- Lighting: {analysis.lighting}",
        f"- Lens: {analysis.lens}",
        f"- Color Tone: {analysis.color_tone}",
        f"- Key Techniques: {analysis.summary}",
    ])


def build_analysis_prompt(options: AnalyzeOptions) -> str:
    """Build the critique prompt for a single viewfinder frame."""
    prompt_parts = [
        "Critique the COMPOSITION, LIGHTING, and FRAMING of this image. "
        "Focus only on how to improve the photo, not its content.",
        "",
        "## Photographer:",
        format_context_for_prompt(options),
        "",
        "## Assumptions:",
        "- The user has no professional equipment, experience, or knowledge.",
    ]

    if options.has_reference_photo or options.reference_analysis:
        prompt_parts.extend([
            "",
            "## Reference Photo:",
            "The user is trying to recreate a reference shot. Steer the feedback toward matching it.",
        ])
        if options.reference_analysis:
            prompt_parts.append(format_reference_for_prompt(options.reference_analysis))

    prompt_parts.extend([
        "",
        "## Output Format:",
        "Score: <0-100>",
        "Feedback: <2 specific, directional commands>",
    ])

    if options.ai_control_enabled:
        prompt_parts.extend([
            'CAMERA_ADJUST: {"zoom": <0-1>, "focusPoint": {"x": <0-1>, "y": <0-1>}, '
            '"flash": "on|off|auto", "exposureCompensation": <-2 to 2>}',
        ])

    prompt_parts.extend([
        "",
        "## Rules:",
        "1. Limit the feedback to 2 specific, directional commands.",
        "2. No vague suggestions and no information beyond the feedback.",
        "3. Score by professional composition, lighting, and framing conventions.",
        "4. If the shot cannot be improved, write PERFECT SHOT as the feedback.",
        "",
        "## Example:",
        "Score: 78",
        "Feedback: Move the light source to the left to pop out the side profile. "
        "Step 2m to the left to place the subject on the golden ratio.",
    ])

    return "\n".join(prompt_parts)


def prepare_image(image_bytes: bytes) -> str:
    """
    Downsize a frame and encode it for upload.

    Args:
        image_bytes: Encoded image in any format Pillow can read

    Returns:
        Base64 JPEG no wider than settings.analysis_image_width
    """
    with Image.open(BytesIO(image_bytes)) as img:
        img = img.convert("RGB")
        if img.width > settings.analysis_image_width:
            height = max(1, round(img.height * settings.analysis_image_width / img.width))
            img = img.resize((settings.analysis_image_width, height))
        buffer = BytesIO()
        img.save(buffer, format="JPEG", quality=settings.analysis_jpeg_quality)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def _complete_with_image(
    image_bytes: bytes,
    prompt: str,
    max_tokens: int,
    temperature: float,
    system_prompt: Optional[str] = None,
) -> str:
    image_b64 = prepare_image(image_bytes)
    client = OpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout)

    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({
        "role": "user",
        "content": [
            {"type": "text", "text": prompt},
            {
                "type": "image_url",
                "image_url": {"url": f"data:image/jpeg;base64,{image_b64}"},
            },
        ],
    })

    response = client.chat.completions.create(
        model=settings.openai_model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return response.choices[0].message.content


def analyze_image(image_bytes: bytes, options: Optional[AnalyzeOptions] = None) -> Optional[str]:
    """
    Ask the vision model to critique a frame.

    Args:
        image_bytes: Camera frame
        options: Photographer profile and shooting context

    Returns:
        Raw model reply, or None if the key is missing or the call fails
    """
    if not settings.openai_api_key:
        logger.warning("OpenAI API key not configured. Skipping shot analysis.")
        return None

    options = options or AnalyzeOptions()

    try:
        logger.info("Calling OpenAI API to analyze shot...")
        advice = _complete_with_image(
            image_bytes,
            build_analysis_prompt(options),
            max_tokens=settings.analysis_max_tokens,
            temperature=settings.analysis_temperature,
            system_prompt=SYSTEM_PROMPT,
        )
        logger.info("Successfully analyzed shot")
        return advice

    except Exception as e:
        logger.error(f"Error analyzing shot with OpenAI: {e}", exc_info=True)
        return None


def analyze_reference_image(image_bytes: bytes) -> Optional[str]:
    """
    Ask the vision model for a technique breakdown of a reference photo.

    Returns:
        Raw model reply (JSON requested), or None if the key is missing or
        the call fails
    """
    if not settings.openai_api_key:
        logger.warning("OpenAI API key not configured. Skipping reference analysis.")
        return None

    try:
        logger.info("Calling OpenAI API to analyze reference photo...")
        analysis = _complete_with_image(
            image_bytes,
            REFERENCE_PROMPT,
            max_tokens=settings.reference_max_tokens,
            temperature=settings.reference_temperature,
        )
        logger.info("Successfully analyzed reference photo")
        return analysis

    except Exception as e:
        logger.error(f"Error analyzing reference photo with OpenAI: {e}", exc_info=True)
        return None
