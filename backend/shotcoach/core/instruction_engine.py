"""
Instruction engine module.
Turns free-text coaching feedback from the vision model into a short,
prioritized batch of structured instructions.
"""
import hashlib
import logging
import re
import time
from typing import List, Optional, Tuple
from shotcoach.core.config import settings
from shotcoach.core.errors import InvalidStateError
from shotcoach.schemas.instruction import (
    Feedback,
    Instruction,
    InstructionCategory,
    InstructionPriority,
    VisualAid,
    VisualAidType,
)

logger = logging.getLogger(__name__)

PERFECT_SHOT_MARKER = "PERFECT SHOT"
PERFECT_SHOT_TEXT = "PERFECT SHOT! Take the picture now!"
DEFAULT_INSTRUCTION_TEXT = "Hold steady and compose your shot."

# Checked in order, first match wins
CATEGORY_RULES: List[Tuple[re.Pattern, InstructionCategory]] = [
    (re.compile(r"move|step|position|closer|further|left|right|up|down|angle"), InstructionCategory.POSITIONING),
    (re.compile(r"light|lighting|bright|dark|shadow|exposure|flash"), InstructionCategory.LIGHTING),
    (re.compile(r"frame|crop|rule of thirds|golden ratio|center|composition"), InstructionCategory.COMPOSITION),
    (re.compile(r"focus|zoom|aperture|shutter|iso|settings"), InstructionCategory.SETTINGS),
    (re.compile(r"wait|timing|moment|when|ready"), InstructionCategory.TIMING),
]

# Arrow direction by keyword, checked in order
ARROW_DIRECTIONS: List[Tuple[Tuple[str, ...], str]] = [
    (("left",), "left"),
    (("right",), "right"),
    (("up", "higher"), "up"),
    (("down", "lower"), "down"),
]

FEEDBACK_LABEL = re.compile(r"^Feedback:\s*", re.IGNORECASE)
SENTENCE_BOUNDARY = re.compile(r"[.!]\s+")
SCORE_LINE = re.compile(r"^Score:", re.IGNORECASE)
GRID_KEYWORDS = re.compile(r"rule of thirds|golden ratio")
TERMINAL_PUNCTUATION = re.compile(r"[.!?]$")

PRIORITY_ORDER = [InstructionPriority.HIGH, InstructionPriority.MEDIUM]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _instruction_id(step: int, text: str) -> str:
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:8]
    return f"inst_{step}_{digest}"


def is_perfect_shot(raw_feedback: str, score: int) -> bool:
    return score >= settings.perfect_shot_score or PERFECT_SHOT_MARKER in raw_feedback.upper()


def categorize(text: str) -> InstructionCategory:
    """Assign a category by the first matching keyword rule, defaulting to composition."""
    lower = text.lower()
    for pattern, category in CATEGORY_RULES:
        if pattern.search(lower):
            return category
    return InstructionCategory.COMPOSITION


def priority_for_step(step: int) -> InstructionPriority:
    if step == 1:
        return InstructionPriority.HIGH
    if step == 2:
        return InstructionPriority.MEDIUM
    return InstructionPriority.LOW


def format_instruction_text(text: str) -> str:
    formatted = text[:1].upper() + text[1:]
    if not TERMINAL_PUNCTUATION.search(formatted):
        formatted += "."
    return formatted


def generate_visual_aid(text: str, category: InstructionCategory) -> Optional[VisualAid]:
    """
    Pick an on-screen aid for an instruction.

    Args:
        text: Instruction text (any case)
        category: Category already assigned to the instruction

    Returns:
        An arrow aid for directional text, a thirds grid for composition
        text mentioning the rule of thirds or golden ratio, otherwise None
    """
    lower = text.lower()
    for keywords, direction in ARROW_DIRECTIONS:
        if any(keyword in lower for keyword in keywords):
            return VisualAid(type=VisualAidType.ARROW, data={"direction": direction})

    if category == InstructionCategory.COMPOSITION and GRID_KEYWORDS.search(lower):
        return VisualAid(type=VisualAidType.GRID, data={"type": "thirds"})

    return None


def extract_feedback_items(text: str) -> List[str]:
    """Split feedback into candidate sentences, dropping fragments and leaked score lines."""
    clean_text = FEEDBACK_LABEL.sub("", text, count=1)
    items = []
    for candidate in SENTENCE_BOUNDARY.split(clean_text):
        candidate = candidate.strip()
        if len(candidate) < settings.min_instruction_length:
            continue
        if SCORE_LINE.match(candidate):
            continue
        items.append(candidate)
    return items[:settings.max_instructions]


def build_instruction(text: str, step: int, total_steps: int) -> Instruction:
    category = categorize(text)
    formatted = format_instruction_text(text)
    return Instruction(
        id=_instruction_id(step, formatted),
        step=step,
        total_steps=total_steps,
        text=formatted,
        category=category,
        priority=priority_for_step(step),
        visual_aid=generate_visual_aid(text, category),
    )


def default_instructions() -> List[Instruction]:
    return [
        Instruction(
            id=_instruction_id(1, DEFAULT_INSTRUCTION_TEXT),
            step=1,
            total_steps=1,
            text=DEFAULT_INSTRUCTION_TEXT,
            category=InstructionCategory.COMPOSITION,
            priority=InstructionPriority.MEDIUM,
        )
    ]


def fallback_feedback(score: int = 0) -> Feedback:
    """Feedback to show when the vision model produced nothing usable."""
    return Feedback(
        score=score,
        instructions=default_instructions(),
        perfect_shot=False,
        timestamp=_now_ms(),
    )


def parse_instructions(raw_feedback: str, score: int) -> Feedback:
    """
    Parse raw model feedback into a structured, prioritized batch.

    Args:
        raw_feedback: Free text from the vision model, loosely
            "Feedback: sentence. sentence." shaped
        score: Shot quality score supplied by the caller (not clamped)

    Returns:
        Feedback with 1-3 instructions. Never raises on malformed text;
        the worst case is the single "hold steady" instruction.
    """
    if not isinstance(raw_feedback, str):
        logger.warning(f"Non-text feedback received ({type(raw_feedback).__name__}), using default instruction")
        raw_feedback = ""

    if is_perfect_shot(raw_feedback, score):
        return Feedback(
            score=score,
            instructions=[
                Instruction(
                    id=_instruction_id(1, PERFECT_SHOT_TEXT),
                    step=1,
                    total_steps=1,
                    text=PERFECT_SHOT_TEXT,
                    category=InstructionCategory.TIMING,
                    priority=InstructionPriority.HIGH,
                )
            ],
            perfect_shot=True,
            timestamp=_now_ms(),
        )

    items = extract_feedback_items(raw_feedback)
    instructions = [
        build_instruction(item, step, len(items))
        for step, item in enumerate(items, 1)
    ]
    if not instructions:
        logger.info("No usable feedback items found, falling back to default instruction")
        instructions = default_instructions()

    return Feedback(
        score=score,
        instructions=instructions,
        perfect_shot=False,
        timestamp=_now_ms(),
    )


def get_priority_instruction(feedback: Feedback) -> Instruction:
    """Return the first high priority instruction, else the first medium, else the first."""
    if not feedback.instructions:
        raise InvalidStateError("Feedback has no instructions to prioritize")

    for priority in PRIORITY_ORDER:
        for instruction in feedback.instructions:
            if instruction.priority == priority:
                return instruction
    return feedback.instructions[0]


def get_next_instruction(feedback: Feedback, current_step: int) -> Optional[Instruction]:
    if current_step < 0 or current_step >= len(feedback.instructions):
        return None
    return feedback.instructions[current_step]
