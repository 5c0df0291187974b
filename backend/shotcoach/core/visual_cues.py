"""
Visual cue classifier module.
Maps the current priority instruction to symbolic overlay tags (movement
arrows, light-source markers, camera angle hints) for the viewfinder, and
picks the composition guide overlay from the whole instruction batch.
"""
import logging
import time
from typing import Callable, List, Optional, Sequence
from shotcoach.core.config import settings
from shotcoach.core.instruction_engine import get_priority_instruction
from shotcoach.schemas.instruction import Feedback
from shotcoach.schemas.visual_cue import CompositionOverlay, VisualTag

logger = logging.getLogger(__name__)

LIGHT_SUBJECTS = ("light", "sun")
LIGHT_ACTIONS = ("add", "place", "source", "position", "introduce")

# Checked in order, first match wins
MOVEMENT_RULES = [
    (("left",), VisualTag.MOVE_LEFT),
    (("right",), VisualTag.MOVE_RIGHT),
    (("up", "higher"), VisualTag.MOVE_UP),
    (("down", "lower"), VisualTag.MOVE_DOWN),
    (("closer", "forward"), VisualTag.MOVE_FORWARD),
    (("back", "further", "away"), VisualTag.MOVE_BACK),
]

# Checked in order against the whole batch, first match wins
COMPOSITION_RULES = [
    (("rule of thirds", "thirds", "grid"), CompositionOverlay.RULE_OF_THIRDS),
    (("center", "symmetry", "middle"), CompositionOverlay.CENTER),
    (("golden ratio", "phi"), CompositionOverlay.GOLDEN_RATIO),
    (("spiral", "fibonacci"), CompositionOverlay.GOLDEN_SPIRAL_RIGHT),
    (("diagonal", "triangle", "leading lines"), CompositionOverlay.GOLDEN_TRIANGLE),
]


def _contains_any(text: str, words: Sequence[str]) -> bool:
    return any(word in text for word in words)


def lighting_cue(text: str) -> Optional[VisualTag]:
    if not (_contains_any(text, LIGHT_SUBJECTS) and _contains_any(text, LIGHT_ACTIONS)):
        return None

    vertical = "mid"
    if _contains_any(text, ("top", "upper", "high")):
        vertical = "top"
    elif _contains_any(text, ("bottom", "lower", "low")):
        vertical = "bottom"

    horizontal = "center"
    if "left" in text:
        horizontal = "left"
    elif "right" in text:
        horizontal = "right"

    return VisualTag(f"light_{vertical}_{horizontal}")


def movement_cue(text: str) -> Optional[VisualTag]:
    for words, tag in MOVEMENT_RULES:
        if _contains_any(text, words):
            return tag
    if "rotate" in text:
        # "counterclockwise" contains "clockwise", so it lands here as rotate_cw
        return VisualTag.ROTATE_CW if "clockwise" in text else VisualTag.ROTATE_CCW
    return None


def angle_cue(text: str) -> Optional[VisualTag]:
    if not _contains_any(text, ("angle", "tilt")):
        return None
    # "up"/"down" are also movement keywords; both cues may fire together
    if _contains_any(text, ("high", "above", "down")):
        return VisualTag.ANGLE_HIGH
    if _contains_any(text, ("low", "below", "up")):
        return VisualTag.ANGLE_LOW
    return None


def classify(instruction_text: str) -> List[VisualTag]:
    """
    Classify instruction text into overlay tags.

    Args:
        instruction_text: Text of the instruction currently shown

    Returns:
        Zero to three tags, ordered lighting, movement, angle
    """
    text = instruction_text.lower()
    tags = []
    for cue in (lighting_cue, movement_cue, angle_cue):
        tag = cue(text)
        if tag is not None:
            tags.append(tag)
    return tags


def cues_for_feedback(feedback: Feedback) -> List[VisualTag]:
    """Classify the priority instruction of a feedback batch."""
    return classify(get_priority_instruction(feedback).text)


def select_composition_overlay(
    feedback: Feedback,
    current: Optional[CompositionOverlay] = None,
) -> Optional[CompositionOverlay]:
    """
    Pick the composition guide for automatic overlay mode.

    Args:
        feedback: Current feedback batch; all instruction texts are searched
        current: Overlay already on screen

    Returns:
        The first overlay whose keywords appear in the batch, or current
        when none do
    """
    text = " ".join(instruction.text.lower() for instruction in feedback.instructions)
    for words, overlay in COMPOSITION_RULES:
        if _contains_any(text, words):
            return overlay
    return current


class VisualCueState:
    """
    Active overlay tags with a fixed display lifetime.

    Tags shown via show() are reported by active() until ttl_seconds have
    passed, after which the overlay reads as empty. A new show() replaces the
    tags and restarts the clock.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.visual_cue_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._tags: List[VisualTag] = []
        self._shown_at: Optional[float] = None

    def show(self, tags: Sequence[VisualTag]) -> None:
        self._tags = list(tags)
        self._shown_at = self._clock()
        logger.debug(f"Showing visual cues {[t.value for t in self._tags]} for {self.ttl_seconds}s")

    def show_feedback(self, feedback: Feedback) -> List[VisualTag]:
        tags = cues_for_feedback(feedback)
        self.show(tags)
        return tags

    def active(self) -> List[VisualTag]:
        if self._shown_at is None:
            return []
        if self._clock() - self._shown_at >= self.ttl_seconds:
            self.clear()
            return []
        return list(self._tags)

    def clear(self) -> None:
        self._tags = []
        self._shown_at = None
