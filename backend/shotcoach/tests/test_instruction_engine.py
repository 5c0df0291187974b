"""
Tests for the instruction engine module.
"""
import pytest
from shotcoach.core.errors import InvalidStateError
from shotcoach.core.instruction_engine import (
    DEFAULT_INSTRUCTION_TEXT,
    PERFECT_SHOT_TEXT,
    categorize,
    extract_feedback_items,
    fallback_feedback,
    format_instruction_text,
    generate_visual_aid,
    get_next_instruction,
    get_priority_instruction,
    parse_instructions,
)
from shotcoach.schemas.instruction import (
    Feedback,
    Instruction,
    InstructionCategory,
    InstructionPriority,
    VisualAidType,
)

MULTI_ITEM_FEEDBACK = (
    "Feedback: move the camera left. Add a light from the side! "
    "Use the rule of thirds for balance. Wait for the moment."
)


def make_instruction(step: int, priority: InstructionPriority, total_steps: int = 2) -> Instruction:
    return Instruction(
        id=f"inst_{step}",
        step=step,
        total_steps=total_steps,
        text=f"Instruction {step}.",
        category=InstructionCategory.COMPOSITION,
        priority=priority,
    )


@pytest.mark.parametrize("score", [90, 95, 100, 250])
def test_high_score_is_perfect_shot(score):
    """Test any score at or above the threshold short-circuits parsing."""
    feedback = parse_instructions("Move left. Add light from the top.", score)

    assert feedback.perfect_shot is True
    assert feedback.score == score
    assert len(feedback.instructions) == 1
    instruction = feedback.instructions[0]
    assert instruction.text == PERFECT_SHOT_TEXT
    assert instruction.category == InstructionCategory.TIMING
    assert instruction.priority == InstructionPriority.HIGH
    assert instruction.step == 1
    assert instruction.total_steps == 1


@pytest.mark.parametrize("raw", ["PERFECT SHOT", "perfect shot!", "Feedback: Perfect Shot, nothing to change."])
def test_perfect_shot_marker_any_case(raw):
    """Test the marker triggers a perfect shot regardless of score."""
    feedback = parse_instructions(raw, 12)
    assert feedback.perfect_shot is True
    assert feedback.instructions[0].text == PERFECT_SHOT_TEXT


def test_score_below_threshold_is_not_perfect():
    feedback = parse_instructions("Move a little closer to the subject.", 89)
    assert feedback.perfect_shot is False


def test_parse_multiple_items():
    """Test labelled feedback is split, capped at three and prioritized by position."""
    feedback = parse_instructions(MULTI_ITEM_FEEDBACK, 60)

    assert feedback.perfect_shot is False
    assert [i.text for i in feedback.instructions] == [
        "Move the camera left.",
        "Add a light from the side.",
        "Use the rule of thirds for balance.",
    ]
    assert [i.category for i in feedback.instructions] == [
        InstructionCategory.POSITIONING,
        InstructionCategory.LIGHTING,
        InstructionCategory.COMPOSITION,
    ]
    assert [i.priority for i in feedback.instructions] == [
        InstructionPriority.HIGH,
        InstructionPriority.MEDIUM,
        InstructionPriority.LOW,
    ]
    assert [i.step for i in feedback.instructions] == [1, 2, 3]
    assert all(i.total_steps == 3 for i in feedback.instructions)

    arrow, no_aid, grid = (i.visual_aid for i in feedback.instructions)
    assert arrow.type == VisualAidType.ARROW
    assert arrow.data == {"direction": "left"}
    assert no_aid is None
    assert grid.type == VisualAidType.GRID
    assert grid.data == {"type": "thirds"}


@pytest.mark.parametrize("raw", [
    "Move closer.",
    "Feedback: Step to the right. Lower the camera a bit.",
    MULTI_ITEM_FEEDBACK,
    "One. Two. Three. Four. Five words here. Six sentences now. Seven is plenty.",
    "",
    "!!!",
])
def test_batch_invariants(raw):
    """Test every non-perfect batch has 1-3 contiguous steps sized to the batch."""
    feedback = parse_instructions(raw, 40)
    count = len(feedback.instructions)

    assert 1 <= count <= 3
    assert [i.step for i in feedback.instructions] == list(range(1, count + 1))
    assert all(i.total_steps == count for i in feedback.instructions)
    assert len({i.id for i in feedback.instructions}) == count


def test_priority_follows_step():
    feedback = parse_instructions("Step to the left. Turn on the flash. Crop the frame tighter.", 50)
    expected = {1: InstructionPriority.HIGH, 2: InstructionPriority.MEDIUM, 3: InstructionPriority.LOW}
    for instruction in feedback.instructions:
        assert instruction.priority == expected[instruction.step]


def test_positioning_takes_precedence_over_lighting():
    feedback = parse_instructions("Move closer and add more light.", 50)
    assert feedback.instructions[0].category == InstructionCategory.POSITIONING


def test_short_candidates_dropped():
    """Test fragments under six characters are discarded."""
    feedback = parse_instructions("Ok. Move left now, it will improve the shot dramatically.", 50)

    assert len(feedback.instructions) == 1
    assert feedback.instructions[0].text == "Move left now, it will improve the shot dramatically."
    assert feedback.instructions[0].priority == InstructionPriority.HIGH


def test_leaked_score_line_dropped():
    feedback = parse_instructions("Score: 72. Move a little closer to the subject.", 72)

    assert len(feedback.instructions) == 1
    assert feedback.instructions[0].text == "Move a little closer to the subject."


def test_empty_input_falls_back():
    """Test empty feedback yields the single hold-steady instruction."""
    feedback = parse_instructions("", 40)

    assert feedback.perfect_shot is False
    assert len(feedback.instructions) == 1
    instruction = feedback.instructions[0]
    assert instruction.text == DEFAULT_INSTRUCTION_TEXT
    assert instruction.category == InstructionCategory.COMPOSITION
    assert instruction.priority == InstructionPriority.MEDIUM
    assert instruction.step == 1
    assert instruction.total_steps == 1


def test_non_text_input_falls_back():
    feedback = parse_instructions(None, 40)
    assert feedback.instructions[0].text == DEFAULT_INSTRUCTION_TEXT


def test_parse_is_deterministic_apart_from_timestamp():
    """Test identical inputs give identical instructions."""
    first = parse_instructions(MULTI_ITEM_FEEDBACK, 55)
    second = parse_instructions(MULTI_ITEM_FEEDBACK, 55)

    assert first.instructions == second.instructions
    assert first.perfect_shot == second.perfect_shot
    assert first.score == second.score


def test_extract_feedback_items_keeps_order():
    items = extract_feedback_items("Feedback: first item here. second item here! third item here. fourth item here.")
    assert items == ["first item here", "second item here", "third item here"]


def test_extract_feedback_items_label_case_insensitive():
    assert extract_feedback_items("FEEDBACK: Tilt the phone down") == ["Tilt the phone down"]


@pytest.mark.parametrize("text,expected", [
    ("Move closer and add more light", InstructionCategory.POSITIONING),
    ("Increase the exposure slightly", InstructionCategory.LIGHTING),
    ("Crop out the pole on the edge", InstructionCategory.COMPOSITION),
    ("Adjust focus on the eyes", InstructionCategory.SETTINGS),
    ("Wait for the clouds to pass", InstructionCategory.TIMING),
    ("Nice colors overall", InstructionCategory.COMPOSITION),
])
def test_categorize(text, expected):
    assert categorize(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("could you step back", "Could you step back."),
    ("could you step back?", "Could you step back?"),
    ("Great framing!", "Great framing!"),
    ("already done.", "Already done."),
])
def test_format_instruction_text(text, expected):
    assert format_instruction_text(text) == expected


@pytest.mark.parametrize("text,direction", [
    ("Shift left and right", "left"),
    ("Hold the phone higher", "up"),
    ("Crouch lower", "down"),
])
def test_visual_aid_arrow_direction(text, direction):
    aid = generate_visual_aid(text, InstructionCategory.POSITIONING)
    assert aid.type == VisualAidType.ARROW
    assert aid.data["direction"] == direction


def test_visual_aid_grid_only_for_composition():
    assert generate_visual_aid("Follow the golden ratio", InstructionCategory.SETTINGS) is None
    grid = generate_visual_aid("Follow the golden ratio", InstructionCategory.COMPOSITION)
    assert grid.type == VisualAidType.GRID


def test_get_priority_instruction_prefers_high():
    feedback = parse_instructions(MULTI_ITEM_FEEDBACK, 60)
    assert get_priority_instruction(feedback).step == 1


def test_get_priority_instruction_without_high():
    """Test medium wins when no high priority instruction exists."""
    feedback = Feedback(
        score=50,
        instructions=[
            make_instruction(1, InstructionPriority.LOW),
            make_instruction(2, InstructionPriority.MEDIUM),
        ],
        perfect_shot=False,
        timestamp=0,
    )
    assert get_priority_instruction(feedback).priority == InstructionPriority.MEDIUM


def test_get_priority_instruction_falls_back_to_first():
    feedback = Feedback(
        score=50,
        instructions=[
            make_instruction(1, InstructionPriority.LOW),
            make_instruction(2, InstructionPriority.LOW),
        ],
        perfect_shot=False,
        timestamp=0,
    )
    assert get_priority_instruction(feedback).step == 1


def test_get_priority_instruction_empty_raises():
    feedback = Feedback(score=50, instructions=[], perfect_shot=False, timestamp=0)
    with pytest.raises(InvalidStateError):
        get_priority_instruction(feedback)


def test_get_next_instruction():
    feedback = parse_instructions(MULTI_ITEM_FEEDBACK, 60)

    assert get_next_instruction(feedback, 0) == feedback.instructions[0]
    assert get_next_instruction(feedback, 2) == feedback.instructions[2]
    assert get_next_instruction(feedback, 3) is None
    assert get_next_instruction(feedback, -1) is None


def test_fallback_feedback():
    feedback = fallback_feedback()

    assert feedback.score == 0
    assert feedback.perfect_shot is False
    assert feedback.instructions[0].text == DEFAULT_INSTRUCTION_TEXT
    assert feedback.timestamp > 0
