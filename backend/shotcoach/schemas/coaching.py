from typing import List, Optional
from pydantic import BaseModel
from shotcoach.schemas.analysis import CameraAdjustments
from shotcoach.schemas.instruction import Feedback, Instruction
from shotcoach.schemas.visual_cue import CompositionOverlay, VisualTag


class FeedbackParseRequest(BaseModel):
    raw_feedback: str
    score: int
    current_overlay: Optional[CompositionOverlay] = None  # Kept when no composition keyword matches


class NextInstructionRequest(BaseModel):
    feedback: Feedback
    current_step: int  # 0-based index of the instruction to show next


class CoachingResponse(BaseModel):
    feedback: Feedback
    priority_instruction: Instruction
    visual_tags: List[VisualTag] = []
    visual_tags_ttl_seconds: float  # Client clears the overlay after this long
    composition_overlay: Optional[CompositionOverlay] = None
    camera_adjustments: Optional[CameraAdjustments] = None


class HandoffRequest(BaseModel):
    uri: str


class HandoffResponse(BaseModel):
    slot: str
    uri: Optional[str] = None
