from enum import Enum
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict


class InstructionCategory(str, Enum):
    POSITIONING = "positioning"
    LIGHTING = "lighting"
    COMPOSITION = "composition"
    SETTINGS = "settings"
    TIMING = "timing"


class InstructionPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class VisualAidType(str, Enum):
    ARROW = "arrow"
    GRID = "grid"
    OVERLAY = "overlay"  # Reserved for the client, never produced by the engine
    HIGHLIGHT = "highlight"  # Reserved for the client, never produced by the engine


class VisualAid(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: VisualAidType
    data: Dict[str, Any] = {}


class Instruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    step: int  # 1-based position within the batch
    total_steps: int
    text: str
    category: InstructionCategory
    priority: InstructionPriority
    visual_aid: Optional[VisualAid] = None


class Feedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int
    instructions: List[Instruction]  # Insertion order is priority order
    perfect_shot: bool
    reference_comparison: Optional[str] = None
    timestamp: int  # Epoch milliseconds
