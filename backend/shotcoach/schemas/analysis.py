from enum import Enum
from typing import Optional
from pydantic import BaseModel, field_validator
from shotcoach.schemas.reference import ReferenceAnalysis


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class FlashMode(str, Enum):
    ON = "on"
    OFF = "off"
    AUTO = "auto"
    TORCH = "torch"


class FocusPoint(BaseModel):
    x: float = 0.5  # Normalized 0-1, left to right
    y: float = 0.5  # Normalized 0-1, top to bottom

    @field_validator("x", "y")
    @classmethod
    def clamp_unit(cls, v: float) -> float:
        return _clamp(v, 0.0, 1.0)


class CameraAdjustments(BaseModel):
    """Camera settings suggested by the vision model.

    Values outside the supported range are clamped rather than rejected, since
    the model output is advisory. A flash request of "on" becomes "torch" so a
    preview frame never fires a burst.
    """

    zoom: Optional[float] = None
    focus_point: Optional[FocusPoint] = None
    flash: Optional[FlashMode] = None
    exposure_compensation: Optional[float] = None

    @field_validator("zoom")
    @classmethod
    def clamp_zoom(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, 0.0, 1.0)

    @field_validator("exposure_compensation")
    @classmethod
    def clamp_exposure(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _clamp(v, -2.0, 2.0)

    @field_validator("flash")
    @classmethod
    def prefer_torch(cls, v: Optional[FlashMode]) -> Optional[FlashMode]:
        return FlashMode.TORCH if v == FlashMode.ON else v

    @classmethod
    def neutral(cls) -> "CameraAdjustments":
        return cls(
            zoom=0.0,
            focus_point=FocusPoint(x=0.5, y=0.5),
            flash=FlashMode.OFF,
            exposure_compensation=0.0,
        )


class AnalysisResponse(BaseModel):
    score: int
    feedback: str
    camera_adjustments: Optional[CameraAdjustments] = None


class AnalyzeOptions(BaseModel):
    user_skill_level: str = "Intermediate"
    preferred_style: str = "General Professional"
    context_type: Optional[str] = None
    time_of_day: Optional[str] = None
    environment: Optional[str] = None
    ai_control_enabled: bool = False
    reference_analysis: Optional[ReferenceAnalysis] = None
    has_reference_photo: bool = False
