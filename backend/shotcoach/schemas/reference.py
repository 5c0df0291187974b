from pydantic import BaseModel, ConfigDict


class ReferenceAnalysis(BaseModel):
    """Technique breakdown of a photo the user wants to recreate."""

    model_config = ConfigDict(frozen=True)

    picture_type: str = "Photography"
    style: str = "Natural"
    subject: str = "Photo content"
    composition: str = "Standard framing"
    lighting: str = "Available light"
    lens: str = "Standard lens"
    color_tone: str = "Natural colors"
    summary: str = "Focus on composition and lighting to recreate this style."
