import logging
from typing import Optional
from fastapi import APIRouter, File, UploadFile, HTTPException, status, Form
from fastapi.concurrency import run_in_threadpool
from shotcoach.core.config import settings
from shotcoach.core.errors import InvalidStateError
from shotcoach.core.instruction_engine import (
    fallback_feedback,
    get_next_instruction,
    get_priority_instruction,
    parse_instructions,
)
from shotcoach.core.reference_analysis import (
    DEFAULT_REFERENCE_ANALYSIS,
    describe_reference,
    parse_reference_analysis,
)
from shotcoach.core.reference_store import HandoffSlot, handoff_store
from shotcoach.core.response_parser import parse_ai_response
from shotcoach.core.visual_cues import classify, select_composition_overlay
from shotcoach.schemas.analysis import AnalyzeOptions, CameraAdjustments
from shotcoach.schemas.coaching import (
    CoachingResponse,
    FeedbackParseRequest,
    HandoffRequest,
    HandoffResponse,
    NextInstructionRequest,
)
from shotcoach.schemas.instruction import Feedback, Instruction
from shotcoach.schemas.reference import ReferenceAnalysis
from shotcoach.schemas.visual_cue import CompositionOverlay
from shotcoach.services.openai_service import analyze_image, analyze_reference_image

logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp"]


def build_coaching_response(
    feedback: Feedback,
    camera_adjustments: Optional[CameraAdjustments] = None,
    current_overlay: Optional[CompositionOverlay] = None,
) -> CoachingResponse:
    instruction = get_priority_instruction(feedback)
    return CoachingResponse(
        feedback=feedback,
        priority_instruction=instruction,
        visual_tags=classify(instruction.text),
        visual_tags_ttl_seconds=settings.visual_cue_ttl_seconds,
        composition_overlay=select_composition_overlay(feedback, current_overlay),
        camera_adjustments=camera_adjustments,
    )


def resolve_slot(slot: str) -> HandoffSlot:
    try:
        return HandoffSlot(slot)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown handoff slot: {slot}",
        )


async def read_image(file: UploadFile) -> bytes:
    """Read an uploaded image, rejecting unsupported types, oversized and empty files."""
    if file.content_type not in ALLOWED_MIME_TYPES:
        logger.warning(f"Invalid MIME type: {file.content_type}")
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported media type. Allowed: {', '.join(ALLOWED_MIME_TYPES)}",
        )

    content = await file.read()
    file_size = len(content)

    if file_size > settings.max_image_size:
        logger.warning(f"File too large: {file_size} bytes")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds {settings.max_image_size // (1024*1024)}MB",
        )

    if file_size == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is empty",
        )

    return content


@router.post("/feedback/parse", response_model=CoachingResponse)
def parse_feedback(request: FeedbackParseRequest):
    """Structure caller-supplied model feedback and derive overlay cues."""
    feedback = parse_instructions(request.raw_feedback, request.score)
    logger.info(
        f"Parsed feedback: score={feedback.score}, instructions={len(feedback.instructions)}, "
        f"perfect_shot={feedback.perfect_shot}"
    )
    return build_coaching_response(feedback, current_overlay=request.current_overlay)


@router.post("/feedback/priority", response_model=Instruction)
def priority_instruction(feedback: Feedback):
    try:
        return get_priority_instruction(feedback)
    except InvalidStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/feedback/next", response_model=Optional[Instruction])
def next_instruction(request: NextInstructionRequest):
    return get_next_instruction(request.feedback, request.current_step)


@router.post("/analyze", response_model=CoachingResponse, status_code=status.HTTP_200_OK)
async def analyze_shot(
    file: UploadFile = File(...),
    user_skill_level: str = Form("Intermediate"),
    preferred_style: str = Form("General Professional"),
    context_type: Optional[str] = Form(None),
    time_of_day: Optional[str] = Form(None),
    environment: Optional[str] = Form(None),
    ai_control_enabled: bool = Form(False),
    reference_analysis: Optional[str] = Form(None),
    current_overlay: Optional[CompositionOverlay] = Form(None),
):
    """Critique a viewfinder frame and return structured coaching."""
    logger.info(f"Analyze request: {file.filename}")
    content = await read_image(file)

    # A reference breakdown sent with the request wins over the stored one
    reference = (
        parse_reference_analysis(reference_analysis)
        if reference_analysis
        else handoff_store.analysis()
    )

    options = AnalyzeOptions(
        user_skill_level=user_skill_level,
        preferred_style=preferred_style,
        context_type=context_type,
        time_of_day=time_of_day,
        environment=environment,
        ai_control_enabled=ai_control_enabled,
        reference_analysis=reference,
        has_reference_photo=handoff_store.peek(HandoffSlot.REFERENCE) is not None,
    )

    # Pillow decoding and the OpenAI request block, keep them off the event loop
    raw_advice = await run_in_threadpool(analyze_image, content, options)
    if raw_advice is None:
        logger.warning("No advice returned from vision model, using fallback feedback")
        return build_coaching_response(fallback_feedback(), current_overlay=current_overlay)

    analysis = parse_ai_response(raw_advice)
    feedback = parse_instructions(analysis.feedback, analysis.score)
    if reference is not None:
        feedback = feedback.model_copy(update={"reference_comparison": describe_reference(reference)})
    camera_adjustments = analysis.camera_adjustments if ai_control_enabled else None
    return build_coaching_response(feedback, camera_adjustments, current_overlay)


@router.post("/reference/analyze", response_model=ReferenceAnalysis)
async def analyze_reference(file: UploadFile = File(...)):
    """Break down a reference photo and make it the active reference for shot critiques."""
    logger.info(f"Reference analyze request: {file.filename}")
    content = await read_image(file)

    raw_analysis = await run_in_threadpool(analyze_reference_image, content)
    if raw_analysis is None:
        logger.warning("No reference analysis returned from vision model, using default analysis")
        analysis = DEFAULT_REFERENCE_ANALYSIS
    else:
        analysis = parse_reference_analysis(raw_analysis)

    handoff_store.set_analysis(analysis)
    return analysis


@router.get("/reference/analysis", response_model=Optional[ReferenceAnalysis])
def active_reference():
    return handoff_store.analysis()


@router.delete("/reference/analysis", status_code=status.HTTP_204_NO_CONTENT)
def clear_reference():
    handoff_store.set_analysis(None)


@router.put("/handoff/{slot}", response_model=HandoffResponse)
def offer_handoff(slot: str, request: HandoffRequest):
    handoff_slot = resolve_slot(slot)
    handoff_store.offer(handoff_slot, request.uri)
    return HandoffResponse(slot=handoff_slot.value, uri=request.uri)


@router.post("/handoff/{slot}/consume", response_model=HandoffResponse)
def consume_handoff(slot: str):
    handoff_slot = resolve_slot(slot)
    return HandoffResponse(slot=handoff_slot.value, uri=handoff_store.consume(handoff_slot))
