"""AI assistant endpoints. Upstream generation failures surface as 502."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.ai import service
from studyplanner.ai.client import TextGenerationClient, TextGenerationError
from studyplanner.ai.schemas import (
    ChatRequest,
    ChatResponse,
    GeneratePlanRequest,
    GeneratePlanResponse,
    QuizRequest,
    QuizResponse,
    StudyTipsRequest,
    StudyTipsResponse,
    SummarizeRequest,
    SummarizeResponse,
)
from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import User
from studyplanner.dependencies import get_text_client
from studyplanner.gamification.service import get_gamification
from studyplanner.plans.router import plan_response

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/ai", tags=["AI Assistant"])


def _upstream_failure(detail: str, error: TextGenerationError) -> HTTPException:
    logger.warning("ai_request_failed", detail=detail, error=str(error))
    return HTTPException(status_code=502, detail=detail)


@router.post("/generate-plan", response_model=GeneratePlanResponse, status_code=201)
async def generate_plan(
    body: GeneratePlanRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    client: TextGenerationClient = Depends(get_text_client),
) -> GeneratePlanResponse:
    """Generate and store a study plan for the given subject and exam date."""
    try:
        plan = await service.generate_study_plan(db, client, user, body)
    except TextGenerationError as e:
        raise _upstream_failure("Failed to generate study plan", e) from e
    await db.commit()
    return GeneratePlanResponse(plan=plan_response(plan))


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    client: TextGenerationClient = Depends(get_text_client),
) -> ChatResponse:
    gam = await get_gamification(db, user.id)
    try:
        reply = await service.chat(client, user, gam, body.message, body.context)
    except TextGenerationError as e:
        raise _upstream_failure("Failed to process chat message", e) from e
    return ChatResponse(response=reply)


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(
    body: SummarizeRequest,
    user: User = Depends(get_current_user),
    client: TextGenerationClient = Depends(get_text_client),
) -> SummarizeResponse:
    try:
        summary = await service.summarize(client, body.content, body.kind)
    except TextGenerationError as e:
        raise _upstream_failure("Failed to summarize content", e) from e
    return SummarizeResponse(summary=summary)


@router.post("/study-tips", response_model=StudyTipsResponse)
async def study_tips(
    body: StudyTipsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    client: TextGenerationClient = Depends(get_text_client),
) -> StudyTipsResponse:
    gam = await get_gamification(db, user.id)
    try:
        tips = await service.study_tips(client, user, gam, body.subject, body.topic, body.difficulty)
    except TextGenerationError as e:
        raise _upstream_failure("Failed to generate study tips", e) from e
    return StudyTipsResponse(tips=tips)


@router.post("/quiz", response_model=QuizResponse)
async def quiz(
    body: QuizRequest,
    user: User = Depends(get_current_user),
    client: TextGenerationClient = Depends(get_text_client),
) -> QuizResponse:
    try:
        questions = await service.generate_quiz(
            client, body.subject, body.topic, body.difficulty, body.question_count
        )
    except TextGenerationError as e:
        raise _upstream_failure("Failed to generate quiz", e) from e
    return QuizResponse(questions=questions)
