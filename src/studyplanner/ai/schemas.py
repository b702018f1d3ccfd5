"""Request/response schemas for AI assistant endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from studyplanner.plans.schemas import PlanResponse


class GeneratePlanRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=100)
    exam_date: datetime
    total_hours: float | None = Field(None, gt=0)
    daily_hours: float | None = Field(None, gt=0, le=24)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    topics: list[str] = []


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    context: str | None = None


class ChatResponse(BaseModel):
    response: str


class SummarizeRequest(BaseModel):
    content: str = Field(..., min_length=1)
    kind: Literal["text", "notes", "article"] = "text"


class SummarizeResponse(BaseModel):
    summary: str


class StudyTipsRequest(BaseModel):
    subject: str = Field(..., min_length=1)
    topic: str | None = None
    difficulty: Literal["easy", "medium", "hard"] | None = None


class StudyTipsResponse(BaseModel):
    tips: str


class QuizRequest(BaseModel):
    subject: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    question_count: int = Field(5, ge=1, le=20)


class QuizQuestion(BaseModel):
    question: str
    options: list[str]
    correct_answer: int
    explanation: str | None = None


class QuizResponse(BaseModel):
    questions: list[QuizQuestion]


class GeneratePlanResponse(BaseModel):
    plan: PlanResponse
