from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

DemandLevel = Literal["high", "medium", "low"]


class QuizOption(BaseModel):
    text: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)


class QuizQuestion(BaseModel):
    id: int = Field(..., ge=1)
    question: str = Field(..., min_length=1)
    options: list[QuizOption] = Field(..., min_length=2)


class QuizAnswer(BaseModel):
    questionId: int = Field(..., ge=1)
    text: str = Field(..., min_length=1)
    submittedAt: datetime


class CareerOutcome(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    advantages: list[str] = Field(default_factory=list, max_length=3)
    disadvantages: list[str] = Field(default_factory=list, max_length=3)
    compensationRange: str
    preparationPath: str
    demandLevel: DemandLevel = "medium"
    fitScore: float = Field(default=50.0, ge=0.0, le=100.0)


class QuizSession(BaseModel):
    threadId: str
    userId: str
    questions: list[QuizQuestion] = Field(default_factory=list)
    answers: list[QuizAnswer] = Field(default_factory=list)
    completed: bool = False
    outcomes: list[CareerOutcome] | None = None
    startedAt: datetime
    updatedAt: datetime


class QuizStartResponse(BaseModel):
    threadId: str
    question: QuizQuestion


class QuizSubmitRequest(BaseModel):
    threadId: str = Field(..., min_length=1)
    answer: str


class QuizSubmitResponse(BaseModel):
    threadId: str
    completed: bool
    question: QuizQuestion | None = None
    outcomes: list[CareerOutcome] | None = None
