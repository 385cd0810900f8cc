from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CategoryBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mc_questions: int = Field(0, ge=0, alias="mcQuestions")
    tf_questions: int = Field(0, ge=0, alias="tfQuestions")


class CognitiveLevelBreakdown(CategoryBreakdown):
    level: str = Field(..., min_length=1)


class TopicBreakdown(CategoryBreakdown):
    topic: str = Field(..., min_length=1)
    cognitive_level: Optional[str] = Field(None, alias="cognitiveLevel")


class QuizRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    quiz_type: Union[List[str], str, None] = Field(None, alias="quizType")
    mc_questions: int = Field(0, ge=0, alias="mcQuestions")
    tf_questions: int = Field(0, ge=0, alias="tfQuestions")
    difficulty: str = "Easy"
    created_by: Union[str, int, None] = None
    cognitive_levels: Optional[List[CognitiveLevelBreakdown]] = Field(None, alias="cognitiveLevels")
    topics: Optional[List[TopicBreakdown]] = None


class CustomQuizRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    difficulty: Optional[str] = None
    mcq_count: int = Field(0, ge=0, alias="mcqCount")
    tf_count: int = Field(0, ge=0, alias="tfCount")
    created_by: Union[str, int, None] = None


class ResultRow(BaseModel):
    name: Optional[str] = None
    quizTitle: Optional[str] = None
    score: Optional[Union[int, float, str]] = None
    total: Optional[Union[int, float, str]] = None
    percent: Optional[Union[int, float, str]] = None
    submittedAt: Optional[str] = None


class ExportPdfRequest(BaseModel):
    title: Optional[str] = None
    rows: List[ResultRow] = []


class DailyTriviaRequest(BaseModel):
    topic: str = "General Knowledge"
    difficulty: str = "Easy"


class WordListRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = "Untitled"
    description: str = ""
    num_words: int = Field(15, ge=1, le=100, alias="numWords")


class CreateUserRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: Optional[str] = None
    new_email: Optional[str] = Field(None, alias="newEmail")
