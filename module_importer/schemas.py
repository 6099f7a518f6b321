"""Pydantic schemas for the documents written to Firestore.

Field names are snake_case in Python and camelCase in the stored documents.
Fields copied verbatim from fixtures are typed ``Any``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BADGE_THRESHOLDS = {"gold": 90, "silver": 75, "bronze": 50}


class Document(BaseModel):
    """Base for stored documents."""
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize with the camelCase field names used in Firestore."""
        return self.model_dump(by_alias=True)


class QuestionDocument(Document):
    """A question embedded in a quiz document."""
    question: str = Field(default="", description="Question text")
    options: list[str] = Field(default_factory=list, description="Answer choices in display order")
    correct_index: int = Field(default=0, alias="correctIndex", description="Index into options")
    explanation: str = Field(default="", description="Shown after answering")


class QuizDocument(Document):
    """A quiz stored under modules/{moduleId}/quizzes."""
    id: Any = None
    module_id: Any = Field(alias="moduleId")
    title: Any = "Quiz"
    description: Any = ""
    duration_seconds: Any = Field(default=None, alias="durationSeconds")
    allow_retake: Any = Field(default=True, alias="allowRetake")
    order: Any = 0
    badge_thresholds: Any = Field(
        default_factory=lambda: dict(DEFAULT_BADGE_THRESHOLDS),
        alias="badgeThresholds",
        description="Score cutoffs, stored as given when the fixture supplies them"
    )
    questions: list[QuestionDocument] = Field(default_factory=list)
    question_count: int = Field(default=0, alias="questionCount")


class ModuleDocument(Document):
    """Top-level module metadata stored under modules/{id}."""
    title: Any = ""
    description: Any = ""
    count_fiches: Any = Field(default=0, alias="countFiches")
    count_videos: Any = Field(default=0, alias="countVideos")
    count_quizzes: Any = Field(
        default=0,
        alias="countQuizzes",
        description="Initial value only; replaced by the imported quiz count"
    )
    tags: Any = Field(default_factory=list)
    image_url: Any = Field(default="", alias="imageUrl")
