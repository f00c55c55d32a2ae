"""
Retention Pydantic Models

Value types exchanged with the retention engine:
- AttemptRecord: immutable snapshot of one scored quiz attempt
- QuizWithHistory: a quiz plus the learner's attempts on it
- StrengthUpdate: learning strength computed for a new submission
- RecommendationResult: one ranked quiz recommendation
- LessonStats: aggregate statistics for a chapter
- RetentionPoint: one day of a retention curve

Attributes are snake_case; JSON output uses camelCase aliases
(model_dump(by_alias=True)).
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_STRENGTH = 5.0


class Priority(str, Enum):
    """Recommendation priority, ordered high -> low"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Trend(str, Enum):
    """Direction of recent scores within a lesson"""
    IMPROVING = "improving"
    DECLINING = "declining"
    NEUTRAL = "neutral"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        """Dump with camelCase keys and ISO-8601 datetimes"""
        return self.model_dump(mode="json", by_alias=True)


class AttemptRecord(CamelModel):
    """
    One scored quiz attempt. Append-only: never mutated once created.

    Example:
    {
        "quizId": 7,
        "timestamp": "2026-01-10T09:00:00Z",
        "scorePercent": 90,
        "strength": 5.0,
        "retentionAtAttempt": 95.0,
        "nextReviewDate": "2026-01-15T09:00:00Z"
    }
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    quiz_id: Union[int, str]
    timestamp: datetime
    score_percent: int = Field(ge=0, le=100)
    # Non-positive strengths decay straight to 0 retention
    strength: float = DEFAULT_STRENGTH
    retention_at_attempt: float = Field(ge=0, le=100)
    next_review_date: datetime


class QuizWithHistory(CamelModel):
    """A quiz and one learner's attempts on it, oldest first"""
    quiz_id: Union[int, str]
    title: Optional[str] = None
    attempts: List[AttemptRecord] = Field(default_factory=list)

    @property
    def last_attempt(self) -> Optional[AttemptRecord]:
        return self.attempts[-1] if self.attempts else None


class StrengthUpdate(CamelModel):
    """Learning strength and retention computed for a new submission"""
    strength: float
    retention: float
    first_attempt: bool = False
    time_since_last_review: float = 0.0
    previous_retention: Optional[float] = None


class RecommendationResult(CamelModel):
    """A quiz with its computed review priority"""
    quiz_id: Union[int, str]
    title: Optional[str] = None
    priority: Priority
    reason: str
    days_until_due: float
    is_due: bool
    retention: float


class LessonStats(CamelModel):
    """Aggregate performance for the attempts in one lesson"""
    average_score: int = 0
    attempt_count: int = 0
    average_learning_strength: float = DEFAULT_STRENGTH
    current_retention: int = 0
    trend: Trend = Trend.NEUTRAL
    next_review_date: Optional[datetime] = None

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RetentionPoint(CamelModel):
    """Predicted retention on a given day after the last review"""
    day: int
    retention: int
    is_due: bool
