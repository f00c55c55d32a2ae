"""Lesson Stats Service - score averages, trend and retention for one chapter"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from models.quiz import Quiz
from models.quiz_attempt import QuizAttempt
from services.retention_algorithm import (
    RetentionAlgorithm,
    days_between,
    round_half_up,
    utc_now,
)
from services.retention_models import AttemptRecord, LessonStats, Trend

logger = logging.getLogger(__name__)

RECENT_WINDOW = 3
TREND_MARGIN = 5


def calculate_trend(scores: Sequence[float]) -> Trend:
    """
    Compare the mean of the last 3 scores with the mean of the earlier ones.

    The earlier mean divides by at least 1, so with 3 or fewer attempts it is 0
    and any recent mean above 5 reads as improving.

    Example:
        >>> calculate_trend([40, 45, 50, 80, 85, 90])
        <Trend.IMPROVING: 'improving'>
    """
    if len(scores) < 2:
        return Trend.NEUTRAL

    recent = scores[-RECENT_WINDOW:]
    older = scores[:-RECENT_WINDOW]
    recent_avg = sum(recent) / min(RECENT_WINDOW, len(scores))
    older_avg = sum(older) / max(1, len(scores) - RECENT_WINDOW)

    if recent_avg > older_avg + TREND_MARGIN:
        return Trend.IMPROVING
    if recent_avg < older_avg - TREND_MARGIN:
        return Trend.DECLINING
    return Trend.NEUTRAL


def calculate_lesson_stats(attempts: Sequence[AttemptRecord], now: Optional[datetime] = None) -> LessonStats:
    """
    Summarize a lesson's attempts, oldest first.

    Strength and retention come from the latest attempt: its stored strength,
    decayed over the time since it was taken.

    Returns:
        LessonStats; with no attempts the zero record
        (average 0, strength 5, retention 0, neutral trend)
    """
    if not attempts:
        return LessonStats()

    if now is None:
        now = utc_now()

    scores = [attempt.score_percent for attempt in attempts]
    average_score = sum(scores) / len(scores)

    last_attempt = attempts[-1]
    strength = last_attempt.strength
    days_since_review = days_between(last_attempt.timestamp, now)
    current_retention = RetentionAlgorithm.calculate_retention(days_since_review, strength)

    return LessonStats(
        average_score=round_half_up(average_score),
        attempt_count=len(attempts),
        average_learning_strength=round_half_up(strength * 10) / 10,
        current_retention=round_half_up(current_retention),
        trend=calculate_trend(scores),
        next_review_date=RetentionAlgorithm.calculate_next_review_date(strength, last_attempt.timestamp),
    )


def get_lesson_attempts(user_id: int, chapter_id: int) -> List[QuizAttempt]:
    """All of a learner's attempts on quizzes in a chapter, oldest first"""
    attempts = QuizAttempt.query.join(Quiz, QuizAttempt.quiz_id == Quiz.id).filter(
        QuizAttempt.user_id == user_id,
        Quiz.chapter_id == chapter_id
    ).order_by(QuizAttempt.attempted_at.asc(), QuizAttempt.id.asc()).all()
    logger.debug(f"Loaded {len(attempts)} attempts for user_id={user_id}, chapter_id={chapter_id}")
    return attempts
