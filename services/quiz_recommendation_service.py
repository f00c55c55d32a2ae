"""
Quiz Recommendation Service - ranks quizzes for review.

Ranking reads the stored schedule of each quiz's latest attempt (its next
review date and strength) rather than replaying the attempt history.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from models.quiz import Quiz
from models.quiz_attempt import QuizAttempt
from services.retention_algorithm import (
    RetentionAlgorithm,
    days_between,
    round_half_up,
    utc_now,
)
from services.retention_models import (
    Priority,
    QuizWithHistory,
    RecommendationResult,
)

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}

LOW_SCORE_THRESHOLD = 70

REASON_NEW = 'New quiz - never attempted'
REASON_DUE_SOON = 'Due soon'
REASON_LOW_SCORE = 'Low score - needs reinforcement'
REASON_UPCOMING = 'Review upcoming'


class QuizRecommendationService:
    """Orders quizzes by how urgently they need review"""

    @staticmethod
    def evaluate(quiz: QuizWithHistory, now: datetime) -> RecommendationResult:
        """
        Determine priority and reason for a single quiz.

        Decision order (first match wins):
        1. Never attempted -> high
        2. Past its next review date -> high, "Overdue by N days"
        3. Due within a day -> medium
        4. Last score below 70 -> high
        5. Otherwise -> low
        """
        last_attempt = quiz.last_attempt
        if last_attempt is None:
            return RecommendationResult(
                quiz_id=quiz.quiz_id,
                title=quiz.title,
                priority=Priority.HIGH,
                reason=REASON_NEW,
                days_until_due=0,
                is_due=True,
                retention=0.0,
            )

        days_since_review = days_between(last_attempt.timestamp, now)
        days_until_due = days_between(now, last_attempt.next_review_date)
        is_due = days_until_due <= 0

        if is_due:
            priority = Priority.HIGH
            reason = f'Overdue by {round_half_up(abs(days_until_due))} days'
        elif days_until_due <= 1:
            priority = Priority.MEDIUM
            reason = REASON_DUE_SOON
        elif last_attempt.score_percent < LOW_SCORE_THRESHOLD:
            priority = Priority.HIGH
            reason = REASON_LOW_SCORE
        else:
            priority = Priority.LOW
            reason = REASON_UPCOMING

        return RecommendationResult(
            quiz_id=quiz.quiz_id,
            title=quiz.title,
            priority=priority,
            reason=reason,
            days_until_due=days_until_due,
            is_due=is_due,
            retention=RetentionAlgorithm.calculate_retention(days_since_review, last_attempt.strength),
        )

    @staticmethod
    def rank(
        quizzes: Sequence[QuizWithHistory],
        now: Optional[datetime] = None
    ) -> List[RecommendationResult]:
        """
        Rank quizzes for review.

        Sorted by priority (high, medium, low) and then by the signed
        days_until_due, so the most overdue quiz comes first. The sort is
        stable: ties keep their input order.

        Args:
            quizzes: Quizzes with the learner's attempt history
            now: Reference instant, read once for the whole ranking

        Returns:
            List of RecommendationResult in review order
        """
        if now is None:
            now = utc_now()

        results = [QuizRecommendationService.evaluate(quiz, now) for quiz in quizzes]
        results.sort(key=lambda r: (PRIORITY_ORDER[r.priority], r.days_until_due))
        return results

    @staticmethod
    def load_quizzes_with_history(user_id: int) -> List[QuizWithHistory]:
        """Assemble every quiz with this learner's attempts, oldest attempt first"""
        attempts = QuizAttempt.query.filter_by(user_id=user_id).order_by(
            QuizAttempt.attempted_at.asc(),
            QuizAttempt.id.asc()
        ).all()

        by_quiz: Dict[int, list] = defaultdict(list)
        for attempt in attempts:
            by_quiz[attempt.quiz_id].append(attempt.to_record())

        return [
            QuizWithHistory(quiz_id=quiz.id, title=quiz.title, attempts=by_quiz.get(quiz.id, []))
            for quiz in Quiz.query.order_by(Quiz.id.asc()).all()
        ]

    @staticmethod
    def get_recommendations(user_id: int, limit: int = 10, now: Optional[datetime] = None) -> dict:
        """
        Get the top review recommendations for a learner.

        Returns:
            {
                'recommendations': [RecommendationResult, ...],  # at most `limit`
                'total_available': int,
                'due_count': int
            }
        """
        quizzes = QuizRecommendationService.load_quizzes_with_history(user_id)
        ranked = QuizRecommendationService.rank(quizzes, now)
        due_count = sum(1 for r in ranked if r.is_due)

        logger.debug(
            f"Ranked {len(ranked)} quizzes for user_id={user_id}: due={due_count}, limit={limit}"
        )

        return {
            'recommendations': ranked[:limit],
            'total_available': len(ranked),
            'due_count': due_count,
        }
