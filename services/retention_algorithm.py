"""
Retention Algorithm - exponential forgetting curve for quiz scheduling.

Knowledge decays as Retention = 100 * e^(-t / S), where t is the number of
days since the last review and S is the learning strength in days. Each quiz
submission re-estimates S from the last two scores and schedules the next
review for the day retention falls to 40%.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from services.retention_models import (
    DEFAULT_STRENGTH,
    AttemptRecord,
    RetentionPoint,
    StrengthUpdate,
)

logger = logging.getLogger(__name__)

MIN_STRENGTH = 1.0
MAX_STRENGTH = 60.0
RETENTION_THRESHOLD = 40
SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)"""
    return (as_utc(end) - as_utc(start)).total_seconds() / SECONDS_PER_DAY


def round_half_up(value: float) -> int:
    # Python's round() uses banker's rounding; schedules and reason texts round .5 up
    return int(math.floor(value + 0.5))


class RetentionAlgorithm:
    """Stateless forgetting-curve model: decay, strength estimation and scheduling"""

    @staticmethod
    def calculate_retention(t: float, strength: float) -> float:
        """
        Retention percentage after t days for a memory of the given strength.

        Args:
            t: Days elapsed since the last review
            strength: Learning strength S in days

        Returns:
            Retention in [0, 100]. A non-positive strength means the memory has
            already collapsed and yields 0.

        Example:
            >>> RetentionAlgorithm.calculate_retention(0, 5)
            100.0
        """
        if strength <= 0:
            return 0.0
        retention = math.exp(-t / strength) * 100
        return max(0.0, min(100.0, retention))

    @staticmethod
    def calculate_learning_strength(
        time_gap_days: float,
        previous_retention: float,
        current_retention: float
    ) -> float:
        """
        Estimate learning strength from two retention readings taken
        time_gap_days apart, by inverting the decay formula:

            S = time_gap_days / ln(previous_retention / current_retention)

        Any reading that leaves the logarithm undefined falls back to the
        default strength of 5 days. The result is clamped to [1, 60] days.
        """
        if time_gap_days <= 0 or previous_retention <= 0 or current_retention <= 0:
            return DEFAULT_STRENGTH

        ratio = previous_retention / current_retention
        if ratio <= 0:
            return DEFAULT_STRENGTH

        log_ratio = math.log(ratio)
        if log_ratio == 0:
            # Equal readings mean no measurable decay
            return MAX_STRENGTH

        strength = time_gap_days / log_ratio
        return max(MIN_STRENGTH, min(MAX_STRENGTH, strength))

    @staticmethod
    def score_to_retention(score: float) -> float:
        """
        Map a quiz score (0-100) to a retention percentage.

        Scores are a compressed, noisy signal of retention, so the mapping is
        a step table with inclusive lower bounds:

            >=90 -> 95, >=80 -> 85, >=70 -> 75, >=60 -> 60, >=50 -> 45,
            below 50 -> max(20, score * 0.4)
        """
        if score >= 90:
            return 95.0
        if score >= 80:
            return 85.0
        if score >= 70:
            return 75.0
        if score >= 60:
            return 60.0
        if score >= 50:
            return 45.0
        return max(20.0, score * 0.4)

    @staticmethod
    def calculate_next_review_days(strength: float, retention_threshold: float = RETENTION_THRESHOLD) -> int:
        """
        Days until retention decays to retention_threshold percent.

        Solves threshold = 100 * e^(-t / S) for t, rounds to the nearest day
        and never schedules less than one day out.
        """
        ratio = retention_threshold / 100
        if ratio <= 0:
            return 1

        days_until_review = -strength * math.log(ratio)
        return max(1, round_half_up(days_until_review))

    @staticmethod
    def calculate_next_review_date(strength: float, from_date: Optional[datetime] = None) -> datetime:
        """Date of the next review counted from from_date (defaults to now)"""
        if from_date is None:
            from_date = utc_now()
        days = RetentionAlgorithm.calculate_next_review_days(strength)
        return as_utc(from_date) + timedelta(days=days)

    @staticmethod
    def update_learning_strength(
        history: Sequence[AttemptRecord],
        current_score: float,
        now: Optional[datetime] = None
    ) -> StrengthUpdate:
        """
        Compute learning strength for a new submission.

        The first attempt has no interval to measure decay against, so it gets
        the default strength and its retention straight from the score. Later
        attempts compare the retention implied by the previous score with the
        one implied by the current score over the elapsed wall-clock time.

        Args:
            history: Previous attempts on this quiz, oldest first
            current_score: Score of the submission being recorded (0-100)
            now: Reference instant for the elapsed-time calculation

        Returns:
            StrengthUpdate with strength, retention and the elapsed interval
        """
        current_retention = RetentionAlgorithm.score_to_retention(current_score)

        if not history:
            return StrengthUpdate(
                strength=DEFAULT_STRENGTH,
                retention=current_retention,
                first_attempt=True,
            )

        if now is None:
            now = utc_now()

        last_attempt = history[-1]
        time_gap = days_between(last_attempt.timestamp, now)
        previous_retention = RetentionAlgorithm.score_to_retention(last_attempt.score_percent)

        strength = RetentionAlgorithm.calculate_learning_strength(
            time_gap,
            previous_retention,
            current_retention
        )

        logger.debug(
            f"Strength update: gap={time_gap:.2f}d, previous_retention={previous_retention}, "
            f"current_retention={current_retention}, S={strength:.2f}"
        )

        return StrengthUpdate(
            strength=strength,
            retention=current_retention,
            time_since_last_review=time_gap,
            previous_retention=previous_retention,
        )

    @staticmethod
    def retention_curve(strength: float, days: int = 30) -> List[RetentionPoint]:
        """Predicted retention for each day 0..days after a review"""
        curve = []
        for day in range(days + 1):
            retention = RetentionAlgorithm.calculate_retention(day, strength)
            curve.append(RetentionPoint(
                day=day,
                retention=round_half_up(retention),
                is_due=retention <= RETENTION_THRESHOLD,
            ))
        return curve
