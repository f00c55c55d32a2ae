from models import db
from datetime import datetime, timezone
from services.retention_models import AttemptRecord, DEFAULT_STRENGTH


def _clamp_percent(value):
    return max(0, min(100, value or 0))


class QuizAttempt(db.Model):
    """QuizAttempt model - one scored quiz submission with its retention snapshot"""
    __tablename__ = 'quiz_attempts'

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quizzes.id'), nullable=False, index=True)

    attempted_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Percentage 0-100
    score = db.Column(db.Integer, nullable=False)
    correct_count = db.Column(db.Integer, nullable=False, default=0)
    total_questions = db.Column(db.Integer, nullable=False, default=0)

    # Learning strength S in days, estimated at the time of this attempt
    strength = db.Column(db.Float, nullable=False, default=5.0)
    # Retention percentage mapped from the score
    retention = db.Column(db.Float, nullable=False)
    next_review_at = db.Column(db.DateTime, nullable=False)
    time_since_last_review = db.Column(db.Float, default=0.0)

    # Relationships
    user = db.relationship('User', back_populates='quiz_attempts')
    quiz = db.relationship('Quiz', back_populates='attempts')

    __table_args__ = (
        db.Index('idx_user_quiz_attempted', 'user_id', 'quiz_id', 'attempted_at'),
    )

    def to_record(self):
        """
        Snapshot this row as an immutable AttemptRecord for the retention engine.

        A missing or zero strength falls back to the default; score and retention
        are clamped to [0, 100].
        """
        return AttemptRecord(
            quiz_id=self.quiz_id,
            timestamp=self.attempted_at,
            score_percent=_clamp_percent(self.score),
            strength=self.strength or DEFAULT_STRENGTH,
            retention_at_attempt=_clamp_percent(self.retention),
            next_review_date=self.next_review_at,
        )

    def __repr__(self):
        return f'<QuizAttempt user_id={self.user_id} quiz_id={self.quiz_id} score={self.score}>'
