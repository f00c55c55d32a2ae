from models import db
from datetime import datetime, timezone
from sqlalchemy.orm import validates


class Quiz(db.Model):
    """Quiz model - a fixed list of questions, optionally attached to a chapter"""
    __tablename__ = 'quizzes'

    id = db.Column(db.Integer, primary_key=True)

    chapter_id = db.Column(db.Integer, db.ForeignKey('chapters.id'), index=True)

    title = db.Column(db.String, nullable=False)

    # e.g. [{"question": "2 + 2?", "options": ["3", "4"], "correct_answer": "4", "explanation": "..."}]
    questions = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    chapter = db.relationship('Chapter', back_populates='quizzes')
    attempts = db.relationship('QuizAttempt', back_populates='quiz', lazy='dynamic')

    @validates('questions')
    def validate_questions(self, key, questions):
        if not isinstance(questions, list):
            raise ValueError('questions must be a list')
        for question in questions:
            if not isinstance(question, dict) or 'correct_answer' not in question:
                raise ValueError(f'Invalid question entry: {question}')
        return questions

    def __repr__(self):
        return f'<Quiz {self.id} {self.title!r}>'
