from models import db
from datetime import datetime, timezone


class Chapter(db.Model):
    """Chapter model - a lesson grouping related quizzes"""
    __tablename__ = 'chapters'

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    quizzes = db.relationship('Quiz', back_populates='chapter', lazy='dynamic')

    def __repr__(self):
        return f'<Chapter {self.id} {self.title!r}>'
