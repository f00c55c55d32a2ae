from models import db
from datetime import datetime, timezone
from flask_login import UserMixin
from sqlalchemy.orm import validates
import re

ROLE_STUDENT = 'student'
ROLE_TEACHER = 'teacher'

VALID_ROLES = [ROLE_STUDENT, ROLE_TEACHER]


class User(UserMixin, db.Model):
    """User model - learners and teachers of the tutoring platform"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String, nullable=False, unique=True, index=True)
    name = db.Column(db.String)

    # student, teacher
    role = db.Column(db.String(20), nullable=False, default=ROLE_STUDENT)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    quiz_attempts = db.relationship('QuizAttempt', back_populates='user', lazy='dynamic')

    @validates('email')
    def validate_email(self, key, email):
        if not email:
            raise ValueError('Email is required')
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(pattern, email):
            raise ValueError(f'Invalid email format: {email}')
        return email

    @validates('role')
    def validate_role(self, key, role):
        if role not in VALID_ROLES:
            raise ValueError(f'Invalid role: {role}. Must be one of {VALID_ROLES}')
        return role

    @property
    def is_student(self):
        return self.role == ROLE_STUDENT

    def __repr__(self):
        return f'<User {self.email} role={self.role}>'
