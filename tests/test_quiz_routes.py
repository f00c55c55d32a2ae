"""
Integration tests for quiz routes (GET /quiz/recommended, POST /quiz/<id>/submit).

Tests the complete review flow including:
- Recommendations for new, overdue and upcoming quizzes
- Submission grading and retention scheduling
- Validation and permission errors
"""

import sys
import os
import math
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from models import db
from models.user import User
from models.quiz import Quiz
from models.quiz_attempt import QuizAttempt

QUESTIONS = [
    {'question': '2 + 2?', 'options': ['3', '4'], 'correct_answer': '4'},
    {'question': 'Capital of France?', 'options': ['Paris', 'Rome'], 'correct_answer': 'Paris'},
    {'question': 'Water?', 'options': ['H2O', 'CO2'], 'correct_answer': 'H2O', 'explanation': 'Two hydrogens'},
    {'question': '3 * 3?', 'options': ['6', '9'], 'correct_answer': '9'},
]


@pytest.fixture(scope='function')
def client():
    """Create a test client with fresh database for each test"""
    app = create_app('testing')
    app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
    app.config['TESTING'] = True

    with app.app_context():
        db.create_all()

        with app.test_client() as client:
            yield client

        db.session.remove()
        db.drop_all()


@pytest.fixture
def student(client):
    user = User(email='student@example.com', name='Student', role='student')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def quiz(client):
    quiz = Quiz(title='Warm-up', questions=QUESTIONS)
    db.session.add(quiz)
    db.session.commit()
    return quiz


class TestRecommendedQuizzes:
    """Tests for GET /quiz/recommended endpoint"""

    def test_requires_login(self, client):
        response = client.get('/quiz/recommended')
        assert response.status_code == 401

    @patch('flask_login.utils._get_user')
    def test_new_quiz_is_recommended(self, mock_get_user, client, student, quiz):
        mock_get_user.return_value = student

        response = client.get('/quiz/recommended')

        assert response.status_code == 200
        data = response.get_json()
        assert data['totalAvailable'] == 1
        assert data['dueCount'] == 1
        assert data['recommendations'] == [{
            'quizId': quiz.id,
            'title': 'Warm-up',
            'priority': 'high',
            'reason': 'New quiz - never attempted',
            'daysUntilDue': 0.0,
            'isDue': True,
            'retention': 0.0,
        }]

    @patch('flask_login.utils._get_user')
    def test_overdue_before_upcoming(self, mock_get_user, client, student):
        mock_get_user.return_value = student
        now = datetime.now(timezone.utc)

        upcoming = Quiz(title='Upcoming', questions=QUESTIONS)
        overdue = Quiz(title='Overdue', questions=QUESTIONS)
        db.session.add_all([upcoming, overdue])
        db.session.flush()
        db.session.add_all([
            QuizAttempt(
                user_id=student.id, quiz_id=upcoming.id, attempted_at=now - timedelta(days=1),
                score=100, strength=30.0, retention=95, next_review_at=now + timedelta(days=26)
            ),
            QuizAttempt(
                user_id=student.id, quiz_id=overdue.id, attempted_at=now - timedelta(days=9),
                score=75, strength=5.0, retention=75, next_review_at=now - timedelta(days=4)
            ),
        ])
        db.session.commit()

        response = client.get('/quiz/recommended')

        assert response.status_code == 200
        recommendations = response.get_json()['recommendations']
        assert [r['title'] for r in recommendations] == ['Overdue', 'Upcoming']
        assert recommendations[0]['reason'] == 'Overdue by 4 days'
        assert recommendations[0]['isDue'] is True
        assert recommendations[0]['daysUntilDue'] == pytest.approx(-4, abs=0.01)
        assert recommendations[1]['priority'] == 'low'
        assert recommendations[1]['reason'] == 'Review upcoming'

    @patch('flask_login.utils._get_user')
    def test_limit(self, mock_get_user, client, student):
        mock_get_user.return_value = student
        db.session.add_all([Quiz(title=f'Quiz {i}', questions=QUESTIONS) for i in range(4)])
        db.session.commit()

        response = client.get('/quiz/recommended?limit=2')

        data = response.get_json()
        assert len(data['recommendations']) == 2
        assert data['totalAvailable'] == 4

    @patch('flask_login.utils._get_user')
    def test_default_limit_from_config(self, mock_get_user, client, student):
        mock_get_user.return_value = student
        client.application.config['RECOMMENDATION_LIMIT'] = 3
        db.session.add_all([Quiz(title=f'Quiz {i}', questions=QUESTIONS) for i in range(5)])
        db.session.commit()

        response = client.get('/quiz/recommended')

        assert len(response.get_json()['recommendations']) == 3

    @patch('flask_login.utils._get_user')
    def test_corrupt_stored_attempts_still_rank(self, mock_get_user, client, student):
        """A zero strength or out-of-range score on one row does not hide the list"""
        mock_get_user.return_value = student
        now = datetime.now(timezone.utc)

        weak = Quiz(title='Weak', questions=QUESTIONS)
        perfect = Quiz(title='Perfect', questions=QUESTIONS)
        db.session.add_all([weak, perfect])
        db.session.flush()
        db.session.add_all([
            QuizAttempt(
                user_id=student.id, quiz_id=weak.id, attempted_at=now - timedelta(days=2),
                score=60, strength=0.0, retention=60, next_review_at=now + timedelta(days=3)
            ),
            QuizAttempt(
                user_id=student.id, quiz_id=perfect.id, attempted_at=now - timedelta(days=1),
                score=101, strength=10.0, retention=95, next_review_at=now + timedelta(days=8)
            ),
        ])
        db.session.commit()

        response = client.get('/quiz/recommended')

        assert response.status_code == 200
        recommendations = response.get_json()['recommendations']
        assert [r['title'] for r in recommendations] == ['Weak', 'Perfect']
        assert recommendations[0]['reason'] == 'Low score - needs reinforcement'
        assert recommendations[0]['retention'] == pytest.approx(100 * math.exp(-2 / 5), abs=0.01)
        assert recommendations[1]['priority'] == 'low'

    @patch('flask_login.utils._get_user')
    def test_invalid_limit(self, mock_get_user, client, student):
        mock_get_user.return_value = student

        response = client.get('/quiz/recommended?limit=0')

        assert response.status_code == 400


class TestSubmitQuiz:
    """Tests for POST /quiz/<quiz_id>/submit endpoint"""

    def test_requires_login(self, client, quiz):
        response = client.post(f'/quiz/{quiz.id}/submit', json={'answers': ['4', 'Paris', 'H2O', '9']})
        assert response.status_code == 401

    @patch('flask_login.utils._get_user')
    def test_submit_records_attempt(self, mock_get_user, client, student, quiz):
        mock_get_user.return_value = student

        response = client.post(f'/quiz/{quiz.id}/submit', json={'answers': ['4', 'Paris', 'CO2', '9']})

        assert response.status_code == 200
        data = response.get_json()
        assert data['score'] == 75
        assert data['correct'] == 3
        assert data['total'] == 4
        assert data['results'][2] == {
            'isCorrect': False,
            'userAnswer': 'CO2',
            'correctAnswer': 'H2O',
            'explanation': 'Two hydrogens',
        }
        assert data['retentionData']['strength'] == 5.0
        assert data['retentionData']['retention'] == 75.0
        assert data['retentionData']['daysUntilReview'] == 5
        assert 'nextReviewDate' in data['retentionData']
        assert 'attempt' not in data

        assert QuizAttempt.query.filter_by(user_id=student.id, quiz_id=quiz.id).count() == 1

    @patch('flask_login.utils._get_user')
    def test_answer_count_mismatch(self, mock_get_user, client, student, quiz):
        mock_get_user.return_value = student

        response = client.post(f'/quiz/{quiz.id}/submit', json={'answers': ['4']})

        assert response.status_code == 400
        assert 'number of answers' in response.get_json()['error']
        assert QuizAttempt.query.count() == 0

    @patch('flask_login.utils._get_user')
    def test_missing_answers(self, mock_get_user, client, student, quiz):
        mock_get_user.return_value = student

        response = client.post(f'/quiz/{quiz.id}/submit', json={'responses': []})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Missing required field: answers'

    @patch('flask_login.utils._get_user')
    def test_no_json_body(self, mock_get_user, client, student, quiz):
        mock_get_user.return_value = student

        response = client.post(f'/quiz/{quiz.id}/submit')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'No JSON data provided'

    @patch('flask_login.utils._get_user')
    def test_unknown_quiz(self, mock_get_user, client, student):
        mock_get_user.return_value = student

        response = client.post('/quiz/999/submit', json={'answers': []})

        assert response.status_code == 404

    @patch('flask_login.utils._get_user')
    def test_teacher_forbidden(self, mock_get_user, client, quiz):
        teacher = User(email='teacher@example.com', role='teacher')
        db.session.add(teacher)
        db.session.commit()
        mock_get_user.return_value = teacher

        response = client.post(f'/quiz/{quiz.id}/submit', json={'answers': ['4', 'Paris', 'H2O', '9']})

        assert response.status_code == 403
        assert QuizAttempt.query.count() == 0

    @patch('flask_login.utils._get_user')
    def test_teacher_answer_count_mismatch_is_bad_request(self, mock_get_user, client, quiz):
        teacher = User(email='teacher@example.com', role='teacher')
        db.session.add(teacher)
        db.session.commit()
        mock_get_user.return_value = teacher

        response = client.post(f'/quiz/{quiz.id}/submit', json={'answers': ['4']})

        assert response.status_code == 400
        assert QuizAttempt.query.count() == 0


class TestBlueprintRoutes:
    """Only the documented endpoints are registered"""

    @pytest.mark.parametrize('path', ['/quiz/test', '/progress/test'])
    def test_no_scaffolding_endpoints(self, client, path):
        assert client.get(path).status_code == 404
