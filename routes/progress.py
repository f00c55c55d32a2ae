"""
Progress Blueprint

Read-only views over a learner's retention state:
- GET /progress/quizzes/<quiz_id>/retention-curve - Predicted forgetting curve
- GET /progress/lessons/<chapter_id>/stats - Lesson averages, trend and retention
- GET /progress/attempts - Attempt history with next review dates
"""

import logging
import math

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from models.quiz_attempt import QuizAttempt
from services.lesson_stats_service import calculate_lesson_stats, get_lesson_attempts
from services.quiz_submission_service import QuizSubmissionService
from services.retention_algorithm import RetentionAlgorithm, as_utc, days_between, utc_now

logger = logging.getLogger(__name__)

bp = Blueprint('progress', __name__, url_prefix='/progress')


def _isoformat(value):
    return as_utc(value).isoformat() if value else None


@bp.route('/quizzes/<int:quiz_id>/retention-curve', methods=['GET'])
@login_required
def get_retention_curve(quiz_id):
    """
    Get the predicted retention curve from the learner's latest attempt.

    Returns:
        200: Curve for days 0..RETENTION_CURVE_DAYS
            {
                "quizId": 3,
                "strength": 5.0,
                "lastAttemptDate": "2026-01-10T09:00:00+00:00",
                "curve": [{"day": 0, "retention": 100, "isDue": false}, ...],
                "nextReviewDate": "2026-01-15T09:00:00+00:00",
                "daysUntilReview": 5
            }
        200: No attempts yet
            {
                "quizId": 3,
                "curve": [],
                "message": "No attempts found for this quiz"
            }
        500: Server error
    """
    try:
        attempts = QuizSubmissionService.get_attempt_history(current_user.id, quiz_id)

        if not attempts:
            return jsonify({
                'quizId': quiz_id,
                'curve': [],
                'message': 'No attempts found for this quiz'
            })

        last_attempt = attempts[-1]
        strength = last_attempt.strength
        days = current_app.config.get('RETENTION_CURVE_DAYS', 30)

        return jsonify({
            'quizId': quiz_id,
            'strength': strength,
            'lastAttemptDate': _isoformat(last_attempt.attempted_at),
            'curve': [point.to_json() for point in RetentionAlgorithm.retention_curve(strength, days)],
            'nextReviewDate': _isoformat(last_attempt.next_review_at),
            'daysUntilReview': RetentionAlgorithm.calculate_next_review_days(strength),
        })

    except Exception as e:
        logger.error(f"Error getting retention curve for quiz_id={quiz_id}: {str(e)}", exc_info=True)
        return jsonify({'error': f'Server error: {str(e)}'}), 500


@bp.route('/lessons/<int:chapter_id>/stats', methods=['GET'])
@login_required
def get_lesson_stats(chapter_id):
    """
    Get statistics for the learner's attempts on one lesson.

    Returns:
        200: Lesson statistics
            {
                "lessonId": 2,
                "stats": {
                    "averageScore": 78,
                    "attemptCount": 4,
                    "averageLearningStrength": 12.3,
                    "currentRetention": 64,
                    "trend": "improving",
                    "nextReviewDate": "2026-01-21T09:00:00+00:00"
                },
                "attempts": [{"date": "...", "score": 80, "strength": 12.3, "retention": 85.0, "nextReview": "..."}]
            }
        500: Server error
    """
    try:
        attempts = get_lesson_attempts(current_user.id, chapter_id)
        stats = calculate_lesson_stats([attempt.to_record() for attempt in attempts])

        return jsonify({
            'lessonId': chapter_id,
            'stats': stats.to_json(),
            'attempts': [
                {
                    'date': _isoformat(attempt.attempted_at),
                    'score': attempt.score,
                    'strength': attempt.strength,
                    'retention': attempt.retention,
                    'nextReview': _isoformat(attempt.next_review_at),
                }
                for attempt in attempts
            ]
        })

    except Exception as e:
        logger.error(f"Error getting lesson stats for chapter_id={chapter_id}: {str(e)}", exc_info=True)
        return jsonify({'error': f'Server error: {str(e)}'}), 500


@bp.route('/attempts', methods=['GET'])
@login_required
def get_quiz_attempts():
    """
    Get the learner's quiz attempts, newest first.

    Query Parameters:
        limit (int, optional): Page size (default 20)
        offset (int, optional): Number of attempts to skip (default 0)

    Returns:
        200: {"attempts": [...], "total": int}
        400: Invalid pagination parameters
        500: Server error
    """
    try:
        limit = request.args.get('limit', 20, type=int)
        offset = request.args.get('offset', 0, type=int)

        if limit < 1 or offset < 0:
            return jsonify({'error': 'limit must be positive and offset non-negative'}), 400

        query = QuizAttempt.query.filter_by(user_id=current_user.id)
        total = query.count()
        attempts = query.order_by(
            QuizAttempt.attempted_at.desc(),
            QuizAttempt.id.desc()
        ).offset(offset).limit(limit).all()

        now = utc_now()

        return jsonify({
            'attempts': [
                {
                    'quizId': attempt.quiz_id,
                    'quizTitle': attempt.quiz.title if attempt.quiz else None,
                    'date': _isoformat(attempt.attempted_at),
                    'score': attempt.score,
                    'correct': attempt.correct_count,
                    'total': attempt.total_questions,
                    'strength': attempt.strength,
                    'retention': attempt.retention,
                    'nextReview': _isoformat(attempt.next_review_at),
                    'daysUntilReview': math.ceil(days_between(now, attempt.next_review_at))
                    if attempt.next_review_at else 0,
                }
                for attempt in attempts
            ],
            'total': total,
        })

    except Exception as e:
        logger.error(f"Error getting quiz attempts: {str(e)}", exc_info=True)
        return jsonify({'error': f'Server error: {str(e)}'}), 500
