"""
Quiz Routes - Endpoints for retention-driven quiz review.

This module provides API endpoints for the quiz system including:
- GET /quiz/recommended - Quizzes ranked by review urgency
- POST /quiz/<quiz_id>/submit - Grade a quiz and schedule its next review
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from models import db
from services.quiz_recommendation_service import QuizRecommendationService
from services.quiz_submission_service import QuizNotFoundError, QuizSubmissionService

logger = logging.getLogger(__name__)

bp = Blueprint('quiz', __name__, url_prefix='/quiz')


@bp.route('/recommended', methods=['GET'])
@login_required
def get_recommended_quizzes():
    """
    Get quizzes ranked by how urgently they need review.

    Query Parameters:
        limit (int, optional): Maximum recommendations (defaults to RECOMMENDATION_LIMIT)

    Returns:
        200: Ranked recommendations
            {
                "recommendations": [
                    {
                        "quizId": 3,
                        "title": "Fractions",
                        "priority": "high",
                        "reason": "Overdue by 2 days",
                        "daysUntilDue": -2.1,
                        "isDue": true,
                        "retention": 31.4
                    }
                ],
                "totalAvailable": 12,
                "dueCount": 4
            }
        400: Invalid limit
        500: Server error
    """
    try:
        limit = request.args.get('limit', type=int)
        if limit is None:
            limit = current_app.config.get('RECOMMENDATION_LIMIT', 10)
        if limit < 1:
            return jsonify({'error': 'limit must be a positive integer'}), 400

        result = QuizRecommendationService.get_recommendations(current_user.id, limit=limit)

        return jsonify({
            'recommendations': [r.to_json() for r in result['recommendations']],
            'totalAvailable': result['total_available'],
            'dueCount': result['due_count'],
        })

    except Exception as e:
        logger.error(f"Error getting recommended quizzes: {str(e)}", exc_info=True)
        return jsonify({'error': f'Server error: {str(e)}'}), 500


@bp.route('/<int:quiz_id>/submit', methods=['POST'])
@login_required
def submit_quiz(quiz_id):
    """
    Submit answers for a quiz and record the attempt with retention data.

    Request Body:
        {
            "answers": ["4", "Paris", "H2O"]
        }

    Returns:
        200: Graded result with the new schedule
            {
                "score": 67,
                "correct": 2,
                "total": 3,
                "results": [{"isCorrect": true, "userAnswer": "4", "correctAnswer": "4", "explanation": null}],
                "retentionData": {
                    "strength": 5.0,
                    "retention": 60.0,
                    "nextReviewDate": "2026-01-15T09:00:00+00:00",
                    "daysUntilReview": 5
                }
            }
        400: Missing body or answer count mismatch
        403: User is not a student
        404: Quiz not found
        500: Server error
    """
    try:
        data = request.get_json(silent=True)

        if not data:
            return jsonify({'error': 'No JSON data provided'}), 400

        answers = data.get('answers')
        if not isinstance(answers, list):
            return jsonify({'error': 'Missing required field: answers'}), 400

        result = QuizSubmissionService.submit(current_user, quiz_id, answers)
        db.session.commit()

        result.pop('attempt')
        return jsonify(result)

    except QuizNotFoundError as e:
        return jsonify({'error': str(e)}), 404
    except PermissionError as e:
        return jsonify({'error': str(e)}), 403
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Error submitting quiz_id={quiz_id}: {str(e)}", exc_info=True)
        db.session.rollback()
        return jsonify({'error': f'Server error: {str(e)}'}), 500
