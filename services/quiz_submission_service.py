"""
Quiz Submission Service - grades a quiz and records the attempt.

Each submission is scored by exact answer comparison, passed through the
retention algorithm to estimate a new learning strength and next review date,
and appended to the learner's attempt history. Existing attempts are never
modified.
"""

import logging
from datetime import datetime
from typing import List, Optional

from models import db
from models.quiz import Quiz
from models.quiz_attempt import QuizAttempt
from models.user import User
from services.retention_algorithm import RetentionAlgorithm, round_half_up, utc_now

logger = logging.getLogger(__name__)


class QuizNotFoundError(ValueError):
    """Raised when a submission references a quiz that does not exist"""


class QuizSubmissionService:
    """Grades quiz submissions and appends QuizAttempt records"""

    @staticmethod
    def grade_answers(questions: List[dict], answers: list) -> dict:
        """
        Compare each answer with the question's correct_answer.

        Args:
            questions: Quiz questions, each with 'correct_answer' and optional 'explanation'
            answers: Learner answers in question order

        Returns:
            {
                'score': int,      # percentage 0-100
                'correct': int,
                'total': int,
                'results': [{'isCorrect', 'userAnswer', 'correctAnswer', 'explanation'}, ...]
            }

        Raises:
            ValueError: If the answer count does not match the question count
        """
        if answers is None or len(answers) != len(questions):
            raise ValueError(
                'Invalid submission: number of answers does not match number of questions'
            )

        results = []
        correct_count = 0
        for question, answer in zip(questions, answers):
            is_correct = question.get('correct_answer') == answer
            if is_correct:
                correct_count += 1
            results.append({
                'isCorrect': is_correct,
                'userAnswer': answer,
                'correctAnswer': question.get('correct_answer'),
                'explanation': question.get('explanation'),
            })

        total = len(questions)
        score = round_half_up(correct_count / total * 100) if total else 0

        return {
            'score': score,
            'correct': correct_count,
            'total': total,
            'results': results,
        }

    @staticmethod
    def get_attempt_history(user_id: int, quiz_id: int) -> List[QuizAttempt]:
        """Previous attempts of a learner on a quiz, oldest first"""
        return QuizAttempt.query.filter_by(user_id=user_id, quiz_id=quiz_id).order_by(
            QuizAttempt.attempted_at.asc(),
            QuizAttempt.id.asc()
        ).all()

    @staticmethod
    def submit(user: User, quiz_id: int, answers: list, now: Optional[datetime] = None) -> dict:
        """
        Grade a submission and record it with retention data.

        Workflow:
        1. Load the quiz, grade the answers, then check the learner's role
        2. Load the learner's previous attempts on this quiz
        3. Estimate learning strength from the previous and current scores
        4. Schedule the next review from now
        5. Add the QuizAttempt to the session (the caller commits)

        Args:
            user: The learner submitting the quiz
            quiz_id: The quiz being submitted
            answers: Answers in question order
            now: Submission instant (defaults to the current UTC time)

        Returns:
            {
                'score', 'correct', 'total', 'results',
                'retentionData': {'strength', 'retention', 'nextReviewDate', 'daysUntilReview'},
                'attempt': QuizAttempt
            }

        Raises:
            QuizNotFoundError: If the quiz does not exist
            PermissionError: If the user is not a student
            ValueError: If the answers do not match the questions
        """
        if now is None:
            now = utc_now()

        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            logger.error(f"Quiz not found: quiz_id={quiz_id}")
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")

        grading = QuizSubmissionService.grade_answers(quiz.questions or [], answers)

        if not user.is_student:
            logger.warning(f"Non-student user_id={user.id} attempted to submit quiz_id={quiz_id}")
            raise PermissionError('Only students can submit quizzes')

        history = [
            attempt.to_record()
            for attempt in QuizSubmissionService.get_attempt_history(user.id, quiz_id)
        ]
        update = RetentionAlgorithm.update_learning_strength(history, grading['score'], now)
        next_review_date = RetentionAlgorithm.calculate_next_review_date(update.strength, now)
        days_until_review = RetentionAlgorithm.calculate_next_review_days(update.strength)

        attempt = QuizAttempt(
            user_id=user.id,
            quiz_id=quiz_id,
            attempted_at=now,
            score=grading['score'],
            correct_count=grading['correct'],
            total_questions=grading['total'],
            strength=update.strength,
            retention=update.retention,
            next_review_at=next_review_date,
            time_since_last_review=update.time_since_last_review,
        )
        db.session.add(attempt)
        db.session.flush()

        logger.info(
            f"Quiz attempt recorded: user_id={user.id}, quiz_id={quiz_id}, score={grading['score']}%, "
            f"S={update.strength:.2f} days, next_review={next_review_date.date().isoformat()}"
        )

        return {
            **grading,
            'retentionData': {
                'strength': update.strength,
                'retention': update.retention,
                'nextReviewDate': next_review_date.isoformat(),
                'daysUntilReview': days_until_review,
            },
            'attempt': attempt,
        }
