import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ConflictError, NotFoundError
from ..models.catalog import TestQuestion
from ..models.proctoring_violations import ProctoringViolation
from ..models.test import TestResponse, TestSession, TestSessionQuestion, SessionStatus
from ..models.user import User
from ..utils.timezone import utc_now

logger = logging.getLogger(__name__)


class ReviewService:
    """Admin scoring of completed test sessions."""

    def __init__(self, db: Session):
        self.db = db

    def _get_session(self, session_id: str) -> TestSession:
        session = self.db.query(TestSession).filter(TestSession.id == session_id).first()
        if not session:
            raise NotFoundError("Test session not found")
        return session

    def _delivered(self, session_id: str):
        rows = (
            self.db.query(TestQuestion, TestResponse)
            .join(TestSessionQuestion, TestSessionQuestion.question_id == TestQuestion.id)
            .outerjoin(
                TestResponse,
                (TestResponse.question_id == TestQuestion.id) & (TestResponse.test_session_id == session_id),
            )
            .filter(TestSessionQuestion.session_id == session_id)
            .order_by(TestSessionQuestion.position)
            .all()
        )
        return rows

    def get_review(self, session_id: str) -> dict:
        session = self._get_session(session_id)
        candidate = self.db.query(User).filter(User.id == session.candidate_id).first()
        violations = (
            self.db.query(ProctoringViolation)
            .filter(ProctoringViolation.session_id == session_id)
            .order_by(ProctoringViolation.timestamp)
            .all()
        )
        answers = [
            {
                "question_id": question.id,
                "question": question.question,
                "is_multiple_choice": question.is_multiple_choice,
                "correct_answer": question.correct_answer,
                "marks": question.marks,
                "answer": response.answer if response else None,
                "marks_awarded": response.marks_awarded if response else None,
            }
            for question, response in self._delivered(session_id)
        ]
        return {
            "session": session,
            "candidate_email": candidate.email,
            "candidate_name": candidate.full_name,
            "answers": answers,
            "violations": violations,
        }

    def _has_other_passed_official(self, session: TestSession) -> bool:
        return self.db.query(TestSession).filter(
            TestSession.candidate_id == session.candidate_id,
            TestSession.id != session.id,
            TestSession.is_practice.is_(False),
            TestSession.review_status == "passed",
        ).first() is not None

    def review(self, session_id: str, reviewer: User, free_text_marks: Dict[int, float]) -> dict:
        """
        Score a completed session.

        Multiple-choice answers are marked against the answer key; free-text
        answers take the reviewer's marks, capped at the question's marks.
        Unanswered questions score zero.
        """
        session = self._get_session(session_id)
        if session.status != SessionStatus.COMPLETED:
            raise ConflictError("Only submitted tests can be reviewed")

        rows = self._delivered(session_id)
        free_text_ids = {question.id for question, _ in rows if not question.is_multiple_choice}
        unknown = set(free_text_marks) - free_text_ids
        if unknown:
            raise ValueError(f"Marks given for questions that are not free-text questions of this test: {sorted(unknown)}")

        total_marks = 0
        earned = 0.0
        for question, response in rows:
            total_marks += question.marks
            if response is None:
                continue
            if question.is_multiple_choice:
                awarded = float(question.marks) if response.answer == question.correct_answer else 0.0
            else:
                awarded = float(free_text_marks.get(question.id, 0.0))
                if awarded < 0 or awarded > question.marks:
                    raise ValueError(f"Marks for question {question.id} must be between 0 and {question.marks}")
            response.marks_awarded = awarded
            earned += awarded

        score = round(earned * 100 / total_marks, 2) if total_marks else 0.0
        passed = score >= settings.passing_score

        session.score = score
        session.review_status = "passed" if passed else "failed"
        session.reviewed_by = reviewer.id
        session.reviewed_at = utc_now()

        candidate = self.db.query(User).filter(User.id == session.candidate_id).first()
        verified_now = passed and not session.is_practice and not candidate.is_verified_talent
        if not session.is_practice:
            # a re-review can overturn an earlier pass
            candidate.is_verified_talent = passed or self._has_other_passed_official(session)
        self.db.commit()
        logger.info(f"Session {session_id} reviewed by {reviewer.email}: {score} ({session.review_status})")

        if verified_now:
            from ..tasks.notifications import send_test_passed_email
            try:
                send_test_passed_email.delay(candidate.email, candidate.full_name, score)
            except Exception as e:
                logger.error(f"Failed to queue test-passed email for {candidate.email}: {e}")

        return {
            "session_id": session.id,
            "score": score,
            "passed": passed,
            "review_status": session.review_status,
        }

    def list_sessions(self, review_status: Optional[str] = None, limit: int = 100) -> List[TestSession]:
        query = self.db.query(TestSession).filter(TestSession.status == SessionStatus.COMPLETED)
        if review_status:
            query = query.filter(TestSession.review_status == review_status)
        return query.order_by(TestSession.end_time.desc()).limit(limit).all()
