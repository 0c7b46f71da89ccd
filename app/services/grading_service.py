"""
Lesson quiz grading service
Multiple choice answers graded by exact match
"""
import logging
from typing import Any, Dict, List, Tuple

from app.schemas.lesson import Question

logger = logging.getLogger(__name__)


class GradingService:
    """
    Service for grading quiz lesson submissions

    Answers are option indexes; letters A-D are accepted and converted.
    Unanswered questions count as incorrect.
    """

    def grade_lesson(
        self,
        questions: List[Question],
        answers: Dict[str, Any]
    ) -> Tuple[int, List[Dict[str, Any]], str]:
        """
        Grade a complete quiz lesson submission

        Args:
            questions: Validated lesson questions
            answers: User's answers {question_id: answer}

        Returns:
            Tuple of (correct_count, breakdown, feedback)
        """
        breakdown = []
        correct_count = 0
        category_results = {}  # {category: [is_correct]}

        for question in questions:
            user_answer = answers.get(question.id)
            is_correct, feedback = self._grade_mcq(question, user_answer)

            if is_correct:
                correct_count += 1

            category = question.category or "general"
            category_results.setdefault(category, []).append(is_correct)

            breakdown.append({
                "question_id": question.id,
                "user_answer": user_answer,
                "correct_answer": question.correct_answer,
                "is_correct": is_correct,
                "explanation": question.explanation,
                "feedback": feedback
            })

        # Categories answered correctly less than 60% of the time
        weak_categories = [
            category for category, results in category_results.items()
            if sum(results) / len(results) < 0.6
        ]

        feedback = self._generate_feedback(correct_count, len(questions), weak_categories)

        logger.info(f"Lesson graded: {correct_count}/{len(questions)}, weak categories: {weak_categories}")

        return correct_count, breakdown, feedback

    def _grade_mcq(self, question: Question, user_answer: Any) -> Tuple[bool, str]:
        """
        Grade MCQ with exact match

        Returns:
            Tuple of (is_correct, feedback)
        """
        if user_answer is None:
            return False, "No answer provided"

        # JSON true/false would otherwise compare equal to options 1 and 0
        if isinstance(user_answer, bool):
            return False, "Invalid answer format"

        # Handle different answer formats
        if isinstance(user_answer, str):
            letter = user_answer.strip().upper()
            if len(letter) == 1 and "A" <= letter <= "Z":
                user_answer = ord(letter) - ord("A")
            elif letter.isdigit():
                user_answer = int(letter)

        if user_answer == question.correct_answer:
            return True, "Correct!"

        correct_text = question.options[question.correct_answer]
        return False, f"Incorrect. Correct answer: {correct_text}"

    def _generate_feedback(
        self,
        correct: int,
        total: int,
        weak_categories: List[str]
    ) -> str:
        """Generate overall feedback message"""

        percentage = (correct / total * 100) if total > 0 else 0

        feedback_parts = []

        if percentage >= 90:
            feedback_parts.append("Black belt material! You nailed this lesson.")
        elif percentage >= 75:
            feedback_parts.append("Great work! Your money skills are getting stronger.")
        elif percentage >= 60:
            feedback_parts.append("Good effort. Your streak is safe.")
        else:
            feedback_parts.append("Keep training. Review the explanations and try again.")

        if weak_categories:
            feedback_parts.append(f"Focus on: {', '.join(weak_categories)}.")

        return " ".join(feedback_parts)


# Global instance
grading_service = GradingService()
