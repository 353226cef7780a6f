from app.models.course import Course, Lesson
from app.models.progress import Progress
from app.models.user import User
from app.models.quiz import Quiz
from app.models.question import QuizOption, QuizQuestion
from app.models.quiz_result import QuizResult

__all__ = [
    "Course",
    "Lesson",
    "Progress",
    "User",
    "Quiz",
    "QuizQuestion",
    "QuizOption",
    "QuizResult",
]
