"""Re-export all models so Base.metadata sees them."""

from course_payments.db.models.course import Course
from course_payments.db.models.enrollment import Enrollment

__all__ = [
    "Course",
    "Enrollment",
]
