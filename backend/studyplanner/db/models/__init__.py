"""ORM models exposed for metadata discovery."""
from studyplanner.db.models.study_plan import StudyPlan
from studyplanner.db.models.user import User

__all__ = [
    "StudyPlan",
    "User",
]
