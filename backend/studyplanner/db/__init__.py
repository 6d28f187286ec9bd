"""Database utilities and models."""

from studyplanner.db.base import Base
from studyplanner.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
