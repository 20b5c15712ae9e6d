"""Database utilities and models."""

from mindy.db.base import Base
from mindy.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
