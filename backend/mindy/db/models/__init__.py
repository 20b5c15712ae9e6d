"""ORM models exposed for metadata discovery."""
from mindy.db.models.activity_log import ActivityLog
from mindy.db.models.chat_analysis import ChatAnalysis
from mindy.db.models.routine import Routine
from mindy.db.models.user import User

__all__ = [
    "ActivityLog",
    "ChatAnalysis",
    "Routine",
    "User",
]
