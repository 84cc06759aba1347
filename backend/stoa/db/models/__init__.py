"""ORM models exposed for metadata discovery."""
from stoa.db.models.conversation import Conversation
from stoa.db.models.plan import PlanRecord
from stoa.db.models.user import User

__all__ = [
    "Conversation",
    "PlanRecord",
    "User",
]
