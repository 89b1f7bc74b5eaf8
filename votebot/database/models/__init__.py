from .user import User
from .collection import Collection
from .submission import Submission
from .vote import Vote
from .winner import Winner
from .phase_override import Phase, PhaseOverride
from .blocked_user import BlockedUser
from .logs import AdminActionLog

__all__ = [
    "User",
    "Collection",
    "Submission",
    "Vote",
    "Winner",
    "Phase",
    "PhaseOverride",
    "BlockedUser",
    "AdminActionLog",
]
