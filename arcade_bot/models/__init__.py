# Central import surface for SQLModel table registration.
# Keeping these imports ensures init_db() sees all models and creates tables.

from .user import User
from .redeemable_role import RedeemableRole
from .user_role import UserRole

__all__ = [
    "User",
    "RedeemableRole",
    "UserRole",
]
