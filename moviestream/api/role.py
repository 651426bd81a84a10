from enum import Enum


class UserRole(str, Enum):
    """
    Roles a registered user can have. Stored by name in the DB.
    """
    USER = "user"
    ADMIN = "admin"
