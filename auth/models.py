"""This module re-exports the user-facing models from the database package for use in authentication-related code.
"""

from database.models import Role, User  # noqa: F401

__all__ = ["Role", "User"]
