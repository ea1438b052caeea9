"""
Model mixins for shared functionality across entities.
"""

from backend.src.models.mixins.identity import IdentityMixin, new_id

__all__ = ["IdentityMixin", "new_id"]
