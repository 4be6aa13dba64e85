# backend/rideshare/api/dependencies/auth.py
"""
Authentication dependencies.

Routes receive the caller's opaque user id and pass it explicitly into the
service layer.
"""

from ...auth import get_current_user_id, require_admin, verify_webhook_secret

__all__ = ["get_current_user_id", "require_admin", "verify_webhook_secret"]
