"""Static operator credential check."""

from __future__ import annotations

import logging
import secrets

logger = logging.getLogger(__name__)


def check_credentials(username: str, password: str, expected_username: str, expected_password: str) -> bool:
    """Compare submitted credentials with the configured ones in constant time.

    An empty configured password never matches, so an unconfigured deployment
    cannot be logged into.
    """
    if not expected_password:
        logger.warning("Login attempted but no operator password is configured")
        return False
    user_ok = secrets.compare_digest(username.encode(), expected_username.encode())
    password_ok = secrets.compare_digest(password.encode(), expected_password.encode())
    return user_ok and password_ok
