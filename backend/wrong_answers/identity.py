"""Identity of the player behind the current request (Flask-Login session)."""

from typing import Optional

from flask_login import current_user


def current_user_id() -> Optional[str]:
    if not current_user or not current_user.is_authenticated:
        return None
    return str(current_user.id)


def current_username() -> Optional[str]:
    if not current_user or not current_user.is_authenticated:
        return None
    return current_user.username
