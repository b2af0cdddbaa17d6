from dataclasses import dataclass
from typing import Optional

from flask_login import current_user


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str


def verify_connection() -> Optional[Identity]:
    """Resolve the identity behind the connection being handshaked.

    Flask-SocketIO exposes the HTTP session of the handshake request, so a
    connection is trusted exactly when the browser already logged in.
    """
    if not current_user or not current_user.is_authenticated:
        return None
    return Identity(user_id=current_user.id, username=current_user.username)
