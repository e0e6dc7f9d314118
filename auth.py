from functools import wraps
from typing import Optional

from flask import current_app, flash, g, redirect, session, url_for


class Identity:
    """The authenticated user kept in the web session after login."""

    def __init__(self, user_id, name, nickname, is_admin=False):
        self.user_id = user_id
        self.name = name
        self.nickname = nickname
        self.is_admin = bool(is_admin)

    @classmethod
    def from_row(cls, row):
        return cls(row["user_id"], row["user_name"], row["user_nickname"], row["user_is_admin"])

    @classmethod
    def from_dict(cls, data):
        return cls(data["user_id"], data["name"], data["nickname"], data.get("is_admin", False))

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "name": self.name,
            "nickname": self.nickname,
            "is_admin": self.is_admin,
        }

    def __repr__(self):
        return f"<Identity {self.user_id} {self.name}>"


def load_identity():
    """Put the current identity (or None) on ``g`` for this request."""
    data = session.get("user")
    g.identity = Identity.from_dict(data) if data else None


def current_identity() -> Optional[Identity]:
    return g.get("identity")


def login_user(identity: Identity):
    session.clear()
    session["user"] = identity.to_dict()
    g.identity = identity
    current_app.logger.info("User %s logged in", identity.user_id)


def logout_user():
    identity = current_identity()
    session.clear()
    g.identity = None
    if identity is not None:
        current_app.logger.info("User %s logged out", identity.user_id)


# =====================================================
# DECORATORS
# =====================================================
def login_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if current_identity() is None:
            flash("Login required.", "danger")
            return redirect(url_for("login"))
        return func(*args, **kwargs)
    return wrapper


def admin_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        identity = current_identity()
        if identity is None or not identity.is_admin:
            flash("Admin access required.", "danger")
            return redirect(url_for("login"))
        return func(*args, **kwargs)
    return wrapper
