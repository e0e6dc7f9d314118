"""
Shared fixtures: in-memory SQLite app, test client, gateway and seeded users.

The database URL must be set before the app module is imported because the
engine is created when Flask-SQLAlchemy is initialised.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from flask import template_rendered
from sqlalchemy import event, text

from app import app as flask_app, database as gateway
from auth import Identity
from models import db


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    with flask_app.app_context():
        if not event.contains(db.engine, "connect", _enable_foreign_keys):
            event.listen(db.engine, "connect", _enable_foreign_keys)
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def database(app):
    return gateway


@pytest.fixture
def count_rows(app):
    """Count rows in a table matching simple equality filters."""

    def _count(table, **filters):
        sql = f'SELECT COUNT(*) FROM "{table}"'
        if filters:
            sql += " WHERE " + " AND ".join(f"{column} = :{column}" for column in filters)
        return db.session.execute(text(sql), filters).scalar()

    return _count


@pytest.fixture
def captured_templates(app):
    recorded = []

    def record(sender, template, context, **extra):
        recorded.append((template, context))

    template_rendered.connect(record, app)
    yield recorded
    template_rendered.disconnect(record, app)


@pytest.fixture
def admin_id(database):
    return database.create_admin("admin", "Admin", "admin123")


@pytest.fixture
def login_as(client, database):
    def _login(user_id):
        identity = Identity.from_row(database.get_user_by_id(user_id))
        with client.session_transaction() as sess:
            sess["user"] = identity.to_dict()
        return identity

    return _login


@pytest.fixture
def admin_client(client, admin_id, login_as):
    login_as(admin_id)
    return client
