from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import bindparam, text
from werkzeug.security import generate_password_hash, check_password_hash

from models import db

# =====================================================
# SQL HELPERS
# =====================================================
# Every statement is parameterized; ":now" is bound as a DateTime.

def _statement(sql: str):
    stmt = text(sql)
    if ":now" in sql:
        stmt = stmt.bindparams(bindparam("now", type_=db.DateTime))
    return stmt


_NEIGHBOUR_VIDEO = {
    "up": 'SELECT * FROM "Video" WHERE project_id = :project_id AND video_order < :order '
          'ORDER BY video_order DESC LIMIT 1',
    "down": 'SELECT * FROM "Video" WHERE project_id = :project_id AND video_order > :order '
            'ORDER BY video_order ASC LIMIT 1',
}

_NEIGHBOUR_CATEGORY = {
    "up": 'SELECT * FROM "Category" WHERE category_order < :order '
          'ORDER BY category_order DESC LIMIT 1',
    "down": 'SELECT * FROM "Category" WHERE category_order > :order '
            'ORDER BY category_order ASC LIMIT 1',
}


class Database:
    """Persistence gateway: one parameterized statement per domain operation.

    Reads return plain dicts (or lists of them); single-row reads return
    None when nothing matches. Each write operation commits once at its end.
    """

    def _fetch_all(self, sql, **params) -> list:
        result = db.session.execute(_statement(sql), params)
        return [dict(row) for row in result.mappings()]

    def _fetch_one(self, sql, **params) -> Optional[dict]:
        row = db.session.execute(_statement(sql), params).mappings().first()
        return dict(row) if row is not None else None

    def _scalar(self, sql, **params):
        return db.session.execute(_statement(sql), params).scalar()

    def _execute(self, sql, **params):
        return db.session.execute(_statement(sql), params)

    # =====================================================
    # PROJECTS
    # =====================================================
    def get_projects(self):
        return self._fetch_all('SELECT * FROM "Project" ORDER BY project_id')

    def get_project_by_id(self, project_id):
        return self._fetch_one('SELECT * FROM "Project" WHERE project_id = :project_id',
                               project_id=project_id)

    def get_projects_by_category_id(self, category_id):
        return self._fetch_all('SELECT * FROM "Project" WHERE category_id = :category_id',
                               category_id=category_id)

    def create_project(self, title, description, category_id) -> int:
        project_id = self._scalar(
            'INSERT INTO "Project" (project_title, project_image, project_description, category_id) '
            "VALUES (:title, 'test.png', :description, :category_id) RETURNING project_id",
            title=title, description=description, category_id=category_id,
        )
        db.session.commit()
        current_app.logger.info("Created project %s", project_id)
        return project_id

    def update_project(self, project_id, title, description, category_id):
        self._execute(
            'UPDATE "Project" SET project_title = :title, project_description = :description, '
            "category_id = :category_id WHERE project_id = :project_id",
            title=title, description=description, category_id=category_id, project_id=project_id,
        )
        db.session.commit()

    def upload_project_image(self, file_path, project_id):
        self._execute('UPDATE "Project" SET project_image = :path WHERE project_id = :project_id',
                      path=file_path, project_id=project_id)
        db.session.commit()

    def remove_project(self, project_id, commit=True):
        """Delete progress rows, then videos, then the project itself."""
        current_app.logger.debug("Removing project %s", project_id)
        self._execute('DELETE FROM "User_Project" WHERE project_id = :project_id',
                      project_id=project_id)
        self._execute('DELETE FROM "Video" WHERE project_id = :project_id',
                      project_id=project_id)
        self._execute('DELETE FROM "Project" WHERE project_id = :project_id',
                      project_id=project_id)
        if commit:
            db.session.commit()
            current_app.logger.info("Removed project %s", project_id)

    # =====================================================
    # VIDEOS
    # =====================================================
    def get_videos(self, project_id):
        return self._fetch_all(
            'SELECT * FROM "Video" WHERE project_id = :project_id ORDER BY video_order ASC',
            project_id=project_id,
        )

    def get_video_by_id(self, video_id):
        return self._fetch_one('SELECT * FROM "Video" WHERE video_id = :video_id',
                               video_id=video_id)

    def get_max_order(self, project_id):
        return self._scalar('SELECT MAX(video_order) FROM "Video" WHERE project_id = :project_id',
                            project_id=project_id)

    def get_min_order(self, project_id):
        return self._scalar('SELECT MIN(video_order) FROM "Video" WHERE project_id = :project_id',
                            project_id=project_id)

    def add_video(self, project_id, title, url) -> int:
        """Append a video after the project's last one and return its order."""
        order = self._scalar(
            'SELECT COALESCE(MAX(video_order), 0) + 1 FROM "Video" WHERE project_id = :project_id',
            project_id=project_id,
        )
        self._execute(
            'INSERT INTO "Video" (project_id, video_title, video_url, video_order) '
            "VALUES (:project_id, :title, :url, :order)",
            project_id=project_id, title=title, url=url, order=order,
        )
        db.session.commit()
        current_app.logger.info("Added video %r to project %s at order %s", title, project_id, order)
        return order

    def update_video_by_id(self, video_id, title, url):
        self._execute('UPDATE "Video" SET video_title = :title, video_url = :url WHERE video_id = :video_id',
                      title=title, url=url, video_id=video_id)
        db.session.commit()

    def remove_video(self, video_id):
        self._execute(
            'UPDATE "User_Project" SET user_project_bookmark = NULL WHERE user_project_bookmark = :video_id',
            video_id=video_id,
        )
        self._execute('DELETE FROM "Video" WHERE video_id = :video_id', video_id=video_id)
        db.session.commit()
        current_app.logger.info("Removed video %s", video_id)

    def move_video_up_or_down(self, video_id, direction, project_id) -> bool:
        """Swap a video's order with its closest neighbour in the project.

        Returns False without touching anything when the video is unknown or
        already first (``up``) / last (``down``). The two updates are not
        isolated from a concurrent reorder of the same project.
        """
        if direction not in _NEIGHBOUR_VIDEO:
            raise ValueError(f"direction must be 'up' or 'down', not {direction!r}")

        current = self.get_video_by_id(video_id)
        if current is None or current["project_id"] != project_id:
            return False

        other = self._fetch_one(_NEIGHBOUR_VIDEO[direction],
                                project_id=project_id, order=current["video_order"])
        if other is None:
            return False

        swap = 'UPDATE "Video" SET video_order = :order WHERE video_id = :video_id'
        self._execute(swap, order=other["video_order"], video_id=current["video_id"])
        self._execute(swap, order=current["video_order"], video_id=other["video_id"])
        db.session.commit()
        return True

    # =====================================================
    # CATEGORIES
    # =====================================================
    def get_categories(self):
        return self._fetch_all('SELECT * FROM "Category" ORDER BY category_order ASC')

    def get_category_by_id(self, category_id):
        return self._fetch_one('SELECT * FROM "Category" WHERE category_id = :category_id',
                               category_id=category_id)

    def add_category(self, title, description) -> int:
        order = self._scalar('SELECT COALESCE(MAX(category_order), 0) + 1 FROM "Category"')
        category_id = self._scalar(
            'INSERT INTO "Category" (category_title, category_description, category_order) '
            "VALUES (:title, :description, :order) RETURNING category_id",
            title=title, description=description, order=order,
        )
        db.session.commit()
        current_app.logger.info("Added category %s at order %s", category_id, order)
        return category_id

    def update_category(self, category_id, title, description):
        self._execute(
            'UPDATE "Category" SET category_title = :title, category_description = :description '
            "WHERE category_id = :category_id",
            title=title, description=description, category_id=category_id,
        )
        db.session.commit()

    def move_category_up_or_down(self, category_id, direction) -> bool:
        if direction not in _NEIGHBOUR_CATEGORY:
            raise ValueError(f"direction must be 'up' or 'down', not {direction!r}")

        current = self.get_category_by_id(category_id)
        if current is None:
            return False
        other = self._fetch_one(_NEIGHBOUR_CATEGORY[direction], order=current["category_order"])
        if other is None:
            return False

        swap = 'UPDATE "Category" SET category_order = :order WHERE category_id = :category_id'
        self._execute(swap, order=other["category_order"], category_id=current["category_id"])
        self._execute(swap, order=current["category_order"], category_id=other["category_id"])
        db.session.commit()
        return True

    def remove_category(self, category_id):
        """Remove every project in the category, then the category."""
        for project in self.get_projects_by_category_id(category_id):
            self.remove_project(project["project_id"], commit=False)
        self._execute('DELETE FROM "Category" WHERE category_id = :category_id',
                      category_id=category_id)
        db.session.commit()
        current_app.logger.info("Removed category %s", category_id)

    # =====================================================
    # SESSIONS
    # =====================================================
    def get_sessions(self):
        return self._fetch_all('SELECT * FROM "Session" ORDER BY session_id')

    def get_session(self, user_id):
        """Sessions the user is a member of, least recently logged in first."""
        return self._fetch_all(
            'SELECT "Session".* FROM "Session" '
            'INNER JOIN "User_Session" ON "Session".session_id = "User_Session".session_id '
            'WHERE "User_Session".user_id = :user_id '
            'ORDER BY "User_Session".user_session_last_login ASC',
            user_id=user_id,
        )

    def get_session_by_id(self, session_id):
        return self._fetch_one('SELECT * FROM "Session" WHERE session_id = :session_id',
                               session_id=session_id)

    def create_session(self, title, description) -> int:
        session_id = self._scalar(
            'INSERT INTO "Session" (session_title, session_description) '
            "VALUES (:title, :description) RETURNING session_id",
            title=title, description=description,
        )
        db.session.commit()
        current_app.logger.info("Created session %s", session_id)
        return session_id

    def update_session(self, session_id, title, description):
        self._execute(
            'UPDATE "Session" SET session_title = :title, session_description = :description '
            "WHERE session_id = :session_id",
            title=title, description=description, session_id=session_id,
        )
        db.session.commit()

    def delete_session(self, session_id):
        self._execute('DELETE FROM "User_Session" WHERE session_id = :session_id',
                      session_id=session_id)
        self._execute('DELETE FROM "Session" WHERE session_id = :session_id',
                      session_id=session_id)
        db.session.commit()
        current_app.logger.info("Deleted session %s", session_id)

    def get_users_by_session(self, session_id):
        return self._fetch_all(
            'SELECT "User".user_id, "User".user_nickname FROM "User" '
            'INNER JOIN "User_Session" ON "User".user_id = "User_Session".user_id '
            'WHERE "User_Session".session_id = :session_id ORDER BY "User".user_id',
            session_id=session_id,
        )

    def get_user_session_permission(self, user_id, session_id) -> Optional[str]:
        return self._scalar(
            'SELECT user_session_permission FROM "User_Session" '
            "WHERE user_id = :user_id AND session_id = :session_id",
            user_id=user_id, session_id=session_id,
        )

    def record_login(self, user_id, session_id):
        self._execute(
            'UPDATE "User_Session" SET user_session_last_login = :now '
            "WHERE user_id = :user_id AND session_id = :session_id",
            now=datetime.now(), user_id=user_id, session_id=session_id,
        )
        db.session.commit()

    # =====================================================
    # USERS
    # =====================================================
    def get_user_by_id(self, user_id):
        return self._fetch_one('SELECT * FROM "User" WHERE user_id = :user_id', user_id=user_id)

    def get_user_by_name(self, user_name):
        return self._fetch_one('SELECT * FROM "User" WHERE user_name = :user_name',
                               user_name=user_name)

    def get_user_by_login(self, user_name, password):
        user = self.get_user_by_name(user_name)
        if user is None or not check_password_hash(user["user_password"], password):
            return None
        return user

    def _insert_user(self, name, nickname, password, is_admin):
        return self._scalar(
            'INSERT INTO "User" (user_name, user_nickname, user_password, user_is_admin) '
            "VALUES (:name, :nickname, :password, :is_admin) RETURNING user_id",
            name=name, nickname=nickname,
            password=generate_password_hash(password), is_admin=is_admin,
        )

    def create_user(self, session_id, name, nickname, password) -> int:
        """Create a regular user and make them a member of the session."""
        user_id = self._insert_user(name, nickname, password, False)
        self._execute(
            'INSERT INTO "User_Session" (user_id, session_id, user_session_joined, '
            "user_session_last_login, user_session_permission) "
            "VALUES (:user_id, :session_id, :now, NULL, 'user')",
            user_id=user_id, session_id=session_id, now=datetime.now(),
        )
        db.session.commit()
        current_app.logger.info("Created user %s in session %s", user_id, session_id)
        return user_id

    def create_admin(self, name, nickname, password) -> int:
        user_id = self._insert_user(name, nickname, password, True)
        db.session.commit()
        return user_id

    def update_user(self, user_id, name, nickname, password):
        self._execute(
            'UPDATE "User" SET user_name = :name, user_nickname = :nickname, user_password = :password '
            "WHERE user_id = :user_id",
            name=name, nickname=nickname, password=generate_password_hash(password), user_id=user_id,
        )
        db.session.commit()

    def remove_user(self, user_id):
        """Delete memberships, then progress rows, then the user."""
        self._execute('DELETE FROM "User_Session" WHERE user_id = :user_id', user_id=user_id)
        self._execute('DELETE FROM "User_Project" WHERE user_id = :user_id', user_id=user_id)
        self._execute('DELETE FROM "User" WHERE user_id = :user_id', user_id=user_id)
        db.session.commit()
        current_app.logger.info("Removed user %s", user_id)

    delete_user = remove_user

    # =====================================================
    # PROJECT PROGRESS
    # =====================================================
    def get_user_project_date(self, user_id, project_id):
        return self._scalar(
            'SELECT MAX(user_project_date_complete) FROM "User_Project" '
            "WHERE user_id = :user_id AND project_id = :project_id",
            user_id=user_id, project_id=project_id,
        )

    def give_user_project(self, user_id, project_id):
        # Update existing rows, then always insert: repeated calls add rows.
        self._execute(
            'UPDATE "User_Project" SET user_project_date_complete = :now '
            "WHERE user_id = :user_id AND project_id = :project_id",
            now=datetime.now(), user_id=user_id, project_id=project_id,
        )
        self._execute(
            'INSERT INTO "User_Project" (user_id, project_id, user_project_bookmark, '
            "user_project_date_complete) VALUES (:user_id, :project_id, NULL, :now)",
            user_id=user_id, project_id=project_id, now=datetime.now(),
        )
        db.session.commit()

    def remove_user_project(self, user_id, project_id):
        self._execute(
            'UPDATE "User_Project" SET user_project_date_complete = NULL '
            "WHERE user_id = :user_id AND project_id = :project_id",
            user_id=user_id, project_id=project_id,
        )
        db.session.commit()

    def set_bookmark(self, user_id, project_id, video_id):
        updated = self._execute(
            'UPDATE "User_Project" SET user_project_bookmark = :video_id '
            "WHERE user_id = :user_id AND project_id = :project_id",
            video_id=video_id, user_id=user_id, project_id=project_id,
        )
        if updated.rowcount == 0:
            self._execute(
                'INSERT INTO "User_Project" (user_id, project_id, user_project_bookmark, '
                "user_project_date_complete) VALUES (:user_id, :project_id, :video_id, NULL)",
                user_id=user_id, project_id=project_id, video_id=video_id,
            )
        db.session.commit()

    def get_bookmark(self, user_id, project_id):
        return self._scalar(
            'SELECT user_project_bookmark FROM "User_Project" '
            "WHERE user_id = :user_id AND project_id = :project_id "
            "AND user_project_bookmark IS NOT NULL LIMIT 1",
            user_id=user_id, project_id=project_id,
        )
