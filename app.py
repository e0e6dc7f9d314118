# ==============================
# IMPORTS
# ==============================
import os
from datetime import datetime

import click
from flask import Flask, render_template, request, redirect, url_for, flash, abort, g
from flask_migrate import Migrate
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from models import db
from database import Database
from auth import (
    Identity, load_identity, login_user, logout_user, login_required, admin_required,
)

# ==============================
# APP CONFIGURATION
# ==============================
app = Flask(__name__)
app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret")

# Database configuration
database_url = os.environ.get("DATABASE_URL")
if database_url and database_url.startswith("postgres://"):
    database_url = database_url.replace("postgres://", "postgresql://", 1)

app.config["SQLALCHEMY_DATABASE_URI"] = database_url or "sqlite:///catalog.db"
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

app.logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

# ==============================
# EXTENSIONS INITIALIZATION
# ==============================
db.init_app(app)
migrate = Migrate(app, db)
database = Database()

app.before_request(load_identity)

# ==============================
# CONTEXT PROCESSORS
# ==============================
@app.context_processor
def inject_globals():
    """Provide global variables to templates."""
    return dict(datetime=datetime, identity=g.get("identity"))

# =====================================================
# HELPERS
# =====================================================
class ValidationError(Exception):
    """A submitted action is missing one of its required fields."""

    def __init__(self, missing):
        super().__init__("Missing required fields: " + ", ".join(missing))
        self.missing = missing


def require_fields(form, *names):
    """Return the stripped values of ``names`` or raise ValidationError."""
    values = [(form.get(name) or "").strip() for name in names]
    missing = [name for name, value in zip(names, values) if not value]
    if missing:
        raise ValidationError(missing)
    return values


def require_id(form, name, default=None):
    """Parse an integer id field; blank uses ``default``, garbage is invalid."""
    raw = (form.get(name) or "").strip()
    if not raw and default is not None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError([name]) from None


def require_direction(form):
    direction = form.get("direction")
    if direction not in ("up", "down"):
        raise ValidationError(["direction"])
    return direction


def first_video(videos):
    # videos arrive sorted by video_order
    for video in videos:
        if video["video_order"] == 1:
            return video
    return None


def check_database():
    with app.app_context():
        try:
            db.session.execute(text("SELECT 1"))
        except OperationalError as e:
            app.logger.error("Database connection failed: %s", e)
            return False
    return True

# =====================================================
# FRONTEND ROUTES
# =====================================================
@app.route("/")
def index():
    return render_template(
        "home.html",
        projects=database.get_projects(),
        categories=database.get_categories(),
    )


@app.route("/player/<int:project_id>")
def player(project_id):
    project = database.get_project_by_id(project_id)
    if project is None:
        abort(404)

    videos = database.get_videos(project_id)
    completed = bookmark = None
    if g.identity is not None:
        completed = database.get_user_project_date(g.identity.user_id, project_id)
        bookmark = database.get_bookmark(g.identity.user_id, project_id)

    return render_template(
        "player.html",
        project=project,
        project_id=project_id,
        videos=videos,
        video=first_video(videos),
        completed=completed,
        bookmark=bookmark,
    )


@app.route("/projects/<int:project_id>/complete", methods=["POST"])
@login_required
def complete_project(project_id):
    if database.get_project_by_id(project_id) is None:
        abort(404)
    database.give_user_project(g.identity.user_id, project_id)
    flash("Project marked as complete ✅", "success")
    return redirect(url_for("player", project_id=project_id))


@app.route("/projects/<int:project_id>/incomplete", methods=["POST"])
@login_required
def uncomplete_project(project_id):
    database.remove_user_project(g.identity.user_id, project_id)
    flash("Project marked as in progress.", "info")
    return redirect(url_for("player", project_id=project_id))


@app.route("/projects/<int:project_id>/bookmark", methods=["POST"])
@login_required
def bookmark_video(project_id):
    video = database.get_video_by_id(request.form.get("videoId", type=int))
    if video is None or video["project_id"] != project_id:
        abort(404)
    database.set_bookmark(g.identity.user_id, project_id, video["video_id"])
    return redirect(url_for("player", project_id=project_id))

# =====================================================
# SESSION ROUTES
# =====================================================
@app.route("/sessions")
@login_required
def sessions_page():
    if g.identity.is_admin:
        sessions = database.get_sessions()
    else:
        sessions = database.get_session(g.identity.user_id)
    return render_template("sessions.html", sessions=sessions)


@app.route("/sessions/new", methods=["POST"])
@admin_required
def create_session():
    try:
        title, description = require_fields(request.form, "title", "description")
    except ValidationError:
        flash("Session title and description are required.", "danger")
        return redirect(url_for("sessions_page"))
    session_id = database.create_session(title, description)
    return redirect(url_for("edit_session", session_id=session_id))


@app.route("/sessions/<int:session_id>/edit", methods=["GET", "POST"])
@login_required
def edit_session(session_id):
    if database.get_session_by_id(session_id) is None:
        abort(404)

    # TODO: gate the actions below on the member's permission level once
    # the session roles are defined; it is only displayed for now.
    permission = database.get_user_session_permission(g.identity.user_id, session_id)
    selected_id = request.args.get("user", type=int)

    if request.method == "GET":
        if permission is not None:
            database.record_login(g.identity.user_id, session_id)
    else:
        form = request.form
        changed = False

        if "sessionUpdate" in form:
            try:
                title, description = require_fields(form, "title", "description")
                database.update_session(session_id, title, description)
                changed = True
            except ValidationError:
                flash("Session title and description are required.", "danger")

        if "sessionDelete" in form:
            database.delete_session(session_id)
            flash("Session deleted ✅", "success")
            return redirect(url_for("sessions_page"))

        if "userUpdate" in form:
            try:
                user_id = require_id(form, "userId", 0)
                name, nickname, password = require_fields(form, "name", "nickname", "password")
            except ValidationError as e:
                if e.missing == ["userId"]:
                    flash("Unknown user.", "danger")
                else:
                    flash("Name, nickname and password are required.", "danger")
            else:
                existing = database.get_user_by_name(name)
                if existing is not None and existing["user_id"] != user_id:
                    flash("User already exists.", "warning")
                elif user_id == 0:
                    selected_id = database.create_user(session_id, name, nickname, password)
                    changed = True
                else:
                    database.update_user(user_id, name, nickname, password)
                    selected_id = user_id
                    changed = True

        if "userDelete" in form:
            try:
                user_id = require_id(form, "userId")
                if database.get_user_session_permission(user_id, session_id) is None:
                    flash("User is not a member of this session.", "danger")
                else:
                    database.remove_user(user_id)
                    if selected_id == user_id:
                        selected_id = None
                    changed = True
            except ValidationError:
                flash("Select a user to delete.", "danger")

        if changed:
            flash("Session updated ✅", "success")
            return redirect(url_for("edit_session", session_id=session_id, user=selected_id))

    # runs after any mutation so the page reflects the current state
    selected_user = database.get_user_by_id(selected_id) if selected_id else None
    if selected_user is not None:
        selected_user.pop("user_password", None)

    return render_template(
        "session_edit.html",
        session=database.get_session_by_id(session_id),
        users=database.get_users_by_session(session_id),
        selectedUser=selected_user,
        permission=permission,
    )

# =====================================================
# ADMIN PROJECT ROUTES
# =====================================================
@app.route("/projects/new", methods=["POST"])
@admin_required
def create_project():
    try:
        title, description = require_fields(request.form, "title", "description")
    except ValidationError:
        flash("Project title and description are required.", "danger")
        return redirect(url_for("index"))
    category_id = request.form.get("categoryId", type=int)
    project_id = database.create_project(title, description, category_id)
    flash("Project created ✅", "success")
    return redirect(url_for("edit_project", project_id=project_id))


@app.route("/projects/<int:project_id>/edit", methods=["GET", "POST"])
@admin_required
def edit_project(project_id):
    if database.get_project_by_id(project_id) is None:
        abort(404)

    if request.method == "POST":
        form = request.form
        changed = False

        if "projectUpdate" in form:
            try:
                title, description = require_fields(form, "title", "description")
                database.update_project(project_id, title, description,
                                        form.get("categoryId", type=int))
                changed = True
            except ValidationError:
                flash("Project title and description are required.", "danger")

        if "projectImage" in form:
            try:
                (path,) = require_fields(form, "imagePath")
                database.upload_project_image(path, project_id)
                changed = True
            except ValidationError:
                flash("Image path is required.", "danger")

        if "videoAdd" in form:
            try:
                title, url = require_fields(form, "videoTitle", "videoUrl")
                database.add_video(project_id, title, url)
                changed = True
            except ValidationError:
                flash("Video title and URL are required.", "danger")

        video = None
        if any(action in form for action in ("videoUpdate", "videoRemove", "videoMove")):
            try:
                video = database.get_video_by_id(require_id(form, "videoId"))
            except ValidationError:
                pass
            if video is None or video["project_id"] != project_id:
                video = None
                flash("Unknown video.", "danger")

        if "videoUpdate" in form and video is not None:
            try:
                title, url = require_fields(form, "videoTitle", "videoUrl")
                database.update_video_by_id(video["video_id"], title, url)
                changed = True
            except ValidationError:
                flash("Video title and URL are required.", "danger")

        if "videoRemove" in form and video is not None:
            database.remove_video(video["video_id"])
            changed = True

        if "videoMove" in form and video is not None:
            try:
                database.move_video_up_or_down(video["video_id"], require_direction(form), project_id)
                changed = True
            except ValidationError:
                flash("Unknown direction.", "danger")

        if "projectRemove" in form:
            database.remove_project(project_id)
            flash("Project removed ✅", "success")
            return redirect(url_for("index"))

        if changed:
            flash("Project updated ✅", "success")
            return redirect(url_for("edit_project", project_id=project_id))

    return render_template(
        "project_edit.html",
        project=database.get_project_by_id(project_id),
        videos=database.get_videos(project_id),
        categories=database.get_categories(),
    )

# =====================================================
# ADMIN CATEGORY ROUTES
# =====================================================
@app.route("/categories", methods=["GET", "POST"])
@admin_required
def manage_categories():
    if request.method == "POST":
        form = request.form
        category_id = form.get("categoryId", type=int)
        changed = False

        if "categoryAdd" in form:
            try:
                title, description = require_fields(form, "title", "description")
                database.add_category(title, description)
                changed = True
            except ValidationError:
                flash("Category title and description are required.", "danger")

        if "categoryUpdate" in form and category_id:
            try:
                title, description = require_fields(form, "title", "description")
                database.update_category(category_id, title, description)
                changed = True
            except ValidationError:
                flash("Category title and description are required.", "danger")

        if "categoryMove" in form and category_id:
            try:
                database.move_category_up_or_down(category_id, require_direction(form))
                changed = True
            except ValidationError:
                flash("Unknown direction.", "danger")

        if "categoryRemove" in form and category_id:
            database.remove_category(category_id)
            changed = True

        if changed:
            flash("Categories updated ✅", "success")
            return redirect(url_for("manage_categories"))

    return render_template("categories.html", categories=database.get_categories())

# =====================================================
# AUTH ROUTES
# =====================================================
@app.route("/login", methods=["GET", "POST"])
def login():
    if g.identity is not None:
        return redirect(url_for("index"))

    if request.method == "POST":
        username = request.form.get("username", "")
        password = request.form.get("password", "")

        user = database.get_user_by_login(username, password) if username and password else None
        if user is not None:
            login_user(Identity.from_row(user))
            flash("Logged in successfully!", "success")
            return redirect(url_for("index"))

        app.logger.warning("Failed login for %r", username)
        flash("Invalid credentials.", "danger")

    return render_template("login.html")


@app.route("/logout")
def logout():
    logout_user()
    flash("Logged out successfully.", "success")
    return redirect(url_for("login"))

# =====================================================
# CLI
# =====================================================
@app.cli.command("create-admin")
@click.argument("name")
@click.argument("password")
@click.option("--nickname", default=None)
def create_admin_command(name, password, nickname):
    """Create an administrator account."""
    user_id = database.create_admin(name, nickname or name, password)
    click.echo(f"Admin user {name} created (id {user_id}).")

# =====================================================
# RUN APP
# =====================================================
if __name__ == "__main__":
    check_database()
    app.run(debug=os.environ.get("FLASK_DEBUG") == "1")
