from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()   # defined ONLY here

# Table definitions for DDL (create_all / migrations).
# Reads and writes go through the SQL in database.py.


# =====================================================
# CATEGORY MODEL
# =====================================================
class Category(db.Model):
    __tablename__ = "Category"

    category_id = db.Column(db.Integer, primary_key=True)
    category_title = db.Column(db.String(120), nullable=False)
    category_description = db.Column(db.Text)
    category_order = db.Column(db.Integer, nullable=False)


# =====================================================
# PROJECT MODEL
# =====================================================
class Project(db.Model):
    __tablename__ = "Project"

    project_id = db.Column(db.Integer, primary_key=True)
    project_title = db.Column(db.String(200), nullable=False)
    project_image = db.Column(db.String(300), default="test.png")
    project_description = db.Column(db.Text)
    category_id = db.Column(db.Integer, db.ForeignKey("Category.category_id"))


# =====================================================
# VIDEO MODEL
# =====================================================
class Video(db.Model):
    __tablename__ = "Video"

    video_id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("Project.project_id"), nullable=False)
    video_title = db.Column(db.String(200), nullable=False)
    video_url = db.Column(db.String(500), nullable=False)
    # no unique constraint: a reorder swaps two rows with sequential updates
    video_order = db.Column(db.Integer, nullable=False)


# =====================================================
# USER MODEL
# =====================================================
class User(db.Model):
    __tablename__ = "User"

    user_id = db.Column(db.Integer, primary_key=True)
    user_name = db.Column(db.String(100), unique=True, nullable=False)
    user_nickname = db.Column(db.String(100))
    user_password = db.Column(db.String(200), nullable=False)
    user_is_admin = db.Column(db.Boolean, default=False, nullable=False)


# =====================================================
# SESSION MODEL (collaboration event, not the web session)
# =====================================================
class Session(db.Model):
    __tablename__ = "Session"

    session_id = db.Column(db.Integer, primary_key=True)
    session_title = db.Column(db.String(200), nullable=False)
    session_description = db.Column(db.Text)


# =====================================================
# MEMBERSHIP / PROGRESS JOIN TABLES
# =====================================================
class UserSession(db.Model):
    __tablename__ = "User_Session"

    user_id = db.Column(db.Integer, db.ForeignKey("User.user_id"), primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("Session.session_id"), primary_key=True)
    user_session_joined = db.Column(db.DateTime, default=datetime.utcnow)
    user_session_last_login = db.Column(db.DateTime)
    user_session_permission = db.Column(db.String(20), default="user")  # user | admin


class UserProject(db.Model):
    __tablename__ = "User_Project"

    # surrogate key: "give project" may store several rows per user/project
    user_project_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("User.user_id"), nullable=False)
    project_id = db.Column(db.Integer, db.ForeignKey("Project.project_id"), nullable=False)
    user_project_bookmark = db.Column(db.Integer, db.ForeignKey("Video.video_id"))
    user_project_date_complete = db.Column(db.DateTime)
