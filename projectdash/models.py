from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from .database import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    name = Column(String)
    email = Column(String)
    initial = Column(String)
    avatar_color = Column(String)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    progress = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="On Track")
    description = Column(Text)
    start_date = Column(String)
    end_date = Column(String)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    # id columns of other entities are plain integers, no FK constraints
    manager_id = Column(Integer, nullable=True)
    budget = Column(Integer)


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    start_date = Column(String)
    due_date = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    project_id = Column(Integer, index=True)
    assignee_id = Column(Integer)
    evidence = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Milestone(Base):
    __tablename__ = "milestones"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    due_date = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    project_id = Column(Integer, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Insight(Base):
    __tablename__ = "insights"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    project_id = Column(Integer, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    type = Column(String, nullable=False, default="info")


class TeamMember(Base):
    __tablename__ = "team_members"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    role = Column(String, nullable=False, default="Member")
    added_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
