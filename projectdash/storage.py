"""Storage interface and its two backends.

Every backend returns the pydantic records from :mod:`projectdash.schemas`.
A missing record is reported as ``None`` (lookups, updates) or ``False``
(deletes); a backend failure surfaces as :class:`StorageError`.
"""
import abc
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Generic, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from . import crud, models, schemas
from .seed import seed_sample_data

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageError(Exception):
    """Raised when the backend cannot complete an operation."""


class IStorage(abc.ABC):
    # Users
    @abc.abstractmethod
    def get_user(self, user_id: int) -> Optional[schemas.User]: ...

    @abc.abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.User]: ...

    @abc.abstractmethod
    def create_user(self, user: schemas.UserCreate) -> schemas.User: ...

    # Projects
    @abc.abstractmethod
    def get_projects(self) -> List[schemas.Project]: ...

    @abc.abstractmethod
    def get_project(self, project_id: int) -> Optional[schemas.Project]: ...

    @abc.abstractmethod
    def create_project(self, project: schemas.ProjectCreate) -> schemas.Project: ...

    @abc.abstractmethod
    def update_project(self, project_id: int, project: schemas.ProjectUpdate) -> Optional[schemas.Project]: ...

    @abc.abstractmethod
    def delete_project(self, project_id: int) -> bool: ...

    # Tasks
    @abc.abstractmethod
    def get_tasks(self) -> List[schemas.Task]: ...

    @abc.abstractmethod
    def get_task(self, task_id: int) -> Optional[schemas.Task]: ...

    @abc.abstractmethod
    def get_tasks_by_project(self, project_id: int) -> List[schemas.Task]: ...

    @abc.abstractmethod
    def create_task(self, task: schemas.TaskCreate) -> schemas.Task: ...

    @abc.abstractmethod
    def update_task(self, task_id: int, task: schemas.TaskUpdate) -> Optional[schemas.Task]: ...

    @abc.abstractmethod
    def delete_task(self, task_id: int) -> bool: ...

    # Milestones
    @abc.abstractmethod
    def get_milestones(self) -> List[schemas.Milestone]: ...

    @abc.abstractmethod
    def get_milestone(self, milestone_id: int) -> Optional[schemas.Milestone]: ...

    @abc.abstractmethod
    def get_milestones_by_project(self, project_id: int) -> List[schemas.Milestone]: ...

    @abc.abstractmethod
    def create_milestone(self, milestone: schemas.MilestoneCreate) -> schemas.Milestone: ...

    @abc.abstractmethod
    def update_milestone(self, milestone_id: int,
                         milestone: schemas.MilestoneUpdate) -> Optional[schemas.Milestone]: ...

    @abc.abstractmethod
    def delete_milestone(self, milestone_id: int) -> bool: ...

    # Insights (append-only)
    @abc.abstractmethod
    def get_insights(self) -> List[schemas.Insight]: ...

    @abc.abstractmethod
    def get_insights_by_project(self, project_id: int) -> List[schemas.Insight]: ...

    @abc.abstractmethod
    def create_insight(self, insight: schemas.InsightCreate) -> schemas.Insight: ...

    # Team members
    @abc.abstractmethod
    def get_team_members(self, project_id: int) -> List[schemas.TeamMember]: ...

    @abc.abstractmethod
    def add_team_member(self, member: schemas.TeamMemberCreate) -> schemas.TeamMember: ...

    @abc.abstractmethod
    def remove_team_member(self, member_id: int) -> bool: ...

    # Stats
    @abc.abstractmethod
    def get_dashboard_stats(self) -> schemas.DashboardStats: ...


def _now():
    return datetime.now(timezone.utc)


def _later_than(previous: datetime) -> datetime:
    now = _now()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


class _Table(Generic[T]):
    """One in-memory collection: ordered rows, an id counter and the lock guarding both."""

    def __init__(self):
        self.rows: List[T] = []
        self.last_id = 0
        self.lock = threading.Lock()

    def all(self) -> List[T]:
        with self.lock:
            return list(self.rows)

    def count(self, predicate: Optional[Callable[[T], bool]] = None) -> int:
        with self.lock:
            if predicate is None:
                return len(self.rows)
            return sum(1 for row in self.rows if predicate(row))

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        with self.lock:
            return [row for row in self.rows if predicate(row)]

    def find(self, row_id: int) -> Optional[T]:
        with self.lock:
            return next((row for row in self.rows if row.id == row_id), None)

    def insert(self, build: Callable[[int], T]) -> T:
        with self.lock:
            self.last_id += 1
            row = build(self.last_id)
            self.rows.append(row)
            return row

    def update(self, row_id: int, changes: dict, touch: bool = False) -> Optional[T]:
        with self.lock:
            for index, row in enumerate(self.rows):
                if row.id == row_id:
                    if touch:
                        changes = {**changes, "updated_at": _later_than(row.updated_at)}
                    self.rows[index] = row.model_copy(update=changes)
                    return self.rows[index]
            return None

    def delete(self, row_id: int) -> bool:
        with self.lock:
            for index, row in enumerate(self.rows):
                if row.id == row_id:
                    del self.rows[index]
                    return True
            return False


class MemStorage(IStorage):
    """List-backed storage. Each collection has its own lock; ids are never reused."""

    def __init__(self, seed: bool = True):
        self.users: _Table[schemas.User] = _Table()
        self.projects: _Table[schemas.Project] = _Table()
        self.tasks: _Table[schemas.Task] = _Table()
        self.milestones: _Table[schemas.Milestone] = _Table()
        self.insights: _Table[schemas.Insight] = _Table()
        self.team_members: _Table[schemas.TeamMember] = _Table()
        if seed:
            seed_sample_data(self)

    def get_user(self, user_id):
        return self.users.find(user_id)

    def get_user_by_username(self, username):
        return next((u for u in self.users.all() if u.username == username), None)

    def create_user(self, user):
        return self.users.insert(lambda row_id: schemas.User(id=row_id, **user.model_dump()))

    def get_projects(self):
        return self.projects.all()

    def get_project(self, project_id):
        return self.projects.find(project_id)

    def create_project(self, project):
        now = _now()
        return self.projects.insert(
            lambda row_id: schemas.Project(id=row_id, created_at=now, updated_at=now, **project.model_dump()))

    def update_project(self, project_id, project):
        return self.projects.update(project_id, project.changes(), touch=True)

    def delete_project(self, project_id):
        return self.projects.delete(project_id)

    def get_tasks(self):
        return self.tasks.all()

    def get_task(self, task_id):
        return self.tasks.find(task_id)

    def get_tasks_by_project(self, project_id):
        return self.tasks.filter(lambda t: t.project_id == project_id)

    def create_task(self, task):
        now = _now()
        return self.tasks.insert(
            lambda row_id: schemas.Task(id=row_id, created_at=now, updated_at=now, **task.model_dump()))

    def update_task(self, task_id, task):
        return self.tasks.update(task_id, task.changes(), touch=True)

    def delete_task(self, task_id):
        return self.tasks.delete(task_id)

    def get_milestones(self):
        return self.milestones.all()

    def get_milestone(self, milestone_id):
        return self.milestones.find(milestone_id)

    def get_milestones_by_project(self, project_id):
        return self.milestones.filter(lambda m: m.project_id == project_id)

    def create_milestone(self, milestone):
        return self.milestones.insert(
            lambda row_id: schemas.Milestone(id=row_id, created_at=_now(), **milestone.model_dump()))

    def update_milestone(self, milestone_id, milestone):
        return self.milestones.update(milestone_id, milestone.changes())

    def delete_milestone(self, milestone_id):
        return self.milestones.delete(milestone_id)

    def get_insights(self):
        return self.insights.all()

    def get_insights_by_project(self, project_id):
        return self.insights.filter(lambda i: i.project_id == project_id)

    def create_insight(self, insight):
        return self.insights.insert(
            lambda row_id: schemas.Insight(id=row_id, created_at=_now(), **insight.model_dump()))

    def get_team_members(self, project_id):
        return self.team_members.filter(lambda m: m.project_id == project_id)

    def add_team_member(self, member):
        return self.team_members.insert(
            lambda row_id: schemas.TeamMember(id=row_id, added_at=_now(), **member.model_dump()))

    def remove_team_member(self, member_id):
        return self.team_members.delete(member_id)

    def get_dashboard_stats(self):
        return schemas.DashboardStats(
            active_projects=self.projects.count(),
            tasks=self.tasks.count(),
            milestones=self.milestones.count(),
            completed=self.tasks.count(lambda t: t.completed),
        )


class DatabaseStorage(IStorage):
    """SQLAlchemy-backed storage, one session per operation."""

    def __init__(self, session_factory):
        self.SessionLocal = session_factory

    @contextmanager
    def session(self):
        db = self.SessionLocal()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Database operation failed: %s", exc)
            raise StorageError("Database operation failed") from exc
        finally:
            db.close()

    @staticmethod
    def _one(schema, row):
        return schema.model_validate(row) if row is not None else None

    @staticmethod
    def _many(schema, rows):
        return [schema.model_validate(row) for row in rows]

    def get_user(self, user_id):
        with self.session() as db:
            return self._one(schemas.User, crud.get_user(db, user_id))

    def get_user_by_username(self, username):
        with self.session() as db:
            return self._one(schemas.User, crud.get_user_by_username(db, username))

    def create_user(self, user):
        with self.session() as db:
            return self._one(schemas.User, crud.create_user(db, user.model_dump()))

    def get_projects(self):
        with self.session() as db:
            return self._many(schemas.Project, crud.get_all(db, models.Project))

    def get_project(self, project_id):
        with self.session() as db:
            return self._one(schemas.Project, crud.get_by_id(db, models.Project, project_id))

    def create_project(self, project):
        with self.session() as db:
            return self._one(schemas.Project, crud.create(db, models.Project, project.model_dump()))

    def update_project(self, project_id, project):
        with self.session() as db:
            return self._one(schemas.Project, crud.update(db, models.Project, project_id, project.changes()))

    def delete_project(self, project_id):
        with self.session() as db:
            return crud.delete(db, models.Project, project_id)

    def get_tasks(self):
        with self.session() as db:
            return self._many(schemas.Task, crud.get_all(db, models.Task))

    def get_task(self, task_id):
        with self.session() as db:
            return self._one(schemas.Task, crud.get_by_id(db, models.Task, task_id))

    def get_tasks_by_project(self, project_id):
        with self.session() as db:
            return self._many(schemas.Task, crud.get_by_project(db, models.Task, project_id))

    def create_task(self, task):
        with self.session() as db:
            return self._one(schemas.Task, crud.create(db, models.Task, task.model_dump()))

    def update_task(self, task_id, task):
        with self.session() as db:
            return self._one(schemas.Task, crud.update(db, models.Task, task_id, task.changes()))

    def delete_task(self, task_id):
        with self.session() as db:
            return crud.delete(db, models.Task, task_id)

    def get_milestones(self):
        with self.session() as db:
            return self._many(schemas.Milestone, crud.get_all(db, models.Milestone))

    def get_milestone(self, milestone_id):
        with self.session() as db:
            return self._one(schemas.Milestone, crud.get_by_id(db, models.Milestone, milestone_id))

    def get_milestones_by_project(self, project_id):
        with self.session() as db:
            return self._many(schemas.Milestone, crud.get_by_project(db, models.Milestone, project_id))

    def create_milestone(self, milestone):
        with self.session() as db:
            return self._one(schemas.Milestone, crud.create(db, models.Milestone, milestone.model_dump()))

    def update_milestone(self, milestone_id, milestone):
        with self.session() as db:
            return self._one(schemas.Milestone,
                             crud.update(db, models.Milestone, milestone_id, milestone.changes()))

    def delete_milestone(self, milestone_id):
        with self.session() as db:
            return crud.delete(db, models.Milestone, milestone_id)

    def get_insights(self):
        with self.session() as db:
            return self._many(schemas.Insight, crud.get_all(db, models.Insight))

    def get_insights_by_project(self, project_id):
        with self.session() as db:
            return self._many(schemas.Insight, crud.get_by_project(db, models.Insight, project_id))

    def create_insight(self, insight):
        with self.session() as db:
            return self._one(schemas.Insight, crud.create(db, models.Insight, insight.model_dump()))

    def get_team_members(self, project_id):
        with self.session() as db:
            return self._many(schemas.TeamMember, crud.get_by_project(db, models.TeamMember, project_id))

    def add_team_member(self, member):
        with self.session() as db:
            return self._one(schemas.TeamMember, crud.create(db, models.TeamMember, member.model_dump()))

    def remove_team_member(self, member_id):
        with self.session() as db:
            return crud.delete(db, models.TeamMember, member_id)

    def get_dashboard_stats(self):
        with self.session() as db:
            return schemas.DashboardStats(**crud.get_dashboard_counts(db))
