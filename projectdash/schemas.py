from datetime import datetime, timezone
from typing import Annotated, ClassVar, Literal, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

StatusType = Literal["On Track", "At Risk", "Behind"]
InsightType = Literal["info", "warning", "alert"]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored stamp is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class InputModel(CamelModel):
    """Request bodies: no coercion, "50" is not an int and "yes" is not a bool."""

    model_config = ConfigDict(strict=True)


class RecordModel(CamelModel):
    model_config = ConfigDict(strict=False)


class PartialModel(InputModel):
    """Base for PATCH bodies: every field optional, NOT NULL columns stay non-null."""

    not_null_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        for field in self.not_null_fields:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} may not be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# Users

class UserBase(InputModel):
    username: str
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    initial: Optional[str] = None
    avatar_color: Optional[str] = None


class UserCreate(UserBase):
    password: str


class User(UserCreate, RecordModel):
    id: int


class UserOut(UserBase, RecordModel):
    id: int


# Projects

class ProjectBase(InputModel):
    name: str
    progress: int = Field(default=0, ge=0, le=100)
    status: StatusType = "On Track"
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager_id: Optional[int] = None
    budget: Optional[int] = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(PartialModel):
    not_null_fields: ClassVar[Tuple[str, ...]] = ("name", "progress", "status")

    name: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    status: Optional[StatusType] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager_id: Optional[int] = None
    budget: Optional[int] = None


class Project(ProjectBase, RecordModel):
    id: int
    created_at: UtcDatetime
    updated_at: UtcDatetime


# Tasks

class TaskBase(InputModel):
    name: str
    description: Optional[str] = None
    start_date: Optional[str] = None
    due_date: str
    completed: bool = False
    project_id: Optional[int] = None
    assignee_id: Optional[int] = None
    evidence: Optional[str] = None


class TaskCreate(TaskBase):
    pass


class TaskUpdate(PartialModel):
    not_null_fields: ClassVar[Tuple[str, ...]] = ("name", "due_date", "completed")

    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    due_date: Optional[str] = None
    completed: Optional[bool] = None
    project_id: Optional[int] = None
    assignee_id: Optional[int] = None
    evidence: Optional[str] = None


class Task(TaskBase, RecordModel):
    id: int
    created_at: UtcDatetime
    updated_at: UtcDatetime


# Milestones

class MilestoneBase(InputModel):
    name: str
    description: Optional[str] = None
    due_date: str
    completed: bool = False
    project_id: Optional[int] = None


class MilestoneCreate(MilestoneBase):
    pass


class MilestoneUpdate(PartialModel):
    not_null_fields: ClassVar[Tuple[str, ...]] = ("name", "due_date", "completed")

    name: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    completed: Optional[bool] = None
    project_id: Optional[int] = None


class Milestone(MilestoneBase, RecordModel):
    id: int
    created_at: UtcDatetime


# Insights are append-only, so there is no update shape

class InsightCreate(InputModel):
    message: str
    project_id: Optional[int] = None
    type: InsightType = "info"


class Insight(InsightCreate, RecordModel):
    id: int
    created_at: UtcDatetime


# Team members

class TeamMemberAdd(InputModel):
    user_id: int
    role: str = "Member"


class TeamMemberCreate(TeamMemberAdd):
    project_id: int


class TeamMember(TeamMemberCreate, RecordModel):
    id: int
    added_at: UtcDatetime


class DashboardStats(CamelModel):
    active_projects: int
    tasks: int
    milestones: int
    completed: int
