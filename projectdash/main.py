import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import database, schemas, security
from .backend import select_storage
from .insights import generate_insights
from .storage import IStorage, StorageError

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SEED_SAMPLE_DATA = os.getenv("SEED_SAMPLE_DATA", "1") != "0"

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# first path segment after /api -> entity name used in error messages
ENTITY_NAMES = {
    "projects": "project",
    "tasks": "task",
    "milestones": "milestone",
    "insights": "insight",
    "generate-insights": "insight",
    "users": "user",
    "team-members": "team member",
}

router = APIRouter(prefix="/api")


def get_storage(request: Request) -> IStorage:
    return request.app.state.storage


def _entity_for(request: Request, id_error: bool = False) -> str:
    parts = request.url.path.strip("/").split("/")
    # /api/projects/{id}/team: the path id belongs to the project
    if parts[-1] == "team" and not id_error:
        return "team member"
    if len(parts) > 1:
        return ENTITY_NAMES.get(parts[1], "request")
    return "request"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err["loc"][:1] == ("path",) for err in errors):
        entity = _entity_for(request, id_error=True)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": f"Invalid {entity} ID"})
    entity = _entity_for(request)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": f"Invalid {entity} data",
            "errors": [{"path": list(err["loc"][1:]), "message": err["msg"]} for err in errors],
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


async def server_error_handler(request: Request, exc: Exception):
    logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={"message": "Internal server error"})


# STATS
@router.get("/stats", response_model=schemas.DashboardStats)
def get_stats(storage: IStorage = Depends(get_storage)):
    return storage.get_dashboard_stats()


# USERS
@router.post("/users", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def create_user(user: schemas.UserCreate, storage: IStorage = Depends(get_storage)):
    if storage.get_user_by_username(user.username):
        raise HTTPException(status_code=400, detail="Username already registered")
    user = user.model_copy(update={"password": security.hash_password(user.password)})
    return storage.create_user(user)


@router.get("/users/{user_id}", response_model=schemas.UserOut)
def get_user(user_id: int, storage: IStorage = Depends(get_storage)):
    user = storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# PROJECTS
@router.get("/projects", response_model=List[schemas.Project])
def get_projects(storage: IStorage = Depends(get_storage)):
    return storage.get_projects()


@router.get("/projects/{project_id}", response_model=schemas.Project)
def get_project(project_id: int, storage: IStorage = Depends(get_storage)):
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("/projects", response_model=schemas.Project, status_code=status.HTTP_201_CREATED)
def create_project(project: schemas.ProjectCreate, storage: IStorage = Depends(get_storage)):
    return storage.create_project(project)


@router.patch("/projects/{project_id}", response_model=schemas.Project)
def update_project(project_id: int, project: schemas.ProjectUpdate, storage: IStorage = Depends(get_storage)):
    updated_project = storage.update_project(project_id, project)
    if not updated_project:
        raise HTTPException(status_code=404, detail="Project not found")
    return updated_project


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: int, storage: IStorage = Depends(get_storage)):
    if not storage.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return None


# TEAM
@router.get("/projects/{project_id}/team", response_model=List[schemas.TeamMember])
def get_team(project_id: int, storage: IStorage = Depends(get_storage)):
    return storage.get_team_members(project_id)


@router.post("/projects/{project_id}/team", response_model=schemas.TeamMember, status_code=status.HTTP_201_CREATED)
def add_team_member(project_id: int, member: schemas.TeamMemberAdd, storage: IStorage = Depends(get_storage)):
    return storage.add_team_member(schemas.TeamMemberCreate(project_id=project_id, **member.model_dump()))


@router.delete("/team-members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_team_member(member_id: int, storage: IStorage = Depends(get_storage)):
    if not storage.remove_team_member(member_id):
        raise HTTPException(status_code=404, detail="Team member not found")
    return None


# TASKS
@router.get("/tasks", response_model=List[schemas.Task])
def get_tasks(project_id: Optional[int] = Query(default=None, alias="projectId"),
              storage: IStorage = Depends(get_storage)):
    if project_id is not None:
        return storage.get_tasks_by_project(project_id)
    return storage.get_tasks()


@router.get("/tasks/{task_id}", response_model=schemas.Task)
def get_task(task_id: int, storage: IStorage = Depends(get_storage)):
    task = storage.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.post("/tasks", response_model=schemas.Task, status_code=status.HTTP_201_CREATED)
def create_task(task: schemas.TaskCreate, storage: IStorage = Depends(get_storage)):
    return storage.create_task(task)


@router.patch("/tasks/{task_id}", response_model=schemas.Task)
def update_task(task_id: int, task_update: schemas.TaskUpdate, storage: IStorage = Depends(get_storage)):
    task = storage.update_task(task_id, task_update)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: int, storage: IStorage = Depends(get_storage)):
    if not storage.delete_task(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return None


# MILESTONES
@router.get("/milestones", response_model=List[schemas.Milestone])
def get_milestones(project_id: Optional[int] = Query(default=None, alias="projectId"),
                   storage: IStorage = Depends(get_storage)):
    if project_id is not None:
        return storage.get_milestones_by_project(project_id)
    return storage.get_milestones()


@router.get("/milestones/{milestone_id}", response_model=schemas.Milestone)
def get_milestone(milestone_id: int, storage: IStorage = Depends(get_storage)):
    milestone = storage.get_milestone(milestone_id)
    if not milestone:
        raise HTTPException(status_code=404, detail="Milestone not found")
    return milestone


@router.post("/milestones", response_model=schemas.Milestone, status_code=status.HTTP_201_CREATED)
def create_milestone(milestone: schemas.MilestoneCreate, storage: IStorage = Depends(get_storage)):
    return storage.create_milestone(milestone)


@router.patch("/milestones/{milestone_id}", response_model=schemas.Milestone)
def update_milestone(milestone_id: int, milestone_update: schemas.MilestoneUpdate,
                     storage: IStorage = Depends(get_storage)):
    milestone = storage.update_milestone(milestone_id, milestone_update)
    if not milestone:
        raise HTTPException(status_code=404, detail="Milestone not found")
    return milestone


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(milestone_id: int, storage: IStorage = Depends(get_storage)):
    if not storage.delete_milestone(milestone_id):
        raise HTTPException(status_code=404, detail="Milestone not found")
    return None


# INSIGHTS
@router.get("/insights", response_model=List[schemas.Insight])
def get_insights(project_id: Optional[int] = Query(default=None, alias="projectId"),
                 storage: IStorage = Depends(get_storage)):
    if project_id is not None:
        return storage.get_insights_by_project(project_id)
    return storage.get_insights()


@router.post("/insights", response_model=schemas.Insight, status_code=status.HTTP_201_CREATED)
def create_insight(insight: schemas.InsightCreate, storage: IStorage = Depends(get_storage)):
    return storage.create_insight(insight)


@router.post("/generate-insights", response_model=List[schemas.Insight])
def post_generate_insights(deduplicate: bool = False, storage: IStorage = Depends(get_storage)):
    return generate_insights(storage, deduplicate=deduplicate)


def create_app(storage: Optional[IStorage] = None) -> FastAPI:
    """Build the API. Without an explicit ``storage`` the backend is selected on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "storage", None) is None:
            app.state.storage = await run_in_threadpool(
                select_storage, database.DATABASE_URL, seed=SEED_SAMPLE_DATA)
        yield

    app = FastAPI(title="Project Dashboard API", lifespan=lifespan)
    app.state.storage = storage
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(StorageError, server_error_handler)
    app.add_exception_handler(Exception, server_error_handler)
    return app


app = create_app()
