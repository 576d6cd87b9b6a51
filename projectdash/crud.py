from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models


def create_user(db: Session, data: dict):
    db_user = models.User(**data)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


def get_all(db: Session, model):
    return db.query(model).order_by(model.id).all()


def get_by_id(db: Session, model, row_id: int):
    return db.query(model).filter(model.id == row_id).first()


def get_by_project(db: Session, model, project_id: int):
    return db.query(model).filter(model.project_id == project_id).order_by(model.id).all()


def create(db: Session, model, data: dict):
    row = model(**data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update(db: Session, model, row_id: int, changes: dict):
    row = get_by_id(db, model, row_id)
    if not row:
        return None
    for field, value in changes.items():
        setattr(row, field, value)
    if hasattr(model, "updated_at"):
        row.updated_at = models.utcnow()
    db.commit()
    db.refresh(row)
    return row


def delete(db: Session, model, row_id: int):
    deleted = db.query(model).filter(model.id == row_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def count(db: Session, model, *criteria):
    q = db.query(func.count(model.id))
    if criteria:
        q = q.filter(*criteria)
    return q.scalar() or 0


def get_dashboard_counts(db: Session):
    return {
        "active_projects": count(db, models.Project),
        "tasks": count(db, models.Task),
        "milestones": count(db, models.Milestone),
        "completed": count(db, models.Task, models.Task.completed.is_(True)),
    }
