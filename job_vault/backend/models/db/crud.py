from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from . import application as application_model
from . import user as user_model

# Columns a patch may never touch once the row exists.
IMMUTABLE_COLUMNS = frozenset({"id", "user_id", "applied_date", "updated_at"})


# Users
def get_user_by_email(db: Session, email: str):
    return db.query(user_model.User).filter(user_model.User.email == email).first()


def get_user_by_id(db: Session, user_id: str):
    return db.query(user_model.User).filter(user_model.User.id == user_id).first()


def create_user(db: Session, email: str, hashed_password: str, full_name: Optional[str] = None):
    db_user = user_model.User(email=email, hashed_password=hashed_password, full_name=full_name)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: str):
    db_user = get_user_by_id(db, user_id)
    if db_user:
        db.delete(db_user)
        db.commit()
    return db_user


# Applications
def get_application_by_id(db: Session, application_id: str, user_id: str):
    return db.query(application_model.Application).filter(
        application_model.Application.id == application_id,
        application_model.Application.user_id == user_id
    ).first()


def get_applications_for_user(db: Session, user_id: str) -> List[application_model.Application]:
    return db.query(application_model.Application).filter(
        application_model.Application.user_id == user_id
    ).order_by(application_model.Application.updated_at.desc()).all()


def create_application_for_user(db: Session, payload: Dict[str, Any], user_id: str):
    data = {k: v for k, v in payload.items() if k not in ("id", "user_id", "updated_at")}
    db_application = application_model.Application(**data, user_id=user_id, updated_at=application_model.utcnow())
    db.add(db_application)
    db.commit()
    db.refresh(db_application)
    return db_application


def update_application(db: Session, application_id: str, patch: Dict[str, Any], user_id: str):
    db_application = get_application_by_id(db=db, application_id=application_id, user_id=user_id)
    if db_application:
        for key, value in patch.items():
            if key in IMMUTABLE_COLUMNS:
                continue
            setattr(db_application, key, value)
        # Server clock is authoritative for the modification stamp
        db_application.updated_at = application_model.utcnow()
        db.commit()
        db.refresh(db_application)
    return db_application


def delete_application(db: Session, application_id: str, user_id: str):
    db_application = get_application_by_id(db=db, application_id=application_id, user_id=user_id)
    if db_application:
        db.delete(db_application)
        db.commit()
    return db_application


def delete_applications_for_user(db: Session, user_id: str) -> int:
    deleted = db.query(application_model.Application).filter(
        application_model.Application.user_id == user_id
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
