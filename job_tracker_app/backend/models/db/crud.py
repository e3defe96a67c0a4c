from sqlalchemy.orm import Session

from . import user as model


def get_user(db: Session, user_id: int):
    return db.query(model.User).filter(model.User.id == user_id).first()


def get_user_by_google_id(db: Session, google_id: str):
    return db.query(model.User).filter(model.User.google_id == google_id).first()


def create_user(db: Session, identity):
    db_user = model.User(
        google_id=identity.provider_id,
        email=identity.email,
        name=identity.name,
        picture=identity.picture,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def refresh_profile(db: Session, db_user: model.User, identity):
    """Copy profile fields from a fresh identity assertion, committing only on change."""
    changed = False
    for field, value in (("email", identity.email), ("name", identity.name), ("picture", identity.picture)):
        if getattr(db_user, field) != value:
            setattr(db_user, field, value)
            changed = True
    if changed:
        db.commit()
        db.refresh(db_user)
    return db_user
