"""Turns a verified external identity into a local user record."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import AuthFlowFailed
from ..models.db import crud
from .oauth import IdentityAssertion

logger = logging.getLogger(__name__)


def authenticate(db: Session, identity: IdentityAssertion):
    """Load the user keyed by provider id, creating it on first sign-in."""
    db_user = crud.get_user_by_google_id(db, identity.provider_id)
    try:
        if db_user is None:
            db_user = crud.create_user(db, identity)
            logger.info("Created user %s on first sign-in", db_user.id)
        else:
            db_user = crud.refresh_profile(db, db_user, identity)
    except IntegrityError as e:
        # Another account already owns this email address
        db.rollback()
        logger.warning("Sign-in rejected for provider id %s: %s", identity.provider_id, e.orig)
        raise AuthFlowFailed("Email address is already linked to another account") from e
    return db_user
