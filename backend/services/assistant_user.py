import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from backend.models.user import AI_USER_EMAIL, AI_USER_ID, AI_USER_USERNAME, User

logger = logging.getLogger(__name__)


def get_or_create_ai_user(db: Session) -> User:
    """Return the AI pseudo-user, creating it on first use.

    Uses try/except IntegrityError to handle concurrent inserts safely.
    """
    ai_user = db.get(User, AI_USER_ID)
    if ai_user is None:
        try:
            ai_user = User(id=AI_USER_ID, email=AI_USER_EMAIL, username=AI_USER_USERNAME)
            db.add(ai_user)
            db.commit()
            db.refresh(ai_user)
            logger.info("Created AI assistant user %s", AI_USER_ID)
        except IntegrityError:
            db.rollback()
            ai_user = db.get(User, AI_USER_ID)
            if ai_user is None:
                raise
    return ai_user
