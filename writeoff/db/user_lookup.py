"""Ordered user lookup across database sources."""

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from . import crud
from .models import User

logger = logging.getLogger(__name__)


class UserLookup:
    """Look a user up in each source in precedence order.

    Sources are ``(name, session)`` pairs, the privileged session first and
    the public one after it. A source that raises is logged and skipped; the
    first source returning a row wins. Sessions stay owned by the caller.
    """

    def __init__(self, sources: Sequence[Tuple[str, Session]]):
        if not sources:
            raise ValueError("UserLookup needs at least one source")
        self.sources: List[Tuple[str, Session]] = list(sources)

    @classmethod
    def for_sessions(cls, primary: Session, fallback: Optional[Session] = None):
        sources = [("primary", primary)]
        if fallback is not None:
            sources.append(("fallback", fallback))
        return cls(sources)

    def get_user(self, user_id: str) -> Optional[User]:
        for name, db in self.sources:
            try:
                user = crud.get_user(db, user_id)
            except Exception as e:
                logger.warning(f"User lookup via {name} source failed: {str(e)}")
                db.rollback()
                continue
            logger.debug(
                f"User lookup via {name}: {'found' if user else 'no data'}, "
                f"plaid token: {'yes' if user is not None and user.plaid_token else 'no'}"
            )
            if user is not None:
                return user
        return None
