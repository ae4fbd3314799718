"""FastAPI dependencies shared by feature routers."""

from taskboard_service.core.dependencies.auth import CurrentUserIdDep, get_current_user_id
from taskboard_service.core.dependencies.database import SessionDep, get_db_session

__all__ = ["CurrentUserIdDep", "SessionDep", "get_current_user_id", "get_db_session"]
