from typing import Iterator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from auth_utils import CredentialStore
from errors import MissingToken
from task_store import TaskStore
from token_service import TokenService

BEARER_PREFIX = "Bearer "


# --- Database Dependency ---
def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_credential_store(request: Request, db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db, request.app.state.pwd_context)


def get_task_store(db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db)


# --- Auth Dependency ---
def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header or raise MissingToken."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingToken()
    token = authorization[len(BEARER_PREFIX):]
    # Genau "Bearer <token>": kein leeres Token, keine zusätzlichen Leerzeichen
    if not token or any(c.isspace() for c in token):
        raise MissingToken()
    return token


def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> int:
    """
    Access gate for every authenticated route.

    The returned id is the only identity used for authorization decisions; ids sent in
    bodies or query strings are never trusted.
    """
    token = extract_bearer_token(authorization)
    user_id = tokens.verify(token)
    request.state.user_id = user_id
    return user_id
