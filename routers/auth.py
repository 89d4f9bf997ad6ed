import logging

from fastapi import APIRouter, Depends, status

from auth_utils import CredentialStore, normalize_email
from dependencies import get_credential_store, get_current_user_id, get_token_service
from errors import InvalidCredentials, NotFound, ValidationError
from schemas import AuthResponse, LoginRequest, SignupRequest, UserOut, user_to_schema
from token_service import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    users: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Registriert einen neuen Benutzer und stellt direkt ein Token aus.

    Die E-Mail wird normalisiert (lowercase, getrimmt), das Passwort mit bcrypt gehasht.

    Returns:
        dict: {"token": ..., "user": {id, name, email}}

    Raises:
        ValidationError(400): Name, E-Mail oder Passwort fehlen.
        DuplicateEmail(409): E-Mail bereits vergeben.
    """
    user = users.register(payload.name, payload.email, payload.password)
    logger.info("Signup successful for user: %s", user.email)
    return AuthResponse(token=tokens.issue(user.id), user=user_to_schema(user))


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    users: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authentifiziert einen Benutzer und stellt ein JWT aus (7 Tage gültig).

    Unbekannte E-Mail und falsches Passwort liefern dieselbe Antwort.
    """
    email = normalize_email(payload.email)
    if not email or not payload.password:
        raise ValidationError("Email and password are required.")

    user = users.find_by_email(email)
    if user is None:
        logger.info("Login attempt failed: user not found for email: %s", email)
        raise InvalidCredentials()

    if not users.verify_password(user, payload.password):
        logger.info("Login attempt failed: password mismatch for email: %s", email)
        raise InvalidCredentials()

    logger.info("Login successful for user: %s", user.email)
    return AuthResponse(token=tokens.issue(user.id), user=user_to_schema(user))


@router.get("/me", response_model=UserOut)
def me(
    user_id: int = Depends(get_current_user_id),
    users: CredentialStore = Depends(get_credential_store),
):
    """Profil des angemeldeten Benutzers."""
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFound("User not found.")
    return user_to_schema(user)
