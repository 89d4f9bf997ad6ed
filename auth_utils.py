import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import DuplicateEmail, ValidationError
from models import User

logger = logging.getLogger(__name__)


def make_password_context(rounds: int = 10) -> CryptContext:
    # bcrypt, 10 Runden ~ 100ms pro Hash auf normaler Hardware
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


pwd_context = make_password_context()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str, context: CryptContext = pwd_context) -> str:
    return context.hash(password)


def verify_password(plain_password: str, hashed_password: str, context: CryptContext = pwd_context) -> bool:
    return context.verify(plain_password, hashed_password)


class CredentialStore:
    """User records: signup, lookup by email and password checks."""

    def __init__(self, db: Session, context: CryptContext = pwd_context):
        self.db = db
        self.context = context

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create a new user with a salted bcrypt hash.

        Raises:
            ValidationError: name, email or password is empty.
            DuplicateEmail: a user with the normalized email already exists.
        """
        name = (name or "").strip()
        normalized = normalize_email(email)
        if not name or not normalized or not password:
            raise ValidationError("Name, email, and password are required.")

        if self.find_by_email(normalized) is not None:
            raise DuplicateEmail()

        user = User(name=name, email=normalized, password_hash=hash_password(password, self.context))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Parallele Registrierung mit derselben E-Mail
            self.db.rollback()
            raise DuplicateEmail()
        self.db.refresh(user)
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return self.db.query(User).filter(User.email == normalized).first()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def verify_password(self, user: User, password: str) -> bool:
        # passlib vergleicht in konstanter Zeit
        return verify_password(password, user.password_hash, self.context)
