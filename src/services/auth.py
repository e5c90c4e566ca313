"""Account credentials: password hashing and bearer tokens.

Accounts exist to scope recipes and the storage namespace their images live
in. Emails are compared case-insensitively.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.config import get_settings
from src.errors import ConflictError
from src.models.user import User

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def issue_token(user: User) -> str:
    """Sign a bearer token for an account."""
    expires = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    claims = {"sub": str(user.id), "email": user.email, "exp": expires}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def read_token(token: str) -> int | None:
    """Return the account id a token was issued for, or None if it is invalid or expired."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        return None
    return int(subject)


def find_account(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Return the account for valid credentials, otherwise None."""
    user = find_account(db, email)
    if user is None or not pwd_context.verify(password, user.password_hash):
        return None
    return user


def register_account(db: Session, email: str, password: str, name: str | None = None) -> User:
    """Create an account.

    Raises:
        ConflictError: if the email is already registered.
    """
    if find_account(db, email) is not None:
        raise ConflictError("Email already registered")
    user = User(email=normalize_email(email), password_hash=pwd_context.hash(password), name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
