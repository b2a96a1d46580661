"""Identity provider: JWT sessions and password handling.

Sessions are stateless bearer tokens whose ``sub`` claim is the user id.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from listshare.config import get_settings
from listshare.exceptions import Conflict
from listshare.models.user import User

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, email: str) -> str:
    """Issue a session token that expires after ``jwt_expiration_minutes``."""
    claims = {
        "sub": str(user_id),
        "email": email,
        "exp": datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def resolve_session_user(db: Session, token: str | None) -> User | None:
    """Return the user a bearer token belongs to, or None for no valid session."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        user_id = int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None
    return db.get(User, user_id)


def register_user(
    db: Session,
    email: str,
    password: str,
    username: str,
    name: str | None = None,
) -> User:
    """Create an account. Emails and usernames are unique, case-insensitively."""
    taken = (
        db.query(User.email, User.username)
        .filter(
            or_(
                func.lower(User.email) == email.lower(),
                func.lower(User.username) == username.lower(),
            )
        )
        .all()
    )
    for taken_email, taken_username in taken:
        if taken_email.lower() == email.lower():
            raise Conflict("Email already registered")
        if taken_username and taken_username.lower() == username.lower():
            raise Conflict("Username already taken")

    user = User(
        email=email.lower(),
        username=username,
        name=name,
        password_hash=get_password_hash(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Check an email/password pair, returning the user on success."""
    user = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if user is None or not pwd_context.verify(password, user.password_hash):
        return None
    return user
