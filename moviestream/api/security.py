from fastapi import Depends, HTTPException, status, Security
from fastapi.security import OAuth2PasswordBearer

from sqlalchemy.orm import Session

import os
import logging
from datetime import datetime, timedelta, timezone
from dotenv import load_dotenv
from jose import jwt, JWTError
from passlib.context import CryptContext

from moviestream.api.role import UserRole
from moviestream.db.models.users import User
from moviestream.db.database_session import SessionLocal, get_db
from moviestream.db.review_requests import Reviewer


load_dotenv()

# Load env vars for hashing and JWT
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MIN = int(os.getenv("ACCESS_TOKEN_EXPIRE_MIN", "30"))

# Configured hashing machine -> every password is hashed with it
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

oauth_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

logger = logging.getLogger(__name__)


def hash_password(pwd: str) -> str:
    '''
    Hashes the given password with the configured pwd_context.

    Parameters
    ----------
    pwd: str
        The password that will be hashed

    Returns
    -------
    The hashed password.
    '''
    return pwd_context.hash(pwd)


def verify_password(pwd: str, hashed_pwd: str) -> bool:
    """True if the plain password matches the stored hash."""
    return pwd_context.verify(pwd, hashed_pwd)


def create_access_token(subject: str, role: UserRole) -> str:
    '''
    Creates an JWT access token for the given subject.

    Parameters
    ----------
    subject: str
        Subject to give the token to, here users email.
    role: UserRole
        Role of the user at login time.

    Returns
    -------
    access_token: str
        The jwt access token for the subject.
    '''
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MIN)

    payload = {
        "sub": subject,         # Email
        "role": role.value,
        "exp": expire,
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decodes a jwt token and returns its payload. Raises JWTError for invalid or
    expired tokens and for tokens without subject.
    """
    payload = jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
    )

    if not payload.get("sub"):
        raise JWTError("Missing subject (sub) claim.")

    return payload


def get_current_user(
        token: str = Security(oauth_scheme),
        db: Session = Depends(get_db),
) -> User:
    '''
    Resolves the bearer token of the request into the calling user. The user is
    looked up on every request, so deactivated or deleted accounts lose access
    immediately even if their token has not expired yet.

    Parameters
    ----------
    token: str
        JWT access token.
    db: Session
        A DB session object to access the DB trough SQLalchemy.

    Returns
    ----------
    user : User
        The authenticated user. Else HTTPException 401.
    '''
    try:
        email = decode_token(token)["sub"]
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive.")

    return user


def check_user_authorization(*allowed_roles: UserRole):
    '''
    Dependency factory: the returned callable resolves the current user and
    raises HTTP 403 unless the user's role is one of the allowed roles.

    Parameters
    ----------
    *allowed_roles : UserRole
        One or more roles that are allowed to access the protected endpoint, e.g.:
            check_user_authorization(UserRole.ADMIN)
            check_user_authorization(UserRole.USER, UserRole.ADMIN)

    Returns
    ----------
    callable
        A FastAPI dependency returning the authorized User.
    '''
    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permission."
            )
        return current_user
    return _checker


def get_reviewer(
        current_user: User = Depends(check_user_authorization(UserRole.USER, UserRole.ADMIN)),
) -> Reviewer:
    """Snapshot of the calling user as it is stored in a review."""
    return Reviewer(
        user_id=current_user.id,
        user_name=current_user.full_name,
        user_image=current_user.image,
    )


def init_authorization():
    '''
    Initializes the application's administrator account in the database.

    Idempotent and safe to run at application startup:

      1. If any user with role UserRole.ADMIN exists, initialization is skipped.
      2. Otherwise ADMIN_EMAIL and ADMIN_PASSWORD are read from the environment.
         If either variable is missing, initialization is skipped with a warning.
      3. An existing user with ADMIN_EMAIL is promoted to UserRole.ADMIN.
      4. Otherwise a new active admin user is created (name from ADMIN_FULL_NAME).
    '''
    db = SessionLocal()
    try:
        admin_exists = db.query(User).filter(User.role == UserRole.ADMIN).first()
        if admin_exists:
            logger.info("Admin user already exists. Skipping admin initialization.")
            return

        admin_email = os.getenv("ADMIN_EMAIL")
        admin_pwd = os.getenv("ADMIN_PASSWORD")

        if not admin_email or not admin_pwd:
            logger.warning("No admin email or password found in env file. Admin initialization skipped.")
            return

        user = db.query(User).filter(User.email == admin_email).first()

        if user:
            user.role = UserRole.ADMIN
            db.commit()
            logger.info("Promoted existing user %s to admin.", admin_email)
        else:
            db.add(
                User(
                    email=admin_email,
                    full_name=os.getenv("ADMIN_FULL_NAME", "Administrator"),
                    hashed_password=hash_password(admin_pwd),
                    is_active=True,
                    role=UserRole.ADMIN,
                )
            )
            db.commit()
            logger.info("Created admin user %s.", admin_email)
    finally:
        db.close()
