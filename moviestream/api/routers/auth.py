from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from sqlalchemy.orm import Session

from moviestream.db.database_session import get_db
from moviestream.db.models.users import User
from moviestream.api.schemas import UserCreate, UserResponse, Token
from moviestream.api.security import hash_password, verify_password, create_access_token


# Init route obj
router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    """
    Creates a new active user from the given email, password, full name and
    optional image, if the email doesn't already exist.

    **Parameters**:\n
    `payload` (UserCreate): The user email, password, fullName and image.\n

    **Returns**:\n
    `UserResponse`(response_model): The created user.
    """
    # Check if email already exists in DB
    email_exists = db.query(User).filter(User.email == payload.email).first()
    if email_exists:    
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists.")
    
    user = User(
        email=payload.email,
        full_name=payload.full_name,
        image=payload.image,
        hashed_password=hash_password(payload.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return UserResponse.model_validate(user)


@router.post("/token", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Login endpoint (OAuth2 password flow). Returns a JWT access token if user email and 
    password are valid.

    **Returns**:\n
    `Token`(response_model): 
    - `access_token` (str): JWT access token for authentication.\n
    - `token_type` (str): Type of the token, typically "bearer".            
    """
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bad credentials."
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is inactive."
        )
    
    token = create_access_token(subject=user.email, role=user.role)

    return Token(access_token=token)
