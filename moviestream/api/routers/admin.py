from fastapi import APIRouter, Depends, HTTPException, status

from sqlalchemy.orm import Session

from moviestream.db.database_session import get_db
from moviestream.db.models.users import User
from moviestream.api.errors import UserNotFound
from moviestream.api.security import check_user_authorization
from moviestream.api.role import UserRole
from moviestream.api.schemas import (
    ActiveUserRequest,
    GetAllUsersResponse,
    MessageResponse,
    UserResponse,
    UserRoleRequest,
)


# Define router
router = APIRouter(prefix="/admin", tags=["admin"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound()
    return user


@router.post(
        "/get_all_users",
        response_model=GetAllUsersResponse
)
def get_all_users(
    db: Session = Depends(get_db),
    _: User = Depends(check_user_authorization(UserRole.ADMIN))
):
    """
    Returns a list of all users in the DB, when the calling user has admin rights.

    **Returns**:\n
    `GetAllUsersResponse`(response_model):
        users (list of UserResponse): All users ordered by id

    `Requires:` Admin privileges
    """
    all_users = db.query(User).order_by(User.id.asc()).all()

    return GetAllUsersResponse(
        users=[UserResponse.model_validate(user) for user in all_users]
    )


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
)
def set_user_role(
    user_id: int,
    user_role: UserRoleRequest,
    db: Session = Depends(get_db),
    _: User = Depends(check_user_authorization(UserRole.ADMIN)),
):
    """
    Sets the role of a specific user.

    **Parameters:**\n
    `user_id` (int, path): The unique ID of the user whose role should be updated\n
    `user_role` (UserRoleRequest, body): The new role to assign to the user (user or admin)\n

    **Returns:**\n
    `UserResponse`(response_model): The updated user.

    **Requires:** Admin privileges
    """
    user = _get_user_or_404(db, user_id)

    user.role = user_role.role
    db.commit()
    db.refresh(user)

    return UserResponse.model_validate(user)


@router.patch(
    "/users/{user_id}/is_active",
    response_model=UserResponse,
)
def change_active_state(
    user_id: int,
    active_request: ActiveUserRequest,
    db: Session = Depends(get_db),
    _: User = Depends(check_user_authorization(UserRole.ADMIN)),
):
    '''
    Update the is_active flag of a specific user. Inactive users can't log in
    and their existing tokens are rejected.

    **Parameters:**\n
    `user_id` (int, path): The unique ID of the user whose is_active status should be updated\n
    `active_request` (ActiveUserRequest):
    - `is_active` (bool): The new active status to assign to the user (true or false)\n

    **Returns:**\n
    `UserResponse`(response_model): The updated user.

    `Requires:` Admin privileges
    '''
    user = _get_user_or_404(db, user_id)

    user.is_active = active_request.is_active
    db.commit()
    db.refresh(user)

    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(check_user_authorization(UserRole.ADMIN)),
):
    """
    Deletes a user account. Admin accounts can't be deleted through this route.

    `Requires:` Admin privileges
    """
    user = _get_user_or_404(db, user_id)

    if user.role == UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Can't delete admin user")

    db.delete(user)
    db.commit()
    return MessageResponse(message="User deleted successfully")
