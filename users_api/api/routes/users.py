from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from users_api.api.dependencies import get_user_service
from users_api.schemas.user import UserCreate, UserResponse, UserUpdate
from users_api.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

Service = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=list[UserResponse])
def list_users(service: Service) -> list[UserResponse]:
    return service.list_users()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, service: Service) -> UserResponse:
    """Fetch a single user.

    Raises:
        NotFoundAppError: 404 when the id is unknown.
    """
    return service.get_user(user_id)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, service: Service) -> UserResponse:
    """Create a user.

    Raises:
        ConflictAppError: 409 when the e-mail is already registered.
    """
    return service.create_user(payload)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: str, payload: UserUpdate, service: Service) -> UserResponse:
    return service.update_user(user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, service: Service) -> Response:
    service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
