"""User Routes — HTTP surface for the User CRUD use cases.

Invariants:
    - Request bodies are validated by Pydantic before reaching the service
    - Routes never map errors themselves: DomainError goes to api/error_handlers.py
    - POST → 201, DELETE → 204 (no body), everything else 200

Design Decisions:
    - UserService built per request from the process-wide session manager; the same
      SqlAlchemyUserRepository serves as repository and transaction port
    - get_user_service is the single override point for tests
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from app.core.user import UserId
from app.infrastructure.database import DatabaseSessionManager, get_db_manager
from app.infrastructure.user_repository import SqlAlchemyUserRepository
from app.schemas.user import UserCreate, UserResponse, UserUpdateBody
from app.services.user_service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


def get_user_service(
    manager: DatabaseSessionManager = Depends(get_db_manager),
) -> UserService:
    """FastAPI dependency wiring the service to the relational adapter."""
    repository = SqlAlchemyUserRepository(manager.session_factory)
    return UserService(repository, repository)


@router.post(
    "", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate, service: UserService = Depends(get_user_service),
):
    """Create a new user."""
    user = await service.create(body.to_request())
    logger.info("User created", extra={"user_id": user.id})
    return UserResponse.from_user(user)


@router.get("", response_model=list[UserResponse])
async def list_users(service: UserService = Depends(get_user_service)):
    """List all users."""
    users = await service.find_all()
    return [UserResponse.from_user(u) for u in users]


@router.put("", response_model=UserResponse)
async def update_user(
    body: UserUpdateBody, service: UserService = Depends(get_user_service),
):
    """Update the provided fields of an existing user."""
    user = await service.update(body.to_update())
    return UserResponse.from_user(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str, service: UserService = Depends(get_user_service),
):
    """Get one user by id."""
    user = await service.find_by_id(UserId(user_id))
    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str, service: UserService = Depends(get_user_service),
):
    """Delete one user by id."""
    await service.delete(UserId(user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
