"""
api/routes/v1/users.py -- User management REST endpoints (admin only).

Routes:
  GET    /api/v1/users          -- list all users, newest first
  GET    /api/v1/users/{id}     -- one user
  POST   /api/v1/users          -- create a user with a chosen role
  PUT    /api/v1/users/{id}     -- update any field, including role
  DELETE /api/v1/users/{id}     -- delete a user

Security:
  Router-level require_admin: a missing or bad token is 401, a valid
  non-admin token is 403 and the handler never runs.
  PUT blocks an admin from demoting themselves; DELETE blocks an admin from
  deleting themselves. Both guards live in auth/gate.py and run inside the
  service before the store is touched.
  No response contains a credential -- every user goes through
  UserResponse.from_public().
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MessageResponse, UserCreate, UserEnvelope, UserResponse, UserUpdate
from auth.dependencies import get_service, require_admin
from auth.models import SubjectClaims
from auth.service import AuthService

# Auth policy:
# - every route in this module: requires admin (require_admin)
# Router-level dependency fails fast; the service re-checks the role itself.
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/users", response_model=list[UserResponse])
def list_users(
    claims: SubjectClaims = Depends(require_admin),
    service: AuthService = Depends(get_service),
) -> list[UserResponse]:
    """List all user accounts, newest first."""
    return [UserResponse.from_public(u) for u in service.list_users(claims)]


@router.get("/users/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: int,
    claims: SubjectClaims = Depends(require_admin),
    service: AuthService = Depends(get_service),
) -> UserEnvelope:
    user = service.get_user(claims, user_id)
    return UserEnvelope(message="User retrieved successfully", user=UserResponse.from_public(user))


@router.post("/users", response_model=UserEnvelope, status_code=201)
def create_user(
    body: UserCreate,
    claims: SubjectClaims = Depends(require_admin),
    service: AuthService = Depends(get_service),
) -> UserEnvelope:
    """Create a user account. The admin chooses the role (default "user")."""
    user = service.create_user(claims, body.username, body.email, body.password, body.role)
    return UserEnvelope(message="User created successfully", user=UserResponse.from_public(user))


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: int,
    body: UserUpdate,
    claims: SubjectClaims = Depends(require_admin),
    service: AuthService = Depends(get_service),
) -> UserEnvelope:
    """Update a user. Only supplied fields change; an empty body returns the record unchanged."""
    user = service.update_user(
        claims,
        user_id,
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    return UserEnvelope(message="User updated successfully", user=UserResponse.from_public(user))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    claims: SubjectClaims = Depends(require_admin),
    service: AuthService = Depends(get_service),
) -> MessageResponse:
    username = service.delete_user(claims, user_id)
    return MessageResponse(message=f"User '{username}' deleted successfully")
