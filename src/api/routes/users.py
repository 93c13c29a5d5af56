"""
User API routes
Handlers adapt HTTP to the users service and shape the JSON envelope.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from models.user import UserCreateRequest, UserUpdateRequest
from services.errors import UserServiceError
from services.users_service import UsersService, get_users_service
from utils.error_handling import error_response, service_error_response

router = APIRouter()
logger = logging.getLogger(__name__)


# Must stay ahead of /{user_id} so "search" is never read as an id
@router.get("/search")
async def search_users(
    q: Optional[str] = Query(None, description="Substring to match against name or email"),
    users_service: UsersService = Depends(get_users_service)
):
    """Search users by name or email"""
    if not q:
        return error_response(400, "Bad Request", "Search term (q) is required")

    try:
        users = await users_service.search_users(q)
    except UserServiceError as e:
        return service_error_response(e)

    return {"success": True, "count": len(users), "data": users}


@router.get("")
async def get_all_users(users_service: UsersService = Depends(get_users_service)):
    """Get all users"""
    try:
        users = await users_service.get_all_users()
    except UserServiceError as e:
        return service_error_response(e)

    return {"success": True, "count": len(users), "data": users}


@router.get("/{user_id}")
async def get_user(user_id: int, users_service: UsersService = Depends(get_users_service)):
    """Get user by id"""
    try:
        user = await users_service.get_user_by_id(user_id)
    except UserServiceError as e:
        return service_error_response(e)

    return {"success": True, "data": user}


@router.post("", status_code=201)
async def create_user(
    request: Optional[UserCreateRequest] = None,
    users_service: UsersService = Depends(get_users_service)
):
    """Create new user (requires name, email, age)"""
    try:
        payload = request or UserCreateRequest()
        user = await users_service.create_user(payload.model_dump())
    except UserServiceError as e:
        return service_error_response(e)

    return JSONResponse(
        status_code=201,
        content={"success": True, "message": "User created successfully", "data": user}
    )


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    request: Optional[UserUpdateRequest] = None,
    users_service: UsersService = Depends(get_users_service)
):
    """Update user (name, email, age expected)"""
    return await _apply_update(users_service, user_id, request)


@router.patch("/{user_id}")
async def patch_user(
    user_id: int,
    request: Optional[UserUpdateRequest] = None,
    users_service: UsersService = Depends(get_users_service)
):
    """Partially update user (any of name, email, age)"""
    return await _apply_update(users_service, user_id, request)


@router.delete("/{user_id}")
async def delete_user(user_id: int, users_service: UsersService = Depends(get_users_service)):
    """Delete user"""
    try:
        user = await users_service.delete_user(user_id)
    except UserServiceError as e:
        return service_error_response(e)

    return {"success": True, "message": "User deleted successfully", "data": user}


async def _apply_update(users_service: UsersService, user_id: int, request: Optional[UserUpdateRequest]):
    # A missing body is treated as an empty object
    changes = request.supplied_fields() if request else {}
    try:
        user = await users_service.update_user(user_id, changes)
    except UserServiceError as e:
        return service_error_response(e)

    return {"success": True, "message": "User updated successfully", "data": user}
