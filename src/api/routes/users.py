"""
User management API routes
All store access goes through the users service layer.
"""

import logging
from typing import Type, TypeVar

from fastapi import APIRouter, HTTPException, Depends, Request
from pydantic import BaseModel, ValidationError

from models.user import (
    UserCreateRequest,
    UserUpdateRequest,
    UserResponse,
    UserListResponse,
    UserMessageResponse,
)
from services.base_service import ServiceResult, VALIDATION_ERROR, CONFLICT, RESOURCE_NOT_FOUND
from services.users_service import UsersService, get_users_service
from utils.helpers import RequestBodyError, parse_request_body

router = APIRouter()
logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ERROR_STATUS_CODES = {
    VALIDATION_ERROR: 400,
    CONFLICT: 409,
    RESOURCE_NOT_FOUND: 404,
}


def raise_for_result(result: ServiceResult) -> None:
    """Map a failed service result onto an HTTP error"""
    if result.success:
        return
    status_code = ERROR_STATUS_CODES.get(result.error_type)
    if status_code is None:
        # Store failures never expose internal detail
        raise HTTPException(status_code=500, detail="Internal server error")
    raise HTTPException(status_code=status_code, detail=result.error)


async def read_body(request: Request, model: Type[ModelT]) -> ModelT:
    try:
        return model.model_validate(await parse_request_body(request))
    except (RequestBodyError, ValidationError) as e:
        logger.warning(f"Rejected request body for {request.url.path}: {e}")
        raise HTTPException(status_code=400, detail="Invalid request body")


@router.get("", response_model=UserListResponse)
@router.get("/", response_model=UserListResponse, include_in_schema=False)
async def list_users(users_service: UsersService = Depends(get_users_service)):
    """Get all users"""
    result = await users_service.list_users()
    raise_for_result(result)
    return {"users": result.data, "count": result.count}


@router.post("", status_code=201, response_model=UserMessageResponse)
@router.post("/", status_code=201, response_model=UserMessageResponse, include_in_schema=False)
async def create_user(
    request: Request,
    users_service: UsersService = Depends(get_users_service)
):
    """Create a new user"""
    payload = await read_body(request, UserCreateRequest)
    result = await users_service.create_user(payload)
    raise_for_result(result)
    return {"message": "User created successfully", "username": payload.username}


@router.get("/{username}", response_model=UserResponse)
async def get_user(
    username: str,
    users_service: UsersService = Depends(get_users_service)
):
    """Get user details"""
    result = await users_service.get_user(username)
    raise_for_result(result)
    return result.data[0]


@router.put("/{username}", response_model=UserMessageResponse)
async def update_user(
    username: str,
    request: Request,
    users_service: UsersService = Depends(get_users_service)
):
    """Update the supplied fields of a user"""
    payload = await read_body(request, UserUpdateRequest)
    result = await users_service.update_user(username, payload)
    raise_for_result(result)
    return {"message": "User updated successfully", "username": username}


@router.delete("/{username}", response_model=UserMessageResponse)
async def delete_user(
    username: str,
    users_service: UsersService = Depends(get_users_service)
):
    """Delete a user"""
    result = await users_service.delete_user(username)
    raise_for_result(result)
    return {"message": "User deleted successfully", "username": username}
