"""
User-related Pydantic models
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, model_validator

# Fields stored in each user hash, in write order
USER_FIELDS = ("firstname", "lastname", "email")


class UserFieldsRequest(BaseModel):
    """Request body holding user fields; falsy values count as absent"""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def drop_falsy_values(cls, data: Any) -> Any:
        # 0, false and null mean "not supplied", like an empty string
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value or isinstance(value, str)}
        return data


class UserCreateRequest(UserFieldsRequest):
    # Presence is checked by the service so missing fields return 400, not 422
    username: Optional[str] = None

    def missing_fields(self) -> List[str]:
        """Names of required fields that are absent or empty"""
        return [name for name in ("username",) + USER_FIELDS if not getattr(self, name)]

    def to_fields(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in USER_FIELDS}


class UserUpdateRequest(UserFieldsRequest):

    def to_updates(self) -> Dict[str, str]:
        """Fields that were supplied with a non-empty value"""
        return {name: getattr(self, name) for name in USER_FIELDS if getattr(self, name)}


class UserResponse(BaseModel):
    username: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None


class UserListResponse(BaseModel):
    users: List[UserResponse]
    count: int


class UserMessageResponse(BaseModel):
    message: str
    username: str
