from collections.abc import Callable
from typing import ClassVar

from pydantic import EmailStr, Field, field_validator

from posdb.models.enums import Role
from posdb.schemas.common import CreateSchema, lower_key


class UserCreate(CreateSchema):
    key_normalizers: ClassVar[dict[str, Callable[[str], str]]] = {"email": lower_key}

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password_hash: str = Field(..., min_length=1, max_length=255)
    role: Role = Role.STAFF
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return lower_key(v)
