from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from usergate.users.models import Role, Theme


class LoginPayload(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterPayload(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    theme: Theme = Theme.LIGHT


class UserUpdatePayload(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[Role] = None
    theme: Optional[Theme] = None

    @model_validator(mode="after")
    def _require_a_change(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided")
        return self


class Preferences(BaseModel):
    theme: Theme = Theme.LIGHT

