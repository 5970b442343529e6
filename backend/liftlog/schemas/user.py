from typing import Annotated
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from liftlog.models.user import UserRole

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]

class UserRegister(BaseModel):
    email: EmailStr = Field(max_length=255)
    name: NameStr
    password: Annotated[str, Field(min_length=12, max_length=72)]

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        if not any(c.islower() for c in v):
            raise ValueError("password must include a lowercase letter")
        if not any(c.isupper() for c in v):
            raise ValueError("password must include an uppercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("password must include a digit")
        if not any(not c.isalnum() for c in v):
            raise ValueError("password must include a special character")
        return v

class UserLogin(BaseModel):
    email: EmailStr
    password: Annotated[str, Field(min_length=1, max_length=256)]

class UserRead(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole
    created_at: datetime
    model_config = {"from_attributes": True}

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
