from pydantic import BaseModel

class UserProfile(BaseModel):
    id: int
    name: str
    email: str | None = None

    class Config:
        from_attributes = True

class AuthUser(BaseModel):
    id: int
    name: str
    currency: str | None = None

    class Config:
        from_attributes = True
