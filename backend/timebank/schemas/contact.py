"""TimeBank Backend — Contact Message Schemas"""

from typing import Optional

from pydantic import BaseModel, Field


class ContactRequest(BaseModel):
    user_id: Optional[int] = Field(default=None, description="Must match the session user if given")
    name: str = Field(max_length=100)
    phone: str = Field(max_length=50)
    subject: str = Field(max_length=200)
    message: str = Field(max_length=5000)


class ContactResponse(BaseModel):
    success: bool = Field(default=True)
    message: str = Field(default="Message sent successfully")
