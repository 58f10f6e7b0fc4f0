from pydantic import BaseModel, EmailStr, Field

class ContactMessage(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    subject: str = Field(min_length=3)
    message: str = Field(min_length=10)
