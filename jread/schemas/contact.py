from pydantic import BaseModel, EmailStr, Field


class ContactRequest(BaseModel):
    email: EmailStr
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=10000)


class ContactResponse(BaseModel):
    id: int
    message: str = "Thanks! Your message has been sent."
