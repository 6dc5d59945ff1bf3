from pydantic import BaseModel, EmailStr, field_validator


# ACTOR CONTRACT (who is calling, as vouched for by the identity provider)
class Actor(BaseModel):
    email: EmailStr
    display_name: str = ""
    is_admin: bool = False

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


# ME RESPONSE CONTRACT
class MeResponse(BaseModel):
    email: str
    displayName: str
    isAdmin: bool


# TOKEN CLAIMS CONTRACT (what the identity token carries)
class TokenData(BaseModel):
    sub: str
    email: str
    name: str = ""
