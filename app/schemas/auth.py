from pydantic import BaseModel


class TokenPayload(BaseModel):
    sub: str  # caller id at the identity provider
    role: str
    exp: int
    type: str = "access"
