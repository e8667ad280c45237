"""
Schémas Pydantic pour la connexion par lien magique (chemin de développement).
"""

from pydantic import BaseModel, EmailStr


class MagicLinkRequest(BaseModel):
    email: EmailStr


class MagicLinkResponse(BaseModel):
    message: str
    expires_in_seconds: int
    dev_link: str  # Renvoyé uniquement parce que ce chemin n'existe qu'en développement


class MagicLinkVerify(BaseModel):
    email: EmailStr
    token: str


class MemberResponse(BaseModel):
    id: int
    name: str
    email: str
    membership_status: str

    model_config = {"from_attributes": True}
