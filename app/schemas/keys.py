from pydantic import BaseModel


class PublicKeyUpsert(BaseModel):
    public_key: str  # raw P-256 point, standard base64


class PublicKeyResponse(BaseModel):
    user_id: str
    public_key: str
