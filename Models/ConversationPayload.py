from pydantic import BaseModel, Field

class InitiatePayload(BaseModel):
    """Request body for /api/initiate-conversation."""
    users_info: str = Field(..., min_length=1, description="Free text holding both user profiles.")

class FacilitatePayload(BaseModel):
    """Request body for /api/facilitate-conversation."""
    users_info: str = Field(..., min_length=1, description="Free text holding both user profiles.")
    conversation: str = Field(..., min_length=1, description="Chronological transcript, one 'Speaker: text' per line.")
