from typing import List, Optional

from pydantic import BaseModel, Field

from Models.InterventionVerdict import InterventionVerdict, Urgency

class AIMessage(BaseModel):
    """A facilitator message and the profile id it is addressed to."""
    ai_message: str
    target: str

class InitiateResponse(BaseModel):
    ai_messages: List[AIMessage] = Field(..., min_length=2, max_length=2)

class FacilitateResponse(BaseModel):
    should_intervene: bool
    urgency: Urgency
    ai_message: Optional[AIMessage] = None

    @classmethod
    def from_verdict(cls, verdict: InterventionVerdict) -> "FacilitateResponse":
        if not verdict.should_intervene:
            return cls(should_intervene=False, urgency="none", ai_message=None)
        return cls(
            should_intervene=True,
            urgency=verdict.urgency,
            ai_message=AIMessage(ai_message=verdict.message, target=verdict.target.id),
        )
