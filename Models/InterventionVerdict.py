from typing import Literal, Optional

from pydantic import BaseModel, model_validator

from Models.Participant import Participant

Urgency = Literal["none", "low", "high"]

class InterventionVerdict(BaseModel):
    """Whether the facilitator should interject, how urgently and to whom."""
    should_intervene: bool
    urgency: Urgency = "none"
    target: Optional[Participant] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_consistency(self) -> "InterventionVerdict":
        if self.should_intervene:
            if self.urgency == "none":
                raise ValueError("an intervention needs 'low' or 'high' urgency")
            if self.target is None or not self.message:
                raise ValueError("an intervention needs a target and a message")
        else:
            if self.urgency != "none":
                raise ValueError("urgency must be 'none' when not intervening")
            if self.target is not None or self.message is not None:
                raise ValueError("target and message must be empty when not intervening")
        return self

    @classmethod
    def no_intervention(cls) -> "InterventionVerdict":
        return cls(should_intervene=False)
