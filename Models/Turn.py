from pydantic import BaseModel

class Turn(BaseModel):
    """A single transcript line (plus any continuation lines)."""
    speaker: str
    text: str
