from pydantic import BaseModel

class Participant(BaseModel):
    """One of the two people in a facilitated conversation."""
    id: str
    display_name: str
