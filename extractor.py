import re
from typing import List, Optional

from Models.Participant import Participant
from Models.Turn import Turn

MAX_PARTICIPANTS = 2

# Only \n and \r\n end a line; form feeds and other separators stay inside the text.
LINE_BREAK = re.compile(r"\r?\n")

PROFILE_ID_PATTERN = re.compile(r"Profile[ \t]*ID[ \t]*:[ \t]*([^\n\r]+)", re.IGNORECASE)
USER_NAME_PATTERN = re.compile(r"User[ \t]*Name[ \t]*:[ \t]*([^\n\r]+)", re.IGNORECASE)
# A bare "Name:" label that is not the tail of a "User Name:" label.
BARE_NAME_PATTERN = re.compile(r"(?<![A-Za-z])(?<!User )Name[ \t]*:[ \t]*([^\n\r]+)", re.IGNORECASE)


def _field_values(pattern: re.Pattern, raw: str) -> List[str]:
    values = []
    for match in pattern.finditer(raw):
        value = match.group(1).strip()
        if value:
            values.append(value)
    return values


def placeholder_participant(index: int) -> Participant:
    return Participant(id=f"user_{index + 1}", display_name=f"User {index + 1}")


def extract_participants(raw_info: Optional[str]) -> List[Participant]:
    """
    Pulls the two participants out of a free-form users_info string.

    Ids and names are paired by order of appearance, so the profile blocks are
    expected to list their fields in the same order. Missing slots are filled
    with user_N / User N placeholders; anything past the second profile is ignored.
    """
    raw = str(raw_info or "")

    profile_ids = _field_values(PROFILE_ID_PATTERN, raw)
    names = _field_values(USER_NAME_PATTERN, raw) + _field_values(BARE_NAME_PATTERN, raw)

    participants = []
    for i in range(MAX_PARTICIPANTS):
        fallback = placeholder_participant(i)
        participants.append(Participant(
            id=profile_ids[i] if i < len(profile_ids) else fallback.id,
            display_name=names[i] if i < len(names) else fallback.display_name,
        ))
    return participants


def parse_transcript(raw_conversation: Optional[str]) -> List[Turn]:
    """
    Splits a transcript into turns.

    Supported lines look like "Alice: hello", "AI(to both): hello" or
    "AI(to Alice): hello". A line without a colon is glued onto the previous turn.
    """
    raw = str(raw_conversation or "")
    lines = [line.strip() for line in LINE_BREAK.split(raw)]

    turns: List[Turn] = []
    for line in lines:
        if not line:
            continue
        speaker, sep, text = line.partition(":")
        if not sep:
            if turns:
                turns[-1].text += f"\n{line}"
            else:
                turns.append(Turn(speaker="", text=line))
            continue
        turns.append(Turn(speaker=speaker.strip(), text=text.strip()))
    return turns
