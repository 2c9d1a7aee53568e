import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from Models.FacilitatorResponse import AIMessage
from Models.InterventionVerdict import InterventionVerdict
from Models.Participant import Participant
from Models.Turn import Turn

logger = logging.getLogger("facilitator-service")

RECENT_WINDOW = 6
IMBALANCE_THRESHOLD = 3
SHORT_TURN_MAX_TOKENS = 2
SHORT_TURN_THRESHOLD = 4

# "AI to Alice", "Note from ai to both" etc. Whole word only, so "Kai Tomlinson" is a person.
AI_ADDRESS_PATTERN = re.compile(r"\bai\s+to\b")

STUCK_TRIGGERS = (
    "no topic",
    "don't have any topic",
    "dont have any topic",
    "not sure what to discuss",
    "no idea",
    "stuck",
    "confused",
    "frustrated",
    "angry",
    "argument",
    "disagree",
    "waste of time",
)


@dataclass(frozen=True)
class ConversationState:
    """Everything a rule may look at for one facilitate call."""
    first: Participant
    second: Participant
    turns: Tuple[Turn, ...]
    raw_text: str

    @property
    def human_turns(self) -> List[Turn]:
        return [t for t in self.turns if not is_facilitator_speaker(t.speaker)]

    @property
    def recent_human_turns(self) -> List[Turn]:
        return self.human_turns[-RECENT_WINDOW:]

    def other(self, participant: Participant) -> Participant:
        return self.second if participant.id == self.first.id else self.first


@dataclass(frozen=True)
class Rule:
    """A named step of the decision chain. `apply` returns None when the rule does not match."""
    name: str
    apply: Callable[[ConversationState], Optional[InterventionVerdict]]


def is_facilitator_speaker(speaker: str) -> bool:
    if not speaker:
        return False
    label = speaker.strip().lower()
    return label == "ai" or label.startswith("ai(") or AI_ADDRESS_PATTERN.search(label) is not None


def count_by_speaker(turns: Sequence[Turn]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for turn in turns:
        if not turn.speaker:
            continue
        counts[turn.speaker] = counts.get(turn.speaker, 0) + 1
    return counts


def pick_quiet_participant(state: ConversationState) -> Participant:
    """
    The participant with fewer human turns overall. On a tie, whoever did not
    speak last; with no labelled human turn at all, the first participant.
    """
    human = state.human_turns
    counts = count_by_speaker(human)
    first_count = counts.get(state.first.display_name, 0)
    second_count = counts.get(state.second.display_name, 0)

    if first_count == second_count:
        last = next((t for t in reversed(human) if t.speaker), None)
        if last is None:
            return state.first
        return state.second if last.speaker == state.first.display_name else state.first
    return state.first if first_count < second_count else state.second


def _reset_prompt(state: ConversationState, target: Participant) -> str:
    other = state.other(target)
    return "\n".join([
        "It sounds like the conversation may be stuck. Let's reset quickly.",
        "Could you share:",
        "1) Your main goal for this discussion (1 sentence)",
        f"2) One thing you need from {other.display_name or 'the other person'} today",
        "3) A proposal or option you want to explore",
        "Then I'll suggest a clear next step and questions for both of you.",
    ])


def _perspective_nudge(target: Participant) -> str:
    return "\n".join([
        f"I'd love to hear your perspective, {target.display_name}.",
        "What matters most to you here, and what would a good outcome look like?",
    ])


STRUCTURE_NUDGE = "\n".join([
    "Quick nudge: could you add a bit more context?",
    "A helpful format: Goal → Constraints → Options → Next step.",
    "What's the most important decision you want to make today?",
])


def stuck_signal(state: ConversationState) -> Optional[InterventionVerdict]:
    text = state.raw_text.lower()
    if not any(trigger in text for trigger in STUCK_TRIGGERS):
        return None
    target = pick_quiet_participant(state)
    return InterventionVerdict(
        should_intervene=True,
        urgency="high",
        target=target,
        message=_reset_prompt(state, target),
    )


def open_question(state: ConversationState) -> Optional[InterventionVerdict]:
    human = state.human_turns
    if human and human[-1].text.strip().endswith("?"):
        # They are mid Q&A; stay out of it.
        return InterventionVerdict.no_intervention()
    return None


def participation_imbalance(state: ConversationState) -> Optional[InterventionVerdict]:
    counts = count_by_speaker(state.recent_human_turns)
    first_count = counts.get(state.first.display_name, 0)
    second_count = counts.get(state.second.display_name, 0)
    if abs(first_count - second_count) < IMBALANCE_THRESHOLD:
        return None
    target = state.first if first_count < second_count else state.second
    return InterventionVerdict(
        should_intervene=True,
        urgency="low",
        target=target,
        message=_perspective_nudge(target),
    )


def low_content_run(state: ConversationState) -> Optional[InterventionVerdict]:
    short_turns = [
        t for t in state.recent_human_turns
        if len(t.text.split()) <= SHORT_TURN_MAX_TOKENS
    ]
    if len(short_turns) < SHORT_TURN_THRESHOLD:
        return None
    return InterventionVerdict(
        should_intervene=True,
        urgency="low",
        target=pick_quiet_participant(state),
        message=STRUCTURE_NUDGE,
    )


RULES: Tuple[Rule, ...] = (
    Rule("stuck_signal", stuck_signal),
    Rule("open_question", open_question),
    Rule("participation_imbalance", participation_imbalance),
    Rule("low_content_run", low_content_run),
)


def _render_transcript(turns: Sequence[Turn]) -> str:
    return "\n".join(f"{t.speaker}: {t.text}" if t.speaker else t.text for t in turns)


def decide(
    first: Participant,
    second: Participant,
    turns: Sequence[Turn],
    raw_conversation: Optional[str] = None,
    rules: Sequence[Rule] = RULES,
) -> InterventionVerdict:
    """
    Runs the rule chain in order and returns the first verdict produced.

    Keyword triggers are matched against `raw_conversation` when given,
    otherwise against the turns rendered back to "Speaker: text" lines.
    """
    if raw_conversation is None:
        raw_conversation = _render_transcript(turns)
    state = ConversationState(
        first=first,
        second=second,
        turns=tuple(turns),
        raw_text=raw_conversation,
    )
    for rule in rules:
        verdict = rule.apply(state)
        if verdict is not None:
            logger.debug(f"Rule '{rule.name}' matched: urgency={verdict.urgency}")
            return verdict
    return InterventionVerdict.no_intervention()


def _kickoff_message(toward: Participant, other: Participant) -> str:
    return "\n".join([
        f"Hi {toward.display_name or 'there'}! I'm your AI Facilitator for this discussion with {other.display_name or 'the other participant'}.",
        "To get started:",
        "1) What outcome do you want from this chat (e.g., decision, alignment, next steps)?",
        "2) What's one key constraint (time, budget, scope) we should keep in mind?",
        "Reply with short bullets and I'll help keep the conversation focused.",
    ])


def build_kickoff(first: Participant, second: Participant) -> Tuple[AIMessage, AIMessage]:
    return (
        AIMessage(ai_message=_kickoff_message(first, second), target=first.id),
        AIMessage(ai_message=_kickoff_message(second, first), target=second.id),
    )
