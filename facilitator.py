import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pydantic import ValidationError

from config import Settings
from decision_engine import build_kickoff, decide
from extractor import extract_participants, parse_transcript
from llm_service import LLMClient, ShapeMismatchError, build_facilitate_prompt, build_initiate_prompt
from Models.FacilitatorResponse import AIMessage, FacilitateResponse, InitiateResponse
from Models.InterventionVerdict import InterventionVerdict
from Models.Participant import Participant

logger = logging.getLogger("facilitator-service")


class Facilitator(ABC):
    """Opens conversations and decides on interventions for a pair of users."""

    @abstractmethod
    async def initiate(self, users_info: str) -> InitiateResponse:
        ...

    @abstractmethod
    async def facilitate(self, users_info: str, conversation: str) -> FacilitateResponse:
        ...


def initiate(users_info: str) -> InitiateResponse:
    first, second = extract_participants(users_info)
    return InitiateResponse(ai_messages=list(build_kickoff(first, second)))


def facilitate(users_info: str, conversation: str) -> FacilitateResponse:
    first, second = extract_participants(users_info)
    turns = parse_transcript(conversation)
    verdict = decide(first, second, turns, raw_conversation=conversation or "")
    logger.info(
        f"Rule verdict: should_intervene={verdict.should_intervene} urgency={verdict.urgency} "
        f"target={verdict.target.id if verdict.target else None} turns={len(turns)}"
    )
    return FacilitateResponse.from_verdict(verdict)


class RuleBasedFacilitator(Facilitator):
    """Deterministic path: free-text extraction followed by the heuristic rule chain."""

    async def initiate(self, users_info: str) -> InitiateResponse:
        return initiate(users_info)

    async def facilitate(self, users_info: str, conversation: str) -> FacilitateResponse:
        return facilitate(users_info, conversation)


class LLMFacilitator(Facilitator):
    """Delegates both decisions to an external model and validates what comes back."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def initiate(self, users_info: str) -> InitiateResponse:
        result = await self.client.generate_json(build_initiate_prompt(users_info))
        try:
            return InitiateResponse.model_validate(result)
        except ValidationError as e:
            logger.error(f"Model kickoff response has the wrong shape: {e}")
            raise ShapeMismatchError(details=result) from e

    async def facilitate(self, users_info: str, conversation: str) -> FacilitateResponse:
        result = await self.client.generate_json(build_facilitate_prompt(users_info, conversation))
        verdict = self._to_verdict(result, extract_participants(users_info))
        logger.info(
            f"Model verdict: should_intervene={verdict.should_intervene} urgency={verdict.urgency} "
            f"target={verdict.target.id if verdict.target else None}"
        )
        return FacilitateResponse.from_verdict(verdict)

    @staticmethod
    def _to_verdict(result: Any, participants: List[Participant]) -> InterventionVerdict:
        if not isinstance(result, dict):
            raise ShapeMismatchError(details=result)

        should_intervene = result.get("should_intervene")
        urgency = result.get("urgency")
        raw_messages = result.get("ai_messages", [])
        if not isinstance(should_intervene, bool) or urgency not in ("none", "low", "high"):
            raise ShapeMismatchError(details=result)
        if not isinstance(raw_messages, list):
            raise ShapeMismatchError(details=result)

        if not should_intervene:
            if urgency != "none":
                raise ShapeMismatchError(details=result)
            return InterventionVerdict.no_intervention()

        try:
            messages = [AIMessage.model_validate(m) for m in raw_messages]
        except ValidationError as e:
            raise ShapeMismatchError(details=result) from e
        if not messages:
            raise ShapeMismatchError(details=result)

        # The verdict carries one target; further messages are dropped.
        chosen = messages[0]
        if len(messages) > 1:
            logger.warning(
                f"Model returned {len(messages)} ai_messages; keeping the one for {chosen.target}, "
                f"dropping {[m.target for m in messages[1:]]}"
            )
        target: Optional[Participant] = next((p for p in participants if p.id == chosen.target), None)
        if target is None:
            raise ShapeMismatchError(details=result)
        try:
            return InterventionVerdict(
                should_intervene=True,
                urgency=urgency,
                target=target,
                message=chosen.ai_message,
            )
        except ValidationError as e:
            raise ShapeMismatchError(details=result) from e


def get_facilitator(settings: Settings) -> Facilitator:
    if settings.DECISION_ENGINE == "llm":
        return LLMFacilitator(LLMClient(settings))
    return RuleBasedFacilitator()
