import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from config import Settings

logger = logging.getLogger("facilitator-service")

PREVIEW_CHARS = 1200

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"```$")


class FacilitatorError(Exception):
    """Base error surfaced to the HTTP layer with a status code and diagnostic details."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class UpstreamCallError(FacilitatorError):
    """The model call failed, came back empty or could not be parsed as JSON."""


class ShapeMismatchError(FacilitatorError):
    """The model returned JSON that does not have the expected shape."""

    def __init__(self, details: Optional[Any] = None):
        super().__init__("Model returned unexpected response shape", status_code=502, details=details)


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_START.sub("", cleaned)
    cleaned = _FENCE_END.sub("", cleaned)
    return cleaned.strip()


def build_initiate_prompt(users_info: str) -> str:
    return f"""
You are an AI facilitator helping two users start a meaningful business discussion.

INPUT (users_info as raw text):
{users_info}

TASK:
Generate two short kickoff messages: one targeted to User 1 and one targeted to User 2.
- Keep it friendly, professional, and relevant to their bios/interests.
- Each message should be 1-2 sentences.
- Ask ONE concrete question to move the conversation forward.
- The "target" MUST be the profile id of that user (as seen in users_info).

OUTPUT:
Return ONLY valid JSON in this exact format:

{{
  "ai_messages": [
    {{ "ai_message": "...", "target": "PROFILE_ID_1" }},
    {{ "ai_message": "...", "target": "PROFILE_ID_2" }}
  ]
}}
""".strip()


def build_facilitate_prompt(users_info: str, conversation: str) -> str:
    return f"""
You are an AI conversation facilitator for a business discussion between two users.

INPUT (users_info as raw text):
{users_info}

INPUT (conversation as raw text, chronological):
{conversation}

TASK:
Decide whether the AI should intervene to help the conversation.

Intervene ONLY when helpful, for example when:
- the conversation stalls or both say they have no topic / no idea
- one user is confused or disengaged
- the discussion lacks direction or structure
- the conversation becomes unproductive or off-track

TARGETING RULE (IMPORTANT):
- First, determine which user is currently asking for help or is most clearly stuck based on the MOST RECENT messages
  (e.g. "help", "please help", "i don't know what to say", "no topic", "no idea").
- If ONLY ONE user shows these "needs help" signals, you MUST target that user (do NOT target the other user).
- If NEITHER user needs help, do not intervene.

OUTPUT RULES:
- should_intervene: boolean
- urgency: "high" | "low" | "none"
  - "high": must show the message in the chat now
  - "low": optional / supportive suggestion
  - "none": no AI message should be shown
- If should_intervene is false:
  - urgency MUST be "none"
  - ai_messages MUST be an empty array []
- If should_intervene is true:
  - urgency MUST be "high" or "low"
  - ai_messages MUST contain exactly 1 item with:
    - ai_message: 1-2 sentences, professional and friendly, with ONE probing question
    - target: a profile ID taken from users_info, the user who needs help

Return ONLY valid JSON in this exact format (no extra text, no markdown):

{{
  "should_intervene": true|false,
  "urgency": "high"|"low"|"none",
  "ai_messages": [
    {{ "ai_message": "...", "target": "PROFILE_ID" }}
  ]
}}
""".strip()


class LLMClient:
    """
    Sends a prompt to the configured model and returns the parsed JSON object.
    No retries: every failure is raised as UpstreamCallError.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def _gemini_request(self, prompt: str):
        if not self.settings.GEMINI_API_KEY:
            raise UpstreamCallError("GEMINI_API_KEY is missing. Set FACILITATOR_GEMINI_API_KEY.", status_code=500)
        url = f"{self.settings.GEMINI_BASE_URL}/models/{self.settings.GEMINI_MODEL}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.settings.LLM_TEMPERATURE,
                "response_mime_type": "application/json",
            },
        }
        headers = {"x-goog-api-key": self.settings.GEMINI_API_KEY}
        return url, body, headers

    def _ollama_request(self, prompt: str):
        url = self.settings.OLLAMA_BASE_URL + "/generate"
        body = {
            "model": self.settings.OLLAMA_MODEL_NAME,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": self.settings.LLM_TEMPERATURE},
        }
        return url, body, {}

    def _response_text(self, data: Dict[str, Any]) -> str:
        if self.settings.LLM_PROVIDER == "ollama":
            return str(data.get("response") or "")
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return ""
        content = candidates[0].get("content")
        if not isinstance(content, dict):
            return ""
        parts = content.get("parts")
        if not isinstance(parts, list):
            return ""
        return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))

    async def generate_json(self, prompt: str) -> Dict[str, Any]:
        if self.settings.LLM_PROVIDER == "ollama":
            url, body, headers = self._ollama_request(prompt)
        else:
            url, body, headers = self._gemini_request(prompt)

        logger.info(f"Sending prompt to {self.settings.LLM_PROVIDER} ({len(prompt)} chars)")
        async with httpx.AsyncClient(timeout=self.settings.LLM_TIMEOUT_SECONDS, transport=self.transport) as client:
            try:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                payload = _safe_json(e.response)
                message = _upstream_message(payload) or e.response.reason_phrase or str(e)
                logger.error(f"Model request failed with status {e.response.status_code}: {message}")
                raise UpstreamCallError(
                    f"Model request failed: {message}",
                    status_code=e.response.status_code,
                    details=payload,
                ) from e
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Model request failed: {e}", exc_info=True)
                raise UpstreamCallError(f"Model request failed: {e}", status_code=502) from e

        text = self._response_text(data) if isinstance(data, dict) else ""
        if not text.strip():
            raise UpstreamCallError("Model returned empty response text", status_code=502, details={"raw": data})

        cleaned = strip_code_fences(text)
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise UpstreamCallError(
                "Model returned invalid JSON",
                status_code=502,
                details={
                    "preview": cleaned[:PREVIEW_CHARS],
                    "raw_preview": text[:PREVIEW_CHARS],
                },
            ) from e


def _safe_json(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return response.text[:PREVIEW_CHARS] or None


def _upstream_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return error
    return None
