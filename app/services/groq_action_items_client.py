import json
import re
from collections.abc import Mapping
from http.client import HTTPException, RemoteDisconnected
from typing import Any
from urllib import error, request

from app.services.extracted_task_models import ExtractedTasksResult

GROQ_SYSTEM_PROMPT = """You are an assistant that extracts actionable tasks from meeting transcripts.

Rules:
1. Transcript may include English + Hindi + Gujarati mixed speech.
2. Return tasks in clear English only.
3. Extract only explicit or strongly implied action items.
4. Do not invent deadlines, owners, or priorities.
5. If owner is unclear, set owner as "Unassigned".
6. If due date is unclear, set due_date as null.
7. Keep each task concise (max 140 chars).
8. Merge duplicates.
9. Ignore small talk, filler, and unrelated noise.
10. Output ONLY valid JSON matching this schema:
{
  "meeting_summary": "string",
  "tasks": [
    {
      "task": "string",
      "owner": "string",
      "due_date": "YYYY-MM-DD or null",
      "priority": "high|medium|low",
      "confidence": 0.0,
      "evidence": "short quote from transcript"
    }
  ]
}"""

_FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class GroqActionItemsError(Exception):
    pass


class GroqActionItemsClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 30.0,
        max_transcript_chars: int = 20000,
        api_base_url: str = "https://api.groq.com/openai/v1",
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_transcript_chars = max_transcript_chars
        self.api_base_url = api_base_url.rstrip("/")

    def extract_tasks(
        self,
        *,
        meeting_title: str,
        participants: list[str],
        transcript_text: str,
    ) -> ExtractedTasksResult:
        prompt = self._build_prompt(
            meeting_title=meeting_title,
            participants=participants,
            transcript_text=transcript_text,
        )
        response_payload = self._complete(prompt)
        output_text = self._extract_text_response(response_payload)
        parsed_output = self._parse_json_output(output_text)
        return ExtractedTasksResult.from_payload(parsed_output)

    def _complete(self, prompt: str) -> dict[str, Any]:
        endpoint = f"{self.api_base_url}/chat/completions"
        payload = {
            "model": self.model,
            "temperature": 0.1,
            "messages": [
                {"role": "system", "content": GROQ_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        req = request.Request(
            endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                response_body = response.read()
        except TimeoutError as exc:
            raise GroqActionItemsError("Groq API request timed out.") from exc
        except RemoteDisconnected as exc:
            raise GroqActionItemsError(
                "Groq API connection was closed before sending a response.",
            ) from exc
        except error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="ignore")
            raise GroqActionItemsError(
                f"Groq API HTTP {exc.code}: {_extract_error_message(body)}",
            ) from exc
        except error.URLError as exc:
            raise GroqActionItemsError(f"Groq API connection error: {exc.reason}") from exc
        except (HTTPException, OSError) as exc:
            raise GroqActionItemsError(f"Groq API transport error: {exc!r}") from exc

        try:
            parsed_body = json.loads(response_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GroqActionItemsError("Groq API returned invalid JSON.") from exc

        if not isinstance(parsed_body, dict):
            raise GroqActionItemsError("Groq API response is not a JSON object.")
        return parsed_body

    def _extract_text_response(self, payload: Mapping[str, Any]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise GroqActionItemsError("Groq returned empty content.")

        first_choice = choices[0]
        message = first_choice.get("message") if isinstance(first_choice, Mapping) else None
        content = message.get("content") if isinstance(message, Mapping) else None
        if not isinstance(content, str) or not content.strip():
            raise GroqActionItemsError("Groq returned empty content.")
        return content

    def _parse_json_output(self, raw_text: str) -> dict[str, Any]:
        trimmed = raw_text.strip()
        fenced_match = _FENCED_BLOCK_PATTERN.search(trimmed)
        candidate = fenced_match.group(1) if fenced_match else trimmed

        direct = self._loads_json_if_possible(candidate)
        if direct is not None:
            return direct

        start = candidate.find("{")
        end = candidate.rfind("}")
        if start == -1 or end == -1 or end <= start:
            raise GroqActionItemsError("Groq output is not valid JSON.")

        parsed_candidate = self._loads_json_if_possible(candidate[start : end + 1])
        if parsed_candidate is None:
            raise GroqActionItemsError("Groq output could not be parsed as JSON.")
        return parsed_candidate

    def _loads_json_if_possible(self, value: str) -> dict[str, Any] | None:
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None

        if not isinstance(parsed, dict):
            return None
        return parsed

    def _build_prompt(
        self,
        *,
        meeting_title: str,
        participants: list[str],
        transcript_text: str,
    ) -> str:
        truncated_transcript = transcript_text[: self.max_transcript_chars]
        return "\n".join(
            [
                "Extract action items from this meeting.",
                "",
                f"Meeting title: {meeting_title}",
                f"Participants: {', '.join(participants) or 'Unknown'}",
                "",
                "Transcript:",
                truncated_transcript,
            ],
        )


def _extract_error_message(body: str) -> str:
    if not body:
        return "empty response body"
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body
    if isinstance(parsed, Mapping):
        error_payload = parsed.get("error")
        if isinstance(error_payload, Mapping) and isinstance(error_payload.get("message"), str):
            return error_payload["message"]
    return body
