import json
from collections.abc import Mapping
from http.client import HTTPException, RemoteDisconnected
from typing import Any
from urllib import error, parse, request


class ClickUpApiError(Exception):
    pass


class ClickUpMissingIdError(ClickUpApiError):
    pass


class ClickUpClient:
    def __init__(
        self,
        *,
        api_token: str,
        timeout_seconds: float = 10.0,
        api_base_url: str = "https://api.clickup.com/api/v2",
    ) -> None:
        self.api_token = api_token
        self.timeout_seconds = timeout_seconds
        self.api_base_url = api_base_url.rstrip("/")

    def post_task_comment(
        self,
        *,
        task_id: str,
        comment: list[dict[str, Any]],
        notify_all: bool = False,
    ) -> str | None:
        if not comment:
            raise ClickUpApiError("ClickUp comment must contain at least one block.")

        response_payload = self._request_json(
            "POST",
            f"/task/{parse.quote(task_id, safe='')}/comment",
            payload={"notify_all": notify_all, "comment": comment},
        )
        comment_id = response_payload.get("id")
        if comment_id is None:
            return None
        return str(comment_id)

    def create_task(
        self,
        *,
        list_id: str,
        name: str,
        description: str | None = None,
        assignees: list[int] | None = None,
        status: str | None = None,
        parent_task_id: str | None = None,
    ) -> str:
        payload: dict[str, Any] = {"name": name}
        if description:
            payload["description"] = description
        if assignees:
            payload["assignees"] = assignees
        if status:
            payload["status"] = status
        if parent_task_id:
            payload["parent"] = parent_task_id

        response_payload = self._request_json(
            "POST",
            f"/list/{parse.quote(list_id, safe='')}/task",
            payload=payload,
        )
        task_id = response_payload.get("id")
        if task_id is None or not str(task_id).strip():
            raise ClickUpMissingIdError(
                "ClickUp accepted the task but returned no identifier.",
            )
        return str(task_id)

    def _request_json(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        target = f"{self.api_base_url}{path}"
        raw_payload: bytes | None = None
        if payload is not None:
            raw_payload = json.dumps(payload).encode("utf-8")

        req = request.Request(
            target,
            data=raw_payload,
            method=method,
            headers={
                "Authorization": self.api_token,
                "Content-Type": "application/json",
            },
        )
        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                response_body = response.read()
        except TimeoutError as exc:
            raise ClickUpApiError("ClickUp API request timed out.") from exc
        except RemoteDisconnected as exc:
            raise ClickUpApiError(
                "ClickUp API connection was closed before sending a response.",
            ) from exc
        except error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="ignore")
            raise ClickUpApiError(
                f"ClickUp API HTTP {exc.code}: {_extract_error_message(body)}",
            ) from exc
        except error.URLError as exc:
            raise ClickUpApiError(f"ClickUp API connection error: {exc.reason}") from exc
        except (HTTPException, OSError) as exc:
            raise ClickUpApiError(f"ClickUp API transport error: {exc!r}") from exc

        if not response_body:
            return {}
        try:
            parsed_body = json.loads(response_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ClickUpApiError("ClickUp API returned invalid JSON.") from exc

        if not isinstance(parsed_body, dict):
            raise ClickUpApiError("ClickUp API response is not a JSON object.")
        return parsed_body


def _extract_error_message(body: str) -> str:
    if not body:
        return "empty response body"
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body
    if isinstance(parsed, Mapping) and isinstance(parsed.get("err"), str):
        return parsed["err"]
    return body
