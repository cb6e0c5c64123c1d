"""
Polling client for the rooms-summary and users-activity endpoints.

Both endpoints return the full current list on every request; the caller
replaces whatever it showed before. Responses are validated against a JSON
schema so a malformed payload fails the tick instead of the view.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx
from jsonschema import Draft7Validator

from core.context import SessionContext
from runtime.version import user_agent
from shared.chat.events import RoomSummary, UserActivity, is_mention_category
from shared.logging.logger import get_logger

log = get_logger("snapshots.client")


ROOMS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "required": ["timestamp", "category", "data"],
        "properties": {
            "timestamp": {"type": "integer", "minimum": 0},
            "category": {"type": "string", "minLength": 1},
            "id": {"type": "string"},
            "data": {
                "type": "object",
                "required": ["username", "msg"],
                "properties": {
                    "username": {"type": "string"},
                    "msg": {"type": "string"},
                },
            },
        },
    },
}

USERS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": {"type": "integer", "minimum": 0},
}

_ROOMS_VALIDATOR = Draft7Validator(ROOMS_SCHEMA)
_USERS_VALIDATOR = Draft7Validator(USERS_SCHEMA)


class SnapshotError(RuntimeError):
    """Raised when a snapshot poll cannot produce a trustworthy list."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _validate(validator: Draft7Validator, payload: Any, name: str) -> None:
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        loc = "/".join(str(p) for p in first.path) or "<root>"
        raise SnapshotError(f"{name} snapshot invalid at '{loc}': {first.message}")


def parse_rooms(payload: Any) -> List[RoomSummary]:
    _validate(_ROOMS_VALIDATOR, payload, "rooms")
    rooms = [
        RoomSummary.from_snapshot_entry(room_id, entry)
        for room_id, entry in payload.items()
        if not is_mention_category(entry.get("category", room_id))
    ]
    return sorted(rooms, key=lambda r: r.last_activity, reverse=True)


def parse_users(payload: Any) -> List[UserActivity]:
    _validate(_USERS_VALIDATOR, payload, "users")
    users = [UserActivity(username=name, last_seen=seen) for name, seen in payload.items()]
    return sorted(users, key=lambda u: u.last_seen, reverse=True)


class SnapshotClient:
    def __init__(
        self,
        session: SessionContext,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ):
        config = session.config
        self.session = session
        self.rooms_url = config.url(config.lists.rooms_path)
        self.users_url = config.url(config.lists.users_path)

        self._client = client or httpx.AsyncClient(
            auth=session.auth,
            headers={"User-Agent": user_agent(), "Accept": "application/json"},
            timeout=config.server.request_timeout,
        )
        self._client_owned = client is None

    async def _get_json(self, url: str) -> Any:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise SnapshotError(f"GET {url} failed: {e}") from e

        if response.status_code != 200:
            raise SnapshotError(
                f"GET {url} failed [{response.status_code}]",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise SnapshotError(f"GET {url} returned invalid JSON: {e}", 200) from e

    async def fetch_rooms(self) -> List[RoomSummary]:
        """Return room summaries, most recent activity first."""
        return parse_rooms(await self._get_json(self.rooms_url))

    async def fetch_users(self) -> List[UserActivity]:
        """Return user activity, most recently seen first."""
        return parse_users(await self._get_json(self.users_url))

    async def aclose(self) -> None:
        if self._client_owned:
            await self._client.aclose()


__all__ = [
    "SnapshotClient",
    "SnapshotError",
    "parse_rooms",
    "parse_users",
    "ROOMS_SCHEMA",
    "USERS_SCHEMA",
]
