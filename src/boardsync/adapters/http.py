"""REST client for the task tracker board API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from boardsync.core.errors import NetworkError, NotFoundError, ValidationError
from boardsync.core.models.entities import BoardSnapshot, Task
from boardsync.limits import REQUEST_TIMEOUT
from boardsync.version import get_boardsync_version

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from boardsync.config import SyncConfig
    from boardsync.core.models.entities import ColumnOrder

log = logging.getLogger(__name__)


class HttpBoardService:
    """``BoardService`` over HTTP.

    404 responses become ``NotFoundError``, 400 and 422 become
    ``ValidationError``, and every other HTTP or transport failure becomes
    ``NetworkError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_token: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"boardsync/{get_boardsync_version()}",
        }
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls, config: SyncConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> HttpBoardService:
        return cls(
            config.base_url,
            api_token=config.api_token,
            timeout=config.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> HttpBoardService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_board(self, board_id: int) -> BoardSnapshot:
        data = await self._request("GET", f"/v1/boards/{board_id}", resource=("board", board_id))
        try:
            return BoardSnapshot.from_payload(data)
        except (PydanticValidationError, TypeError) as exc:
            raise NetworkError(f"Board {board_id} response was malformed: {exc}") from exc

    async def update_task_status(self, task_id: int, status: str) -> Task:
        data = await self._request(
            "PUT",
            f"/v1/taskitems/{task_id}/status",
            json={"status": status},
            resource=("task", task_id),
        )
        return _parse_task(data, task_id)

    async def update_task(self, task_id: int, changes: Mapping[str, Any]) -> Task:
        payload = {to_camel(key): value for key, value in changes.items()}
        data = await self._request(
            "PUT", f"/v1/taskitems/{task_id}", json=payload, resource=("task", task_id)
        )
        return _parse_task(data, task_id)

    async def reorder_columns(self, board_id: int, orders: Sequence[ColumnOrder]) -> None:
        await self._request(
            "PUT",
            f"/v1/boards/{board_id}/columns/reorder",
            json=[order.to_payload() for order in orders],
            resource=("board", board_id),
        )

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/v1/taskitems/{task_id}", resource=("task", task_id))

    async def delete_column(self, board_id: int, column_id: int) -> None:
        await self._request(
            "DELETE",
            f"/v1/boards/{board_id}/columns/{column_id}",
            resource=("column", column_id),
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        resource: tuple[str, int],
        json: Any = None,
    ) -> Any:
        log.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _map_status_error(exc, resource) from exc
        except httpx.RequestError as exc:
            log.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkError(f"{method} {url} returned invalid JSON") from exc
        return _unwrap(body)


def _map_status_error(
    exc: httpx.HTTPStatusError, resource: tuple[str, int]
) -> NotFoundError | ValidationError | NetworkError:
    status = exc.response.status_code
    detail = _error_detail(exc.response)
    log.warning("%s %s -> HTTP %s: %s", exc.request.method, exc.request.url, status, detail)
    if status == httpx.codes.NOT_FOUND:
        return NotFoundError(*resource)
    if status in (httpx.codes.BAD_REQUEST, httpx.codes.UNPROCESSABLE_ENTITY):
        return ValidationError(detail)
    return NetworkError(f"HTTP {status}: {detail}", status_code=status)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "detail", "title", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


_ENVELOPE_KEYS = frozenset({"data", "success", "message", "errors"})


def _unwrap(body: Any) -> Any:
    # Some endpoints wrap their payload as {"success": ..., "data": ...}.
    if isinstance(body, dict) and "data" in body and set(body) <= _ENVELOPE_KEYS:
        return body["data"]
    return body


def _parse_task(data: Any, task_id: int) -> Task:
    try:
        return Task.model_validate(data)
    except PydanticValidationError as exc:
        raise NetworkError(f"Task {task_id} response was malformed: {exc}") from exc
