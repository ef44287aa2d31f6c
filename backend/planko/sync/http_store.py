"""Board store backed by the Planko REST API."""

import logging
from typing import Any, Optional

import httpx

from ..config import get_config
from .snapshot import BoardSnapshot
from .store import BoardStore, NotFoundError, StoreError

logger = logging.getLogger(__name__)


class HttpBoardStore(BoardStore):
    """Talks to the board backend over HTTP with an authenticated client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @classmethod
    def connect(
        cls,
        base_url: Optional[str] = None,
        session_id: Optional[str] = None,
        timeout: float = 10.0,
    ) -> "HttpBoardStore":
        """
        Create a store with its own client, optionally logged in via session cookie.

        Without ``base_url`` the configured ``sync.api_url`` is used.
        """
        if base_url is None:
            base_url = get_config().sync.api_url
        cookies = {"session_id": session_id} if session_id else None
        return cls(httpx.AsyncClient(base_url=base_url, cookies=cookies, timeout=timeout))

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StoreError(f"{method} {url} failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(self._detail(response))
        if response.is_error:
            raise StoreError(f"{method} {url} returned {response.status_code}: {self._detail(response)}")
        return response

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            return str(response.json().get("detail", response.text))
        except ValueError:
            return response.text

    async def read_board(self, board_id: str) -> BoardSnapshot:
        response = await self._request("GET", f"/api/boards/{board_id}")
        return BoardSnapshot.from_dict(response.json())

    async def update_task_position(self, task_id: str, column_id: str, order_index: int) -> None:
        await self._request(
            "PUT",
            f"/api/tasks/{task_id}/position",
            json={"column_id": column_id, "order_index": order_index},
        )

    async def delete_column(self, column_id: str) -> None:
        await self._request("DELETE", f"/api/columns/{column_id}")

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/api/tasks/{task_id}")

    async def rename_column(self, column_id: str, title: str) -> None:
        await self._request("PUT", f"/api/columns/{column_id}", json={"title": title})

    async def reorder_columns(self, board_id: str, column_ids: list[str]) -> None:
        await self._request(
            "POST", f"/api/boards/{board_id}/columns/reorder", json={"column_ids": column_ids}
        )

    async def create_column(self, board_id: str, title: str) -> str:
        response = await self._request(
            "POST", f"/api/boards/{board_id}/columns", json={"title": title}
        )
        return response.json()["id"]

    async def create_task(self, column_id: str, title: str) -> str:
        response = await self._request(
            "POST", f"/api/columns/{column_id}/tasks", json={"title": title}
        )
        return response.json()["id"]
