"""Cursor commit: acknowledge a processed batch back to the server."""

from __future__ import annotations

from http import HTTPStatus

import httpx
import structlog

from streaming_api.config.models import ApiConfig
from streaming_api.errors import CommitCursorError
from streaming_api.models import ApiResponse, Cursor, CursorCommit

logger = structlog.get_logger()

_COMMIT_SUCCESS = frozenset({HTTPStatus.NO_CONTENT, HTTPStatus.OK})


def is_commit_successful(status_code: int) -> bool:
    return status_code in _COMMIT_SUCCESS


class CursorCommitter:
    """Sends one cursor to the subscription's cursors endpoint.

    No retries happen here: a failed commit ends the session and the
    controller reconnects with a fresh stream id.
    """

    def __init__(self, client: httpx.AsyncClient, api: ApiConfig) -> None:
        self._client = client
        self._api = api

    async def commit(
        self,
        cursor: Cursor,
        stream_id: str,
        subscription_id: str,
        api_key: str,
    ) -> ApiResponse:
        """POST ``cursor`` and return the raw response.

        Transport failures are raised as :class:`CommitCursorError`; a
        non-success status is returned for the caller to judge.
        """
        body = CursorCommit(items=[cursor]).to_payload()
        headers = {
            "Content-Type": "application/json",
            self._api.stream_id_header: stream_id,
            self._api.api_key_header: api_key,
        }
        try:
            response = await self._client.post(
                self._api.cursors_url(subscription_id),
                json=body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            msg = f"Error while committing cursor: {exc}"
            raise CommitCursorError(msg) from exc

        result = ApiResponse.from_httpx(response)
        logger.debug(
            "committer.response",
            subscription_id=subscription_id,
            stream_id=stream_id,
            status_code=result.status_code,
        )
        return result

    async def commit_or_raise(
        self,
        cursor: Cursor,
        stream_id: str,
        subscription_id: str,
        api_key: str,
    ) -> ApiResponse:
        """Commit and raise :class:`CommitCursorError` unless the server accepted it."""
        result = await self.commit(cursor, stream_id, subscription_id, api_key)
        if not is_commit_successful(result.status_code):
            msg = (
                f"Error while committing cursor. Status code: {result.status_code}. "
                f"Error: {result.body}"
            )
            raise CommitCursorError(
                msg, status_code=result.status_code, body=result.body
            )
        return result
