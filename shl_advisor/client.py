from __future__ import annotations

"""
HTTP client for running benchmark queries against a deployed ask
endpoint.

The endpoint takes ``{"question": ...}`` and answers with the payload
produced by :func:`~shl_advisor.response_parser.normalize_response`
(``{"recommendations": [...]}`` or a conversational message).  For
benchmarking only the ranked assessment names matter.
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from .config import (
    ASK_ENDPOINT_URL,
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_REDIRECTS,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
)
from .normalize import preview


class AskServiceError(RuntimeError):
    """The ask endpoint failed or reported an error for a query."""


class AskClient:
    """
    Thin wrapper around :class:`httpx.Client` for the ask endpoint.

    Parameters
    ----------
    url : str
        Full URL of the ask endpoint.
    read_timeout, connect_timeout : float
        Timeouts in seconds; LLM calls are slow, so the read timeout is
        generous by default.
    transport : httpx.BaseTransport, optional
        Custom transport (tests use :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str = ASK_ENDPOINT_URL,
        read_timeout: float = HTTP_READ_TIMEOUT,
        connect_timeout: float = HTTP_CONNECT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            max_redirects=HTTP_MAX_REDIRECTS,
            headers={"User-Agent": HTTP_USER_AGENT},
            transport=transport,
        )

    def __enter__(self) -> "AskClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def ask(self, question: str) -> Dict[str, Any]:
        """POST one question and return the decoded JSON body."""
        logger.info("Asking endpoint: \"{}\"", preview(question))
        try:
            r = self._client.post(self.url, json={"question": question})
        except httpx.HTTPError as e:
            raise AskServiceError(f"Request to {self.url} failed: {e}") from e

        try:
            data = r.json()
        except ValueError:
            data = None

        if r.status_code >= 400:
            detail = data.get("error") if isinstance(data, dict) else r.text[:200]
            raise AskServiceError(f"HTTP {r.status_code} from {self.url}: {detail}")
        if not isinstance(data, dict):
            raise AskServiceError(f"Non-JSON object response from {self.url}")
        if data.get("error"):
            raise AskServiceError(str(data["error"]))
        return data

    def recommend_names(self, question: str) -> List[str]:
        """Ranked assessment names recommended for ``question``."""
        data = self.ask(question)
        recs = data.get("recommendations") or []
        if not isinstance(recs, list):
            raise AskServiceError("Response recommendations is not a list")
        names = [str(rec.get("name", "")) for rec in recs if isinstance(rec, dict)]
        logger.info("Endpoint returned {} recommendations", len(names))
        return names
