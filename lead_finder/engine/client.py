"""HTTP client for the business search API."""

from __future__ import annotations

from typing import Any

import httpx
import pydantic
import structlog

from ..config import GlobalConfig
from ..errors import ApiError
from ..models import BusinessResult


class SearchClient:
    """Issue one search request per call; no retries."""

    def __init__(
        self,
        config: GlobalConfig,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("lead_finder.client")
        self._client = httpx.Client(
            timeout=config.request_timeout,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self) -> "SearchClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def build_request(
        self, credential: str, query: str, limit: int, country_code: str
    ) -> httpx.Request:
        params = {
            "query": query,
            "limit": str(limit),
            "country": country_code,
            "lang": self.config.language,
        }
        headers = {
            "X-RapidAPI-Key": credential,
            "X-RapidAPI-Host": self.config.api_host,
        }
        return self._client.build_request(
            "GET", self.config.search_url, params=params, headers=headers
        )

    def search(
        self, credential: str, query: str, limit: int, country_code: str
    ) -> list[BusinessResult]:
        request = self.build_request(credential, query, limit, country_code)
        try:
            response = self._client.send(request)
        except httpx.HTTPError as exc:
            self.logger.warning("search_transport_error", query=query, error=str(exc))
            raise ApiError(None, message=f"{type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise ApiError(
                response.status_code,
                response.reason_phrase,
                self._error_message(response),
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(
                response.status_code, response.reason_phrase, "Response body is not valid JSON"
            ) from exc

        if not (
            isinstance(payload, dict)
            and payload.get("status") == "ok"
            and isinstance(payload.get("data"), list)
        ):
            self.logger.warning(
                "unexpected_payload",
                query=query,
                status=payload.get("status") if isinstance(payload, dict) else None,
            )
            return []

        results: list[BusinessResult] = []
        for position, item in enumerate(payload["data"]):
            try:
                results.append(BusinessResult.model_validate(item))
            except pydantic.ValidationError as exc:
                self.logger.warning(
                    "malformed_record",
                    query=query,
                    position=position,
                    errors=exc.error_count(),
                )
        return results

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        try:
            body: Any = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return None


__all__ = ["SearchClient"]
