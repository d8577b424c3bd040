"""
HTTP transport for the Valyu API (httpx). One attempt per call: no retry, no backoff.
Non-2xx -> UpstreamError with the raw body; no response -> NetworkError; bad JSON -> ResponseDecodeError.
"""
import logging
from typing import Any, Optional

import httpx

from valyu_tools.composer import encode_body
from valyu_tools.config import get_settings
from valyu_tools.errors import NetworkError, ResponseDecodeError, UpstreamError

logger = logging.getLogger(__name__)

DEEPSEARCH_PATH = "/v1/deepsearch"
CONTENTS_PATH = "/v1/contents"
DATASOURCES_PATH = "/v1/datasources"
DATASOURCE_CATEGORIES_PATH = "/v1/datasources/categories"


class ValyuTransport:
    """
    Sends one request and returns the parsed JSON body. Clients can be injected
    (e.g. over httpx.MockTransport); otherwise one is opened per call.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        *,
        client: Optional[httpx.Client] = None,
        async_client: Optional[httpx.AsyncClient] = None,
    ):
        if base_url is None or timeout is None:
            settings = get_settings()
            base_url = base_url or settings.valyu_base_url
            timeout = timeout if timeout is not None else settings.valyu_timeout_sec
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._async_client = async_client

    def _prepare(self, api_key: str, body: Optional[dict[str, Any]]) -> tuple[dict[str, str], Optional[bytes]]:
        headers = {"x-api-key": api_key}
        if body is None:
            return headers, None
        headers["Content-Type"] = "application/json"
        return headers, encode_body(body)

    def _parse(self, response: httpx.Response, path: str, action: str) -> Any:
        if not response.is_success:
            logger.warning("Valyu API %s error: status=%s", path, response.status_code)
            raise UpstreamError(response.status_code, response.text, action)
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Valyu API %s returned a non-JSON body", path)
            raise ResponseDecodeError(e, action) from e

    def send(
        self,
        method: str,
        path: str,
        *,
        api_key: str,
        action: str,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        headers, content = self._prepare(api_key, body)
        url = self.base_url + path
        logger.debug("valyu_request method=%s path=%s", method, path)
        try:
            if self._client is not None:
                r = self._client.request(method, url, headers=headers, content=content, params=params)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    r = client.request(method, url, headers=headers, content=content, params=params)
        except httpx.RequestError as e:
            logger.warning("Valyu API %s request error: %s", path, type(e).__name__)
            raise NetworkError(e, action) from e
        return self._parse(r, path, action)

    async def asend(
        self,
        method: str,
        path: str,
        *,
        api_key: str,
        action: str,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        headers, content = self._prepare(api_key, body)
        url = self.base_url + path
        logger.debug("valyu_request method=%s path=%s", method, path)
        try:
            if self._async_client is not None:
                r = await self._async_client.request(method, url, headers=headers, content=content, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.request(method, url, headers=headers, content=content, params=params)
        except httpx.RequestError as e:
            logger.warning("Valyu API %s request error: %s", path, type(e).__name__)
            raise NetworkError(e, action) from e
        return self._parse(r, path, action)
