from __future__ import annotations

import json
import socket
import time
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import ProxyHandler, Request, build_opener


# Sina and Tencent reject non-browser clients.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class HttpRequestError(RuntimeError):
    """Transport failure with the HTTP status (0 when none) and timeout flag."""

    def __init__(self, message: str, *, status: int = 0, timed_out: bool = False, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.timed_out = timed_out
        self.body = body


def _is_timeout(ex: BaseException) -> bool:
    if isinstance(ex, (socket.timeout, TimeoutError)):
        return True
    if isinstance(ex, URLError) and isinstance(ex.reason, (socket.timeout, TimeoutError)):
        return True
    return "timed out" in str(ex).lower()


@dataclass(slots=True)
class HttpClient:
    """Small HTTP helper with retry/backoff and optional proxy support.

    Quote adapters build it with ``retry_count=0``: fallback across providers
    is the resolver's job, not the client's.
    """

    timeout_seconds: float = 5.0
    retry_count: int = 0
    retry_backoff_seconds: float = 0.3
    proxy_url: str = ""
    user_agent: str = DEFAULT_USER_AGENT

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        return self._request_bytes(method="GET", url=url, headers=headers, data=None)

    def get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        return json.loads(self.get_bytes(url, headers=headers).decode("utf-8", errors="ignore"))

    def post_json_bytes(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> bytes:
        req_headers = {"Content-Type": "application/json"}
        if headers:
            req_headers.update(headers)
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return self._request_bytes(method="POST", url=url, headers=req_headers, data=data)

    def _request_bytes(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str] | None,
        data: bytes | None,
    ) -> bytes:
        last_error: Exception | None = None
        attempts = max(1, int(self.retry_count) + 1)
        for attempt in range(1, attempts + 1):
            try:
                req_headers = {"User-Agent": self.user_agent}
                if headers:
                    req_headers.update(headers)
                request = Request(url=url, headers=req_headers, data=data, method=method)
                opener = self._build_opener()
                with opener.open(request, timeout=self.timeout_seconds) as response:  # noqa: S310
                    return response.read()
            except HTTPError as ex:
                body = ex.read().decode("utf-8", errors="ignore") if ex.fp else ""
                # 4xx is not worth retrying.
                if 400 <= ex.code < 500:
                    raise HttpRequestError(
                        f"http status {ex.code}: method={method}, url={url}", status=ex.code, body=body
                    ) from ex
                last_error = ex
            except Exception as ex:  # noqa: BLE001
                last_error = ex
            if attempt < attempts:
                time.sleep(self.retry_backoff_seconds * attempt)
        status = last_error.code if isinstance(last_error, HTTPError) else 0
        raise HttpRequestError(
            f"http request failed: method={method}, url={url}; error={last_error}",
            status=status,
            timed_out=last_error is not None and _is_timeout(last_error),
        ) from last_error

    def _build_opener(self) -> Any:
        if self.proxy_url.strip():
            return build_opener(ProxyHandler({"http": self.proxy_url, "https": self.proxy_url}))
        # Explicitly disable system proxy to keep behavior deterministic.
        return build_opener(ProxyHandler({}))
