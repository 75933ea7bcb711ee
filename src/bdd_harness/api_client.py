"""HTTP helper for API steps and API-level assertions.

Usage::

    api = ApiClient(ApiConfig(base_url='https://api.example.com'))
    response = api.get('/users', params={'page': 1})
    validate_response(response, ['id', 'name', 'status: active'])

For tests, pass an ``httpx.MockTransport``::

    api = ApiClient(config, transport=httpx.MockTransport(handler))
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import httpx

from .errors import DataFileError, ResponseValidationError
from .observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    'Content-Type': 'application/json',
    'Accept': 'application/json',
}


@dataclass(frozen=True, slots=True)
class ApiConfig:
    """Connection settings for an :class:`ApiClient`."""

    base_url: str
    timeout_seconds: float = 5.0
    headers: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    username: str | None = None
    password: str | None = None
    api_key: str | None = None
    raise_for_status: bool = True
    payload_dir: Path = Path('.')


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Status and decoded body of one API call."""

    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ApiClient:
    """Synchronous JSON API client built on ``httpx.Client``.

    Non-2xx responses raise ``httpx.HTTPStatusError`` unless
    ``ApiConfig.raise_for_status`` is False.
    """

    def __init__(
        self,
        config: ApiConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        headers = dict(config.headers)
        if config.api_key:
            headers['X-API-Key'] = config.api_key
        auth = None
        if config.username and config.password:
            auth = httpx.BasicAuth(config.username, config.password)
        self._client = httpx.Client(
            base_url=config.base_url,
            headers=headers,
            auth=auth,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    @property
    def config(self) -> ApiConfig:
        return self._config

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        return self.request('GET', endpoint, params=params, headers=headers)

    def post(
        self,
        endpoint: str,
        payload: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        return self.request('POST', endpoint, payload=payload, headers=headers)

    def put(
        self,
        endpoint: str,
        payload: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        return self.request('PUT', endpoint, payload=payload, headers=headers)

    def delete(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        return self.request('DELETE', endpoint, params=params, headers=headers)

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        """Send one request and decode the response body.

        Raises:
            httpx.HTTPStatusError: For non-2xx responses when
                ``raise_for_status`` is enabled.
            httpx.HTTPError: For transport failures.
        """
        logger.info('api_request', method=method, endpoint=endpoint)
        try:
            response = self._client.request(
                method,
                endpoint,
                json=payload,
                params=params,
                headers=headers,
            )
            if self._config.raise_for_status:
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                'api_request_failed',
                method=method,
                endpoint=endpoint,
                status=exc.response.status_code,
                body=exc.response.text[:2000],
            )
            raise
        except httpx.HTTPError as exc:
            logger.error(
                'api_request_failed',
                method=method,
                endpoint=endpoint,
                error=f'{type(exc).__name__}: {exc}',
            )
            raise

        result = ApiResponse(
            status=response.status_code,
            data=_decode_body(response),
            headers=dict(response.headers),
        )
        logger.info('api_response', method=method, endpoint=endpoint, status=result.status)
        return result

    def load_payload_from_file(self, file_path: str | Path) -> Any:
        """Load a JSON payload relative to ``ApiConfig.payload_dir``.

        Raises:
            DataFileError: If the file is missing or not valid JSON.
        """
        path = self._config.payload_dir / file_path
        try:
            payload = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error('payload_load_failed', path=str(path), error=str(exc))
            raise DataFileError(f'Payload file error: {exc}') from exc
        logger.info('payload_loaded', path=str(path))
        return payload


def validate_response(response: ApiResponse, expected: Iterable[str]) -> bool:
    """Assert that the response body carries every expected field.

    Entries are plain field names, or ``key: value`` assertions compared
    against ``str(body[key])``.

    Raises:
        ResponseValidationError: Listing every missing or mismatched entry.
    """
    body = response.data if isinstance(response.data, dict) else None
    missing = check_key_fields(body, tuple(expected))
    if missing:
        raise ResponseValidationError(missing)
    return True


def check_key_fields(
    body: dict[str, Any] | None,
    key_fields: tuple[str, ...],
) -> list[str]:
    """Return the entries of *key_fields* that *body* does not satisfy.

    Fields containing ``:`` are treated as key:value assertions.
    Other fields are plain names checked for presence.
    """
    if not key_fields:
        return []
    if body is None:
        return list(key_fields)

    missing: list[str] = []
    for field_spec in key_fields:
        if ':' in field_spec:
            key, expected = field_spec.split(':', 1)
            actual = body.get(key.strip())
            if actual is None or str(actual) != expected.strip():
                missing.append(field_spec)
        elif field_spec.strip() not in body:
            missing.append(field_spec)
    return missing


# ── Helpers ────────────────────────────────────────────────────────


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
