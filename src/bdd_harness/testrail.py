"""Push scenario results to TestRail.

Reporting is best-effort: a TestRail outage must not fail the suite, so
errors are logged and the call returns False.
"""

from __future__ import annotations

from enum import IntEnum

import httpx

from .observability.logging import get_logger

logger = get_logger(__name__)


class TestRailStatus(IntEnum):
    """TestRail's built-in result status IDs."""

    __test__ = False

    PASSED = 1
    BLOCKED = 2
    UNTESTED = 3
    RETEST = 4
    FAILED = 5


class TestRailClient:
    """Minimal client for the ``add_result_for_case`` endpoint."""

    __test__ = False

    def __init__(
        self,
        host: str,
        username: str,
        api_key: str,
        *,
        project_id: int | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.project_id = project_id
        self._client = httpx.Client(
            base_url=host.rstrip('/'),
            auth=httpx.BasicAuth(username, api_key),
            timeout=timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def add_result_for_case(
        self,
        run_id: int,
        case_id: int,
        status: TestRailStatus | int,
        comment: str = '',
    ) -> bool:
        """Record a result for *case_id* in *run_id*; True on success."""
        try:
            response = self._client.post(
                f'/index.php?/api/v2/add_result_for_case/{run_id}/{case_id}',
                json={'status_id': int(status), 'comment': comment},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(
                'testrail_update_failed',
                run_id=run_id,
                case_id=case_id,
                error=f'{type(exc).__name__}: {exc}',
            )
            return False
        logger.info('testrail_case_updated', case_id=case_id, status=int(status))
        return True
