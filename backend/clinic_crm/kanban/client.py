"""
Reconciliation client: persists optimistic moves and rolls them back when
the server does not confirm them.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx

from clinic_crm.config import config
from clinic_crm.kanban.board import OptimisticMutator, Placement
from clinic_crm.kanban.notifications import NotificationSink
from clinic_crm.statuses import PipelineRegistry

logger = logging.getLogger("kanban.client")

SUCCESS_MESSAGE = "Status updated"
SERVER_ERROR_PREFIX = "Could not update status: "
CONNECTIVITY_ERROR_MESSAGE = "Could not reach the server. Status was not updated."


@dataclass
class TransitionResult:
    ok: bool
    status_code: Optional[int] = None
    payload: dict = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def user_message(self) -> str:
        if self.ok:
            return SUCCESS_MESSAGE
        if self.status_code is not None and self.error:
            return f"{SERVER_ERROR_PREFIX}{self.error}"
        return CONNECTIVITY_ERROR_MESSAGE


def build_http_client(base_url: Optional[str] = None, **kwargs) -> httpx.AsyncClient:
    """AsyncClient pointed at the CRM backend."""
    return httpx.AsyncClient(
        base_url=(base_url or config.CRM_API_BASE_URL).rstrip("/"),
        timeout=kwargs.pop("timeout", config.CRM_HTTP_TIMEOUT),
        **kwargs,
    )


def _json_body(response: httpx.Response):
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class ReconciliationClient:
    def __init__(
        self,
        registry: PipelineRegistry,
        http: httpx.AsyncClient,
        mutator: OptimisticMutator,
        sink: NotificationSink,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.registry = registry
        self.http = http
        self.mutator = mutator
        self.sink = sink
        self.token_provider = token_provider

    def _headers(self) -> dict:
        token = self.token_provider() if self.token_provider else None
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def submit_transition(
        self, record_id: int, target_status: str, outcome: Optional[str] = None
    ) -> TransitionResult:
        body = {"status": target_status}
        if outcome is not None:
            body["attendance_status"] = outcome

        path = self.registry.status_path(record_id)
        try:
            response = await self.http.patch(path, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning(f"PATCH {path} failed: {exc!r}")
            return TransitionResult(ok=False, error=str(exc) or None)

        data = _json_body(response)
        if response.is_success:
            return TransitionResult(
                ok=True,
                status_code=response.status_code,
                payload=data if isinstance(data, dict) else {},
            )

        error = data.get("error") if isinstance(data, dict) else None
        logger.warning(f"PATCH {path} returned {response.status_code}: {error}")
        return TransitionResult(
            ok=False,
            status_code=response.status_code,
            payload=data if isinstance(data, dict) else {},
            error=error,
        )

    async def reconcile(
        self,
        record_id: int,
        target: str,
        outcome: Optional[str],
        origin: Placement,
    ) -> TransitionResult:
        """Persist a move already applied to the board, reverting it on failure."""
        result = await self.submit_transition(record_id, target, outcome)
        if result.ok:
            self.sink.success(result.user_message)
            logger.info(f"{self.registry.resource} {record_id}: {origin.status} -> {target} confirmed")
        else:
            self.mutator.revert(record_id, origin)
            self.sink.error(result.user_message)
        return result

    async def fetch_records(self, **params) -> List[dict]:
        """Bulk fetch for the initial board population."""
        query = {**self.registry.board_params(), **params}
        response = await self.http.get(
            self.registry.collection_path, params=query, headers=self._headers()
        )
        response.raise_for_status()
        data = _json_body(response)
        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            raise ValueError(f"Unexpected {self.registry.resource} listing payload")
        return data
