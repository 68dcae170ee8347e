"""Connectivity template client — create / list / delete over a request executor."""

from __future__ import annotations

import logging

from apstrakit.core.constants import (
    API_URL_ENDPOINT_POLICY_BY_ID,
    API_URL_OBJ_POLICY_EXPORT,
    API_URL_OBJ_POLICY_IMPORT,
)
from apstrakit.core.context import RequestContext
from apstrakit.core.executor import METHOD_DELETE, METHOD_GET, METHOD_PUT, RequestExecutor
from apstrakit.ct.builder import CtPolicy

logger = logging.getLogger(__name__)

DELETE_RECURSIVE_QUERY = "delete_recursive=true"


class ConnectivityTemplateClient:
    def __init__(self, executor: RequestExecutor, blueprint_id: str) -> None:
        self._executor = executor
        self.blueprint_id = blueprint_id

    def create(self, ctx: RequestContext, policy: CtPolicy) -> str:
        """
        Compile ``policy`` and import its records. Returns the main policy id.

        ``policy`` is consumed: a second call with the same object raises
        :class:`~apstrakit.core.exceptions.AlreadyBuiltError` before any
        request is made.
        """
        records = policy.compile()
        body = {"policies": [record.to_wire() for record in records]}
        ctx.raise_if_done()
        self._executor.do(
            ctx,
            METHOD_PUT,
            API_URL_OBJ_POLICY_IMPORT.format(blueprint_id=self.blueprint_id),
            body,
        )
        logger.info(
            "connectivity template imported: blueprint=%s id=%s label=%s",
            self.blueprint_id,
            records[0].id,
            policy.label,
        )
        return records[0].id

    def list_ids(self, ctx: RequestContext) -> list[str]:
        """Ids of the visible (top-level) policies in the blueprint."""
        response = self._executor.do(
            ctx, METHOD_GET, API_URL_OBJ_POLICY_EXPORT.format(blueprint_id=self.blueprint_id)
        )
        policies = (response or {}).get("policies") or []
        return [p["id"] for p in policies if p.get("visible")]

    def delete(self, ctx: RequestContext, policy_id: str) -> None:
        path = API_URL_ENDPOINT_POLICY_BY_ID.format(
            blueprint_id=self.blueprint_id, policy_id=policy_id
        )
        self._executor.do(ctx, METHOD_DELETE, f"{path}?{DELETE_RECURSIVE_QUERY}")
        logger.info("connectivity template deleted: blueprint=%s id=%s", self.blueprint_id, policy_id)
