"""
Request executor contract.

apstrakit never talks HTTP itself. Callers supply an object with a ``do``
method that performs one JSON API call and returns the decoded response body
(or ``None`` for empty bodies). Transport failures are raised as
:class:`~apstrakit.core.exceptions.ApiError` and are passed through untouched.

Contract:
  - ``path`` is an absolute API path, query string included
  - ``body`` is a JSON-serialisable value or None
  - the executor honours ``ctx`` (cancellation / deadline)
  - authentication, HTTP retries and throttling are the executor's business
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from apstrakit.core.context import RequestContext

METHOD_GET = "GET"
METHOD_POST = "POST"
METHOD_PUT = "PUT"
METHOD_DELETE = "DELETE"


@runtime_checkable
class RequestExecutor(Protocol):
    """Performs one API call and returns the decoded JSON response."""

    def do(self, ctx: RequestContext, method: str, path: str, body: Any = None) -> Any: ...
