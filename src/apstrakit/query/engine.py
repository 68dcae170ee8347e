"""
Graph query engine — build path / match / raw queries and run them.

Usage::

    query = (
        PathQuery(executor=executor, blueprint_id="bp-1")
        .node([("type", "system"), ("role", IsIn(["leaf", "spine"])), ("name", "n_system")])
        .out([("type", "hosted_interfaces")])
        .node([("type", "interface"), ("name", "n_interface")])
    )
    str(query)
    # node(type='system',role=is_in(['leaf','spine']),name='n_system').out(type='hosted_interfaces')...
    items = query.do(ctx)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, Field, ValidationError

from apstrakit.core.config import QueryConfig
from apstrakit.core.constants import API_URL_QUERY_ENGINE
from apstrakit.core.context import RequestContext
from apstrakit.core.exceptions import QueryError
from apstrakit.core.executor import METHOD_POST, RequestExecutor
from apstrakit.query.values import QEValue, coerce

logger = logging.getLogger(__name__)

ATTRIBUTE_SEP = ","
ELEMENT_SEP = "."


class ElementType(str, Enum):
    NODE = "node"
    IN = "in_"  # `in` is a Python keyword in the remote query language
    OUT = "out"


class BlueprintType(str, Enum):
    NONE = ""
    CONFIG = "config"
    DEPLOYED = "deployed"
    OPERATION = "operation"
    STAGING = "staging"


@dataclass(frozen=True)
class QEAttribute:
    key: str
    value: QEValue

    def render(self) -> str:
        return f"{self.key}={self.value.render()}"


AttributeSpec = QEAttribute | tuple[str, Any]


def _attributes(specs: Iterable[AttributeSpec] | None) -> tuple[QEAttribute, ...]:
    result = []
    for spec in specs or ():
        if isinstance(spec, QEAttribute):
            result.append(spec)
        else:
            key, value = spec
            result.append(QEAttribute(key, coerce(value)))
    return tuple(result)


@dataclass(frozen=True)
class QEElement:
    """One traversal step: ``type(k=v,...)``. Attribute order is preserved."""

    element_type: ElementType
    attributes: tuple[QEAttribute, ...] = ()

    def render(self) -> str:
        attrs = ATTRIBUTE_SEP.join(a.render() for a in self.attributes)
        return f"{self.element_type.value}({attrs})"


class QueryEngineResponse(BaseModel):
    """The ``{"count": n, "items": [...]}`` envelope returned by the query engine."""

    count: int = 0
    items: list[Any] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Base query
# ---------------------------------------------------------------------------


class Query(ABC):
    """Common execution plumbing shared by path, match and raw queries."""

    def __init__(
        self,
        executor: RequestExecutor | None = None,
        blueprint_id: str = "",
        blueprint_type: BlueprintType = BlueprintType.NONE,
    ) -> None:
        self.executor = executor
        self.blueprint_id = blueprint_id
        self.blueprint_type = blueprint_type
        self.optional = False
        self.raw_result: Any = None

    @abstractmethod
    def _render(self) -> str: ...

    def render(self) -> str:
        text = self._render()
        if self.optional:
            return f"optional({text})"
        return text

    def __str__(self) -> str:
        return self.render()

    def set_executor(self, executor: RequestExecutor) -> Query:
        self.executor = executor
        return self

    def set_blueprint_id(self, blueprint_id: str) -> Query:
        self.blueprint_id = blueprint_id
        return self

    def set_blueprint_type(self, blueprint_type: BlueprintType) -> Query:
        self.blueprint_type = blueprint_type
        return self

    def apply_config(self, config: QueryConfig) -> Query:
        """Fill in the configured blueprint id and type where none was set."""
        if not self.blueprint_id:
            self.blueprint_id = config.blueprint_id
        if self.blueprint_type is BlueprintType.NONE:
            self.blueprint_type = BlueprintType(config.blueprint_type)
        return self

    def url_path(self) -> str:
        path = API_URL_QUERY_ENGINE.format(blueprint_id=self.blueprint_id)
        if self.blueprint_type is not BlueprintType.NONE:
            path += "?" + urlencode({"type": self.blueprint_type.value})
        return path

    def do(self, ctx: RequestContext, into: type[BaseModel] | None = None) -> Any:
        """
        Execute the query and return its result items.

        Args:
            ctx:   Request context passed to the executor.
            into:  Optional pydantic model; each item is validated into it.

        Raises:
            QueryError: if no executor / blueprint is set or the response
                        does not decode.
        """
        if self.executor is None:
            raise QueryError("attempt to execute query without setting an executor")
        if not self.blueprint_id:
            raise QueryError("attempt to execute query without setting a blueprint id")

        ctx.raise_if_done()
        text = self.render()
        logger.debug("query engine request: blueprint=%s query=%s", self.blueprint_id, text)
        response = self.executor.do(ctx, METHOD_POST, self.url_path(), {"query": text})
        self.raw_result = response

        try:
            envelope = QueryEngineResponse.model_validate(response)
            if into is None:
                return envelope.items
            return [into.model_validate(item) for item in envelope.items]
        except ValidationError as exc:
            raise QueryError(f"error decoding query engine response {response!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# Path query
# ---------------------------------------------------------------------------


class PathQuery(Query):
    """A chain of ``node`` / ``in_`` / ``out`` steps with optional where-clauses."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.elements: list[QEElement] = []
        self.where_clauses: list[str] = []

    def _add(self, element_type: ElementType, attributes: Iterable[AttributeSpec] | None) -> PathQuery:
        self.elements.append(QEElement(element_type, _attributes(attributes)))
        return self

    def node(self, attributes: Iterable[AttributeSpec] | None = None) -> PathQuery:
        return self._add(ElementType.NODE, attributes)

    def in_(self, attributes: Iterable[AttributeSpec] | None = None) -> PathQuery:
        return self._add(ElementType.IN, attributes)

    def out(self, attributes: Iterable[AttributeSpec] | None = None) -> PathQuery:
        return self._add(ElementType.OUT, attributes)

    def where(self, clause: str) -> PathQuery:
        self.where_clauses.append(clause)
        return self

    def _render(self) -> str:
        parts = [e.render() for e in self.elements]
        parts.extend(f"where({w})" for w in self.where_clauses)
        return ELEMENT_SEP.join(parts)


# ---------------------------------------------------------------------------
# Match query
# ---------------------------------------------------------------------------


class MatchQuery(Query):
    """``match(q1,q2,...)`` followed by ``distinct([...])`` and where-clauses."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.matches: list[Query] = []
        self.distinct_names: list[tuple[str, ...]] = []
        self.where_clauses: list[str] = []

    def match(self, query: Query) -> MatchQuery:
        self.matches.append(query)
        return self

    def optional_match(self, query: Query) -> MatchQuery:
        query.optional = True
        self.matches.append(query)
        return self

    def distinct(self, names: Iterable[str]) -> MatchQuery:
        self.distinct_names.append(tuple(names))
        return self

    def where(self, clause: str) -> MatchQuery:
        self.where_clauses.append(clause)
        return self

    def _render(self) -> str:
        parts = ["match(" + ATTRIBUTE_SEP.join(q.render() for q in self.matches) + ")"]
        for names in self.distinct_names:
            rendered = "['" + "','".join(names) + "']" if names else "[]"
            parts.append(f"distinct({rendered})")
        parts.extend(f"where({w})" for w in self.where_clauses)
        return ELEMENT_SEP.join(parts)


# ---------------------------------------------------------------------------
# Raw query
# ---------------------------------------------------------------------------


class RawQuery(Query):
    """A caller-written query string, sent as-is."""

    def __init__(self, query: str = "", *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.query = query

    def _render(self) -> str:
        return self.query
