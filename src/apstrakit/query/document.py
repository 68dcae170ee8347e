"""
Path query YAML documents.

Format::

    steps:
      - node: {type: system, role: {is_in: [leaf, spine]}, name: n_system}
      - out: {type: hosted_interfaces}
      - node: {type: interface, if_name: {not_none: true}, name: n_interface}
    where:                          # optional
      - "lambda n_system: n_system.label != 'spine1'"
    optional: false                 # optional

Step keys are ``node``, ``in`` (``in_`` also accepted) and ``out``. A plain
scalar is a string / bool / int value; a one-key mapping selects a test:
``is_in``, ``not_in``, ``gt``, ``ge``, ``lt``, ``le``, ``is_none``,
``not_none``. Mapping order is preserved.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from apstrakit.core.exceptions import QueryError
from apstrakit.query.engine import PathQuery
from apstrakit.query.values import (
    Greater,
    GreaterEqual,
    IsIn,
    IsNone,
    LessThan,
    LessThanEqual,
    NotIn,
    QEValue,
    coerce,
)

_TESTS = {
    "is_in": IsIn,
    "not_in": NotIn,
    "gt": Greater,
    "ge": GreaterEqual,
    "lt": LessThan,
    "le": LessThanEqual,
    "is_none": lambda v: IsNone(bool(v)),
    "not_none": lambda v: IsNone(not v),
}


def load_path_query(path: str | Path) -> PathQuery:
    """
    Raises:
        QueryError: if the file is missing, unreadable, or malformed.
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise QueryError(f"Query file not found: {p}")
    try:
        content = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise QueryError(f"Cannot read query file {p}: {exc}") from exc
    return parse_path_query(content, source=str(p))


def parse_path_query(yaml_text: str, source: str = "<string>") -> PathQuery:
    import yaml

    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as exc:
        raise QueryError(f"YAML syntax error in {source}: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
        raise QueryError(f"Query {source} must be a mapping with a 'steps' list")

    query = PathQuery()
    for i, step in enumerate(data["steps"]):
        if not isinstance(step, dict) or len(step) != 1:
            raise QueryError(f"{source}: step {i} must be a one-key mapping, got {step!r}")
        (kind, attrs), = step.items()
        attributes = [(str(k), _value(source, k, v)) for k, v in (attrs or {}).items()]
        if kind == "node":
            query.node(attributes)
        elif kind in ("in", "in_"):
            query.in_(attributes)
        elif kind == "out":
            query.out(attributes)
        else:
            raise QueryError(f"{source}: unknown step type {kind!r} at step {i}")

    for clause in data.get("where") or []:
        query.where(str(clause))
    query.optional = bool(data.get("optional", False))
    return query


def _value(source: str, key: Any, raw: Any) -> QEValue:
    if isinstance(raw, dict):
        if len(raw) != 1:
            raise QueryError(f"{source}: value for {key!r} must name exactly one test")
        (test, arg), = raw.items()
        factory = _TESTS.get(test)
        if factory is None:
            raise QueryError(f"{source}: unknown test {test!r} for {key!r}")
        try:
            return factory(arg)
        except TypeError as exc:
            raise QueryError(f"{source}: bad argument for {test}({arg!r}): {exc}") from exc
    try:
        return coerce(raw)
    except TypeError as exc:
        raise QueryError(f"{source}: {exc}") from exc
