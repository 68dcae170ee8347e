"""
Graph query DSL.

Public API::

    from apstrakit.query import PathQuery, IsIn

    q = PathQuery().node([("type", "system"), ("role", IsIn(["leaf"]))])
    str(q)   # "node(type='system',role=is_in(['leaf']))"
"""

from apstrakit.query.document import load_path_query, parse_path_query
from apstrakit.query.engine import (
    BlueprintType,
    ElementType,
    MatchQuery,
    PathQuery,
    QEAttribute,
    QEElement,
    Query,
    QueryEngineResponse,
    RawQuery,
)
from apstrakit.query.values import (
    BoolVal,
    Greater,
    GreaterEqual,
    IntVal,
    IsIn,
    IsNone,
    LessThan,
    LessThanEqual,
    NotIn,
    QEValue,
    StringVal,
)

__all__ = [
    "BlueprintType",
    "BoolVal",
    "ElementType",
    "Greater",
    "GreaterEqual",
    "IntVal",
    "IsIn",
    "IsNone",
    "LessThan",
    "LessThanEqual",
    "MatchQuery",
    "NotIn",
    "PathQuery",
    "QEAttribute",
    "QEElement",
    "QEValue",
    "Query",
    "QueryEngineResponse",
    "RawQuery",
    "StringVal",
    "load_path_query",
    "parse_path_query",
]
