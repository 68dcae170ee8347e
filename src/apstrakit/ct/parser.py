"""
Connectivity template YAML parser.

Document format::

    label: web-access
    description: attach the web VN           # optional
    tags: [prod]                             # optional
    visible: true                            # optional, default false
    id: 0f3c...                              # optional, minted when absent
    policy_type_name: AttachSingleVLAN       # optional, defaults to the attributes' type
    attributes:
      type: AttachSingleVLAN
      tagged: true
      vn_node_id: vn-123

Usage::

    policy = load_ct_policy("ct.yaml")
    records = policy.compile()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from apstrakit.core.exceptions import CtParseError
from apstrakit.ct.attributes import ATTRIBUTE_TYPES
from apstrakit.ct.builder import CtPolicy
from apstrakit.ct.types import CtPolicyTypeName


class CtPolicyDocument(BaseModel):
    """Top-level shape of a connectivity template document."""

    model_config = ConfigDict(extra="forbid")

    label: str
    description: str = ""
    tags: list[str] | None = None
    user_data: Any = None
    visible: bool = False
    id: str | None = None
    policy_type_name: CtPolicyTypeName | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


def load_ct_policy(path: str | Path) -> CtPolicy:
    """
    Load a connectivity template policy from a YAML file.

    Raises:
        CtParseError: if the file is missing, unreadable, or invalid.
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise CtParseError(f"Connectivity template file not found: {p}", raw=str(p))
    try:
        content = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise CtParseError(f"Cannot read connectivity template file {p}: {exc}", raw=str(p)) from exc
    return parse_ct_policy(content, source=str(p))


def parse_ct_policy(yaml_text: str, source: str = "<string>") -> CtPolicy:
    """
    Parse a YAML connectivity template document into an unbuilt :class:`CtPolicy`.

    Raises:
        CtParseError: on YAML syntax errors, unknown attribute types or
                      schema violations.
    """
    import yaml

    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as exc:
        raise CtParseError(f"YAML syntax error in {source}: {exc}", raw=yaml_text) from exc

    if not isinstance(data, dict):
        raise CtParseError(
            f"Connectivity template {source} must be a YAML mapping (got {type(data).__name__})",
            raw=data,
        )

    try:
        doc = CtPolicyDocument.model_validate(data)
    except ValidationError as exc:
        raise CtParseError(_format_errors(source, exc), raw=data) from exc

    attrs = dict(doc.attributes)
    type_name = attrs.pop("type", None)
    try:
        attr_type = CtPolicyTypeName(type_name)
        attr_cls = ATTRIBUTE_TYPES[attr_type]
    except (ValueError, KeyError) as exc:
        raise CtParseError(
            f"Unsupported attributes type {type_name!r} in {source}; "
            f"expected one of {sorted(t.value for t in ATTRIBUTE_TYPES)}",
            raw=type_name,
        ) from exc

    if "label" in attrs:
        attrs["custom_label"] = attrs.pop("label")

    try:
        attributes = attr_cls.model_validate(attrs)
    except ValidationError as exc:
        raise CtParseError(_format_errors(source, exc), raw=doc.attributes) from exc

    return CtPolicy(
        label=doc.label,
        attributes=attributes,
        policy_type_name=doc.policy_type_name,
        description=doc.description,
        tags=doc.tags,
        user_data=doc.user_data,
        visible=doc.visible,
        policy_id=doc.id,
    )


def _format_errors(source: str, exc: ValidationError) -> str:
    lines = [f"Connectivity template validation failed in {source}:"]
    for err in exc.errors():
        loc = " → ".join(str(x) for x in err["loc"]) if err["loc"] else "(root)"
        lines.append(f"  {loc}: {err['msg']}")
    return "\n".join(lines)
