"""
Rule YAML parser — loads a policy rule description for the CLI.

A rule document looks like::

    label: allow-https
    description: web traffic
    protocol: TCP
    action: permit
    src_port: any
    dst_port: 443,8443-8444
    tcp_state_qualifier: established   # optional

Usage::

    rule = load_rule("rule.yaml")
    rule = parse_rule(yaml_string)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from apstrakit.core.exceptions import ParseError, PolicyParseError
from apstrakit.policy.model import PolicyRuleData, RawPolicyRule


def load_rule(path: str | Path) -> PolicyRuleData:
    """
    Load and validate a rule from a YAML file.

    Raises:
        PolicyParseError: if the file is missing, unreadable, or invalid.
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise PolicyParseError(f"Rule file not found: {p}", raw=str(p))
    try:
        content = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise PolicyParseError(f"Cannot read rule file {p}: {exc}", raw=str(p)) from exc
    return parse_rule(content, source=str(p))


def parse_rule(yaml_text: str, source: str = "<string>") -> PolicyRuleData:
    """
    Parse a YAML rule document. Ports use the wire grammar.

    Raises:
        PolicyParseError: on YAML syntax errors, schema violations, unknown
                          enum values or malformed port sets.
    """
    import yaml

    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as exc:
        raise PolicyParseError(f"YAML syntax error in {source}: {exc}", raw=yaml_text) from exc

    if not isinstance(data, dict):
        raise PolicyParseError(
            f"Rule {source} must be a YAML mapping (got {type(data).__name__})", raw=data
        )

    data = {k: _stringify_ports(k, v) for k, v in data.items()}

    try:
        raw = RawPolicyRule.model_validate(data)
    except ValidationError as exc:
        lines = [f"Rule validation failed in {source}:"]
        for err in exc.errors():
            loc = " → ".join(str(x) for x in err["loc"]) if err["loc"] else "(root)"
            lines.append(f"  {loc}: {err['msg']}")
        raise PolicyParseError("\n".join(lines), raw=data) from exc

    try:
        return raw.polish().data
    except ParseError as exc:
        raise PolicyParseError(f"Invalid rule in {source}: {exc}", raw=exc.raw) from exc


def _stringify_ports(key: str, value: Any) -> Any:
    # YAML reads a bare `443` as an int
    if key in ("src_port", "dst_port") and isinstance(value, int):
        return str(value)
    return value
