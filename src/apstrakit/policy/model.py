"""
Security policy model — rules, application points and their wire forms.

Two layers, as the API is spoken:

  Raw*     mirrors the JSON exactly (strings for enums and port sets); used
           for read-modify-write so that nothing the server sent is lost.
  Policy*  the parsed form callers work with (enums, PortRange lists).

``Raw*.polish()`` goes raw → parsed; ``*.raw()`` goes parsed → raw.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apstrakit.core.exceptions import EnumParseError
from apstrakit.policy.ports import PortRange, parse_port_ranges, render_port_ranges

E = TypeVar("E", bound=Enum)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PolicyRuleAction(str, Enum):
    DENY = "deny"
    DENY_LOG = "deny_log"
    PERMIT = "permit"
    PERMIT_LOG = "permit_log"


class PolicyRuleProtocol(str, Enum):
    ICMP = "ICMP"
    IP = "IP"
    TCP = "TCP"
    UDP = "UDP"


class TcpStateQualifier(str, Enum):
    ESTABLISHED = "established"


class PolicyApplicationPointType(str, Enum):
    GROUP = "group"
    INTERNAL = "internal"
    EXTERNAL = "external"
    SECURITY_ZONE = "security_zone"
    VIRTUAL_NETWORK = "virtual_network"


def parse_enum(enum_cls: type[E], raw: Any, what: str) -> E:
    """
    Convert a wire string into a member of ``enum_cls``.

    Raises:
        EnumParseError: carrying ``raw`` when it is not a member.
    """
    try:
        return enum_cls(raw)
    except ValueError as exc:
        raise EnumParseError(f"unknown {what} {raw!r}", raw=raw) from exc


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class PolicyRuleData(BaseModel):
    """A rule as the caller describes it. The server assigns the id."""

    label: str
    description: str = ""
    protocol: PolicyRuleProtocol
    action: PolicyRuleAction
    src_port: list[PortRange] = Field(default_factory=list)
    dst_port: list[PortRange] = Field(default_factory=list)
    tcp_state_qualifier: TcpStateQualifier | None = None

    def raw(self, rule_id: str | None = None) -> RawPolicyRule:
        return RawPolicyRule(
            id=rule_id,
            label=self.label,
            description=self.description,
            protocol=self.protocol.value,
            action=self.action.value,
            src_port=render_port_ranges(self.src_port),
            dst_port=render_port_ranges(self.dst_port),
            tcp_state_qualifier=(
                self.tcp_state_qualifier.value if self.tcp_state_qualifier is not None else None
            ),
        )


class PolicyRule(BaseModel):
    id: str | None = None
    data: PolicyRuleData

    def raw(self) -> RawPolicyRule:
        return self.data.raw(rule_id=self.id)


class RawPolicyRule(BaseModel):
    """A rule exactly as it appears in a policy's ``rules`` array."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    label: str
    description: str = ""
    protocol: str
    action: str
    src_port: str = "any"
    dst_port: str = "any"
    tcp_state_qualifier: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def null_description(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def polish(self) -> PolicyRule:
        """
        Raises:
            EnumParseError:      unknown action / protocol / tcp state qualifier.
            PortRangeParseError: malformed src_port / dst_port.
        """
        action = parse_enum(PolicyRuleAction, self.action, f"action in policy rule {self.id!r}:")
        protocol = parse_enum(
            PolicyRuleProtocol, self.protocol, f"protocol in policy rule {self.id!r}:"
        )
        qualifier = None
        if self.tcp_state_qualifier is not None:
            qualifier = parse_enum(
                TcpStateQualifier,
                self.tcp_state_qualifier,
                f"tcp state qualifier in policy rule {self.id!r}:",
            )
        return PolicyRule(
            id=self.id,
            data=PolicyRuleData(
                label=self.label,
                description=self.description,
                protocol=protocol,
                action=action,
                src_port=parse_port_ranges(self.src_port),
                dst_port=parse_port_ranges(self.dst_port),
                tcp_state_qualifier=qualifier,
            ),
        )


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class PolicyApplicationPoint(BaseModel):
    id: str
    label: str = ""
    type: PolicyApplicationPointType


class PolicyData(BaseModel):
    enabled: bool = False
    label: str
    description: str = ""
    src_application_point: PolicyApplicationPoint | None = None
    dst_application_point: PolicyApplicationPoint | None = None
    rules: list[PolicyRule] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    def request(self) -> dict[str, Any]:
        """Body for POST / PUT: application points are sent by id only."""
        body: dict[str, Any] = {
            "enabled": self.enabled,
            "label": self.label,
            "description": self.description,
            "rules": [rule.raw().to_wire() for rule in self.rules],
            "tags": list(self.tags),
        }
        if self.src_application_point is not None:
            body["src_application_point"] = self.src_application_point.id
        if self.dst_application_point is not None:
            body["dst_application_point"] = self.dst_application_point.id
        return body


class Policy(BaseModel):
    id: str
    data: PolicyData


class RawPolicy(BaseModel):
    """A policy exactly as GET returns it."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    enabled: bool = False
    label: str = ""
    description: str = ""
    src_application_point: dict[str, Any] | None = None
    dst_application_point: dict[str, Any] | None = None
    rules: list[RawPolicyRule] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @field_validator("rules", "tags", mode="before")
    @classmethod
    def null_lists(cls, v: Any) -> Any:
        return [] if v is None else v

    def request(self, rules: list[RawPolicyRule] | None = None) -> dict[str, Any]:
        """Body for PUT, optionally with a replacement rule list."""
        body: dict[str, Any] = {
            "enabled": self.enabled,
            "label": self.label,
            "description": self.description,
            "rules": [r.to_wire() for r in (self.rules if rules is None else rules)],
            "tags": list(self.tags),
        }
        if self.src_application_point and self.src_application_point.get("id"):
            body["src_application_point"] = self.src_application_point["id"]
        if self.dst_application_point and self.dst_application_point.get("id"):
            body["dst_application_point"] = self.dst_application_point["id"]
        return body

    def polish(self) -> Policy:
        return Policy(
            id=self.id,
            data=PolicyData(
                enabled=self.enabled,
                label=self.label,
                description=self.description,
                src_application_point=_polish_application_point(self.src_application_point),
                dst_application_point=_polish_application_point(self.dst_application_point),
                rules=[r.polish() for r in self.rules],
                tags=list(self.tags),
            ),
        )


def _polish_application_point(raw: dict[str, Any] | None) -> PolicyApplicationPoint | None:
    if not raw:
        return None
    return PolicyApplicationPoint(
        id=raw.get("id", ""),
        label=raw.get("label") or "",
        type=parse_enum(PolicyApplicationPointType, raw.get("type"), "application point type"),
    )
