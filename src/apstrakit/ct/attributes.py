"""
Connectivity template attribute encoders.

Each encoder is the typed payload of one leaf ("primitive") policy. It knows
its own wire type name, a default label and description, and how to marshal
itself into the ``attributes`` object of the wire record.

Encoders validate lazily: a bad VLAN id or network is accepted at
construction and rejected by :meth:`CtAttributes.raw` with
:class:`~apstrakit.core.exceptions.AttributeEncodingError`, so that the
failure happens at compile time, before any identity is minted.
"""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from apstrakit.core.exceptions import AttributeEncodingError
from apstrakit.ct.types import (
    BgpPeerTo,
    CtPolicyTypeName,
    Ipv4AddressingType,
    Ipv4SessionAddressing,
    Ipv6AddressingType,
    Ipv6SessionAddressing,
)

VLAN_MIN = 1
VLAN_MAX = 4094
UINT8_MAX = 0xFF
UINT16_MAX = 0xFFFF
UINT32_MAX = 0xFFFFFFFF


class CtAttributes(BaseModel, ABC):
    """Base class for leaf policy payloads."""

    model_config = ConfigDict(extra="forbid")

    # caller override for label(); empty means use the default
    custom_label: str = ""

    @abstractmethod
    def policy_type_name(self) -> CtPolicyTypeName: ...

    @abstractmethod
    def raw(self) -> dict[str, Any]:
        """
        Wire form of the payload.

        Raises:
            AttributeEncodingError: if a field value cannot be encoded.
        """

    @abstractmethod
    def default_label(self) -> str: ...

    @abstractmethod
    def description(self) -> str: ...

    def label(self) -> str:
        return self.custom_label or self.default_label()


def _vlan(value: int | None) -> int | None:
    if value is not None and not VLAN_MIN <= value <= VLAN_MAX:
        raise AttributeEncodingError(f"VLAN {value} out of range {VLAN_MIN}-{VLAN_MAX}")
    return value


def _network(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return str(ipaddress.ip_network(value, strict=False))
    except ValueError as exc:
        raise AttributeEncodingError(f"invalid network {value!r}: {exc}") from exc


def _address(value: str | None, version: int | None = None) -> str | None:
    if value is None:
        return None
    try:
        address = ipaddress.ip_address(value)
    except ValueError as exc:
        raise AttributeEncodingError(f"invalid address {value!r}: {exc}") from exc
    if version is not None and address.version != version:
        raise AttributeEncodingError(f"address {value!r} is not IPv{version}")
    return str(address)


def _prefix(value: str | None, version: int) -> str | None:
    network = _network(value)
    if network is not None and ipaddress.ip_network(network).version != version:
        raise AttributeEncodingError(f"prefix {value!r} is not IPv{version}")
    return network


def _bounded(name: str, value: int | None, high: int) -> int | None:
    # unsigned fields: uint8 ttl, uint16 timers, uint32 ASNs
    if value is not None and not 0 <= value <= high:
        raise AttributeEncodingError(f"{name} {value} out of range 0-{high}")
    return value


class AttachSingleVlan(CtAttributes):
    tagged: bool = False
    vn_node_id: str | None = None

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_SINGLE_VLAN

    def raw(self) -> dict[str, Any]:
        return {
            "tag_type": "vlan_tagged" if self.tagged else "untagged",
            "vn_node_id": self.vn_node_id,
        }

    def default_label(self) -> str:
        return "Virtual Network (Single)"

    def description(self) -> str:
        return "Add a single VLAN to interfaces, as tagged or untagged."


class AttachMultipleVlan(CtAttributes):
    untagged_vn_node_id: str | None = None
    tagged_vn_node_ids: list[str] = Field(default_factory=list)

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_MULTIPLE_VLAN

    def raw(self) -> dict[str, Any]:
        return {
            "untagged_vn_node_id": self.untagged_vn_node_id,
            "tagged_vn_node_ids": list(self.tagged_vn_node_ids),
        }

    def default_label(self) -> str:
        return "Virtual Network (Multiple)"

    def description(self) -> str:
        return "Add a list of VLANs to interfaces, as tagged or untagged."


class AttachLogicalLink(CtAttributes):
    tagged: bool = False
    vlan_id: int | None = None
    ipv4_addressing_type: Ipv4AddressingType = Ipv4AddressingType.NONE
    ipv6_addressing_type: Ipv6AddressingType = Ipv6AddressingType.NONE
    security_zone: str | None = None
    l3_mtu: int | None = None

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_LOGICAL_LINK

    def raw(self) -> dict[str, Any]:
        return {
            "interface_type": "tagged" if self.tagged else "untagged",
            "vlan_id": _vlan(self.vlan_id),
            "ipv4_addressing_type": self.ipv4_addressing_type.value,
            "ipv6_addressing_type": self.ipv6_addressing_type.value,
            "security_zone": self.security_zone,
            "l3_mtu": self.l3_mtu,
        }

    def default_label(self) -> str:
        return "IP Link"

    def description(self) -> str:
        return (
            "Build an IP link between a fabric node and a generic system. This primitive "
            'uses AOS resource pool "Link IPs - To Generic" by default to dynamically '
            "allocate an IP endpoint (/31) on each side of the link. To allocate different "
            "IP endpoints, navigate under Routing Zone>Subinterfaces Table."
        )


class AttachStaticRoute(CtAttributes):
    share_ip_endpoint: bool = False
    network: str | None = None

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_STATIC_ROUTE

    def raw(self) -> dict[str, Any]:
        return {
            "share_ip_endpoint": self.share_ip_endpoint,
            "network": _network(self.network),
        }

    def default_label(self) -> str:
        return "Static Route"

    def description(self) -> str:
        return (
            "Create a static route to user defined subnet via next hop derived from "
            "either IP link or VN endpoint."
        )


class AttachCustomStaticRoute(CtAttributes):
    network: str | None = None
    next_hop: str | None = None
    security_zone: str | None = None

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_CUSTOM_STATIC_ROUTE

    def raw(self) -> dict[str, Any]:
        return {
            "network": _network(self.network),
            "next_hop": _address(self.next_hop),
            "security_zone": self.security_zone,
        }

    def default_label(self) -> str:
        return "Custom Static Route"

    def description(self) -> str:
        return "Create a static route with user defined next hop and destination network."


class AttachExistingRoutingPolicy(CtAttributes):
    rp_to_attach: str | None = None

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_EXISTING_ROUTING_POLICY

    def raw(self) -> dict[str, Any]:
        return {"rp_to_attach": self.rp_to_attach}

    def default_label(self) -> str:
        return "Routing Policy"

    def description(self) -> str:
        return "Allocate routing policy to specific BGP sessions."


class AttachRoutingZoneConstraint(CtAttributes):
    routing_zone_constraint: str | None = None

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_ROUTING_ZONE_CONSTRAINT

    def raw(self) -> dict[str, Any]:
        return {"routing_zone_constraint": self.routing_zone_constraint}

    def default_label(self) -> str:
        return "Routing Zone Constraint"

    def description(self) -> str:
        return "Assign a Routing Zone Constraint"


class _BgpSession(CtAttributes):
    """Session knobs shared by the BGP peering primitives."""

    bfd: bool = False
    holdtime: int | None = None
    keepalive: int | None = None
    ipv4_safi: bool = False
    ipv6_safi: bool = False
    local_asn: int | None = None
    password: str | None = None
    ttl: int = 0

    def _session_raw(self) -> dict[str, Any]:
        return {
            "bfd": self.bfd,
            "holdtime_timer": _bounded("holdtime", self.holdtime, UINT16_MAX),
            "ipv4_safi": self.ipv4_safi,
            "ipv6_safi": self.ipv6_safi,
            "keepalive_timer": _bounded("keepalive", self.keepalive, UINT16_MAX),
            "local_asn": _bounded("local_asn", self.local_asn, UINT32_MAX),
            "password": self.password,
            "ttl": _bounded("ttl", self.ttl, UINT8_MAX),
        }


class AttachIpEndpointWithBgpNsxt(_BgpSession):
    asn: int | None = None
    ipv4_addr: str | None = None
    ipv6_addr: str | None = None
    neighbor_asn_dynamic: bool = False

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_IP_ENDPOINT_WITH_BGP_NSXT

    def raw(self) -> dict[str, Any]:
        return {
            "asn": _bounded("asn", self.asn, UINT32_MAX),
            "ipv4_addr": _address(self.ipv4_addr, 4),
            "ipv6_addr": _address(self.ipv6_addr, 6),
            "neighbor_asn_type": "dynamic" if self.neighbor_asn_dynamic else "static",
            **self._session_raw(),
        }

    def default_label(self) -> str:
        return "BGP Peering (IP Endpoint)"

    def description(self) -> str:
        return "Create a BGP peering session with a user-specified BGP neighbor addressed peer."


class AttachBgpOverSubinterfacesOrSvi(_BgpSession):
    neighbor_asn_dynamic: bool = False
    peer_from_loopback: bool = False
    peer_to: BgpPeerTo = BgpPeerTo.LOOPBACK
    session_addressing_ipv4: Ipv4SessionAddressing = Ipv4SessionAddressing.NONE
    session_addressing_ipv6: Ipv6SessionAddressing = Ipv6SessionAddressing.NONE

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_BGP_OVER_SUBINTERFACES_OR_SVI

    def raw(self) -> dict[str, Any]:
        return {
            "neighbor_asn_type": "dynamic" if self.neighbor_asn_dynamic else "static",
            "peer_from": "loopback" if self.peer_from_loopback else "interface",
            "peer_to": self.peer_to.value,
            "session_addressing_ipv4": self.session_addressing_ipv4.value,
            "session_addressing_ipv6": self.session_addressing_ipv6.value,
            **self._session_raw(),
        }

    def default_label(self) -> str:
        return "BGP Peering (Generic System)"

    def description(self) -> str:
        return (
            "Create a BGP peering session with Generic Systems inherited from AOS Generic "
            "System properties such as loopback and ASN (addressed, or link-local peer)."
        )


class AttachBgpWithPrefixPeeringForSviOrSubinterface(_BgpSession):
    prefix_neighbor_ipv4: str | None = None
    prefix_neighbor_ipv6: str | None = None
    session_addressing_ipv4: bool = False
    session_addressing_ipv6: bool = False

    def policy_type_name(self) -> CtPolicyTypeName:
        return CtPolicyTypeName.ATTACH_BGP_WITH_PREFIX_PEERING_FOR_SVI_OR_SUBINTERFACE

    def raw(self) -> dict[str, Any]:
        return {
            "prefix_neighbor_ipv4": _prefix(self.prefix_neighbor_ipv4, 4),
            "prefix_neighbor_ipv6": _prefix(self.prefix_neighbor_ipv6, 6),
            "session_addressing_ipv4": self.session_addressing_ipv4,
            "session_addressing_ipv6": self.session_addressing_ipv6,
            **self._session_raw(),
        }

    def default_label(self) -> str:
        return "Dynamic BGP Peering"

    def description(self) -> str:
        return "Configure dynamic BGP peering with IP prefix specified."


# Wire type name -> encoder class, for documents that name their type.
ATTRIBUTE_TYPES: dict[CtPolicyTypeName, type[CtAttributes]] = {
    CtPolicyTypeName.ATTACH_SINGLE_VLAN: AttachSingleVlan,
    CtPolicyTypeName.ATTACH_MULTIPLE_VLAN: AttachMultipleVlan,
    CtPolicyTypeName.ATTACH_LOGICAL_LINK: AttachLogicalLink,
    CtPolicyTypeName.ATTACH_STATIC_ROUTE: AttachStaticRoute,
    CtPolicyTypeName.ATTACH_CUSTOM_STATIC_ROUTE: AttachCustomStaticRoute,
    CtPolicyTypeName.ATTACH_EXISTING_ROUTING_POLICY: AttachExistingRoutingPolicy,
    CtPolicyTypeName.ATTACH_ROUTING_ZONE_CONSTRAINT: AttachRoutingZoneConstraint,
    CtPolicyTypeName.ATTACH_IP_ENDPOINT_WITH_BGP_NSXT: AttachIpEndpointWithBgpNsxt,
    CtPolicyTypeName.ATTACH_BGP_OVER_SUBINTERFACES_OR_SVI: AttachBgpOverSubinterfacesOrSvi,
    CtPolicyTypeName.ATTACH_BGP_WITH_PREFIX_PEERING_FOR_SVI_OR_SUBINTERFACE: (
        AttachBgpWithPrefixPeeringForSviOrSubinterface
    ),
}
