"""Connectivity template enums."""

from __future__ import annotations

from enum import Enum


class CtPolicyTypeName(str, Enum):
    """Declared type of a connectivity template policy node."""

    NONE = ""
    BATCH = "batch"
    PIPELINE = "pipeline"
    ATTACH_SINGLE_VLAN = "AttachSingleVLAN"
    ATTACH_MULTIPLE_VLAN = "AttachMultipleVLAN"
    ATTACH_LOGICAL_LINK = "AttachLogicalLink"
    ATTACH_STATIC_ROUTE = "AttachStaticRoute"
    ATTACH_CUSTOM_STATIC_ROUTE = "AttachCustomStaticRoute"
    ATTACH_IP_ENDPOINT_WITH_BGP_NSXT = "AttachIpEndpointWithBgpNsxt"
    ATTACH_BGP_OVER_SUBINTERFACES_OR_SVI = "AttachBgpOverSubinterfacesOrSvi"
    ATTACH_BGP_WITH_PREFIX_PEERING_FOR_SVI_OR_SUBINTERFACE = (
        "AttachBgpWithPrefixPeeringForSviOrSubinterface"
    )
    ATTACH_EXISTING_ROUTING_POLICY = "AttachExistingRoutingPolicy"
    ATTACH_ROUTING_ZONE_CONSTRAINT = "AttachRoutingZoneConstraint"

    @property
    def structural(self) -> bool:
        """True for types that cannot be wrapped in a pipeline / batch."""
        return self in (CtPolicyTypeName.NONE, CtPolicyTypeName.PIPELINE, CtPolicyTypeName.BATCH)


class BuildState(str, Enum):
    UNBUILT = "unbuilt"
    BUILT = "built"


class Ipv4AddressingType(str, Enum):
    NONE = "none"
    NUMBERED = "numbered"


class Ipv6AddressingType(str, Enum):
    NONE = "none"
    LINK_LOCAL = "link_local"
    NUMBERED = "numbered"


class BgpPeerTo(str, Enum):
    LOOPBACK = "loopback"
    INTERFACE_OR_IP_ENDPOINT = "interface_or_ip_endpoint"
    INTERFACE_OR_SHARED_IP_ENDPOINT = "interface_or_shared_ip_endpoint"


class Ipv4SessionAddressing(str, Enum):
    NONE = "none"
    ADDRESSED = "addressed"


class Ipv6SessionAddressing(str, Enum):
    NONE = "none"
    ADDRESSED = "addressed"
    LINK_LOCAL = "link_local"
