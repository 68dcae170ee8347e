"""
Connectivity templates: attribute encoders, the policy tree builder and client.

Public API::

    from apstrakit.ct import CtPolicy, AttachSingleVlan

    policy = CtPolicy(label="web", attributes=AttachSingleVlan(tagged=True, vn_node_id="vn-1"))
    main, pipeline, batch = policy.compile()
"""

from apstrakit.ct.attributes import (
    ATTRIBUTE_TYPES,
    AttachBgpOverSubinterfacesOrSvi,
    AttachBgpWithPrefixPeeringForSviOrSubinterface,
    AttachCustomStaticRoute,
    AttachExistingRoutingPolicy,
    AttachIpEndpointWithBgpNsxt,
    AttachLogicalLink,
    AttachMultipleVlan,
    AttachRoutingZoneConstraint,
    AttachSingleVlan,
    AttachStaticRoute,
    CtAttributes,
)
from apstrakit.ct.builder import BatchAttributes, CtPolicy, CtPolicyRecord, PipelineAttributes
from apstrakit.ct.client import ConnectivityTemplateClient
from apstrakit.ct.parser import load_ct_policy, parse_ct_policy
from apstrakit.ct.types import (
    BgpPeerTo,
    BuildState,
    CtPolicyTypeName,
    Ipv4AddressingType,
    Ipv4SessionAddressing,
    Ipv6AddressingType,
    Ipv6SessionAddressing,
)

__all__ = [
    "ATTRIBUTE_TYPES",
    "AttachBgpOverSubinterfacesOrSvi",
    "AttachBgpWithPrefixPeeringForSviOrSubinterface",
    "AttachCustomStaticRoute",
    "AttachExistingRoutingPolicy",
    "AttachIpEndpointWithBgpNsxt",
    "AttachLogicalLink",
    "AttachMultipleVlan",
    "AttachRoutingZoneConstraint",
    "AttachSingleVlan",
    "AttachStaticRoute",
    "BatchAttributes",
    "BgpPeerTo",
    "BuildState",
    "ConnectivityTemplateClient",
    "CtAttributes",
    "CtPolicy",
    "CtPolicyRecord",
    "CtPolicyTypeName",
    "Ipv4AddressingType",
    "Ipv4SessionAddressing",
    "Ipv6AddressingType",
    "Ipv6SessionAddressing",
    "PipelineAttributes",
    "load_ct_policy",
    "parse_ct_policy",
]
