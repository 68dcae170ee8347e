"""
Security policies: port range codec, rule model, and the ordered rule editor.

Public API::

    from apstrakit.policy import PolicyRuleEditor, PolicyRuleData, parse_port_ranges

    editor = PolicyRuleEditor(executor, blueprint_id="bp-1")
    rule_id = editor.insert_rule(ctx, policy_id, rule, position=1)
"""

from apstrakit.policy.model import (
    Policy,
    PolicyApplicationPoint,
    PolicyApplicationPointType,
    PolicyData,
    PolicyRule,
    PolicyRuleAction,
    PolicyRuleData,
    PolicyRuleProtocol,
    RawPolicy,
    RawPolicyRule,
    TcpStateQualifier,
)
from apstrakit.policy.parser import load_rule, parse_rule
from apstrakit.policy.ports import PortRange, parse_port_ranges, render_port_ranges
from apstrakit.policy.rules import PolicyRuleEditor, splice_rule

__all__ = [
    "Policy",
    "PolicyApplicationPoint",
    "PolicyApplicationPointType",
    "PolicyData",
    "PolicyRule",
    "PolicyRuleAction",
    "PolicyRuleData",
    "PolicyRuleEditor",
    "PolicyRuleProtocol",
    "PortRange",
    "RawPolicy",
    "RawPolicyRule",
    "TcpStateQualifier",
    "load_rule",
    "parse_port_ranges",
    "parse_rule",
    "render_port_ranges",
    "splice_rule",
]
