"""
In-memory stand-ins for the request executor and lock provider.

FakeExecutor speaks just enough of the blueprint API for the policy editor,
the connectivity template client and the query engine:

  GET/POST          /api/blueprints/{bp}/policies
  GET/PUT/DELETE    /api/blueprints/{bp}/policies/{id}
  POST              /api/blueprints/{bp}/qe
  PUT               /api/blueprints/{bp}/obj-policy-import
  GET               /api/blueprints/{bp}/obj-policy-export
  DELETE            /api/blueprints/{bp}/endpoint-policies/{id}?delete_recursive=true

Like the real server it assigns ids to new rules on PUT and does not return
them. ``hidden_reads`` makes freshly written rules invisible to that many
subsequent GETs, to exercise the post-insert label lookup.
"""

from __future__ import annotations

import copy
import re
from typing import Any

from apstrakit.core.exceptions import ApiError
from apstrakit.core.locks import MutexMap

_BP = r"/api/blueprints/(?P<bp>[^/?]+)"
_ROUTES = [
    ("policies", re.compile(_BP + r"/policies$")),
    ("policy", re.compile(_BP + r"/policies/(?P<id>[^/?]+)$")),
    ("qe", re.compile(_BP + r"/qe(\?.*)?$")),
    ("import", re.compile(_BP + r"/obj-policy-import$")),
    ("export", re.compile(_BP + r"/obj-policy-export$")),
    ("endpoint_policy", re.compile(_BP + r"/endpoint-policies/(?P<id>[^/?]+)(\?.*)?$")),
]


def raw_rule(label: str, rule_id: str | None = None, **overrides: Any) -> dict[str, Any]:
    rule: dict[str, Any] = {
        "label": label,
        "description": "",
        "protocol": "TCP",
        "action": "permit",
        "src_port": "any",
        "dst_port": "443",
    }
    if rule_id is not None:
        rule["id"] = rule_id
    rule.update(overrides)
    return rule


def raw_policy(policy_id: str, label: str = "pol", rules: list[dict] | None = None) -> dict[str, Any]:
    return {
        "id": policy_id,
        "enabled": True,
        "label": label,
        "description": "test policy",
        "src_application_point": {"id": "vn-a", "label": "A", "type": "virtual_network"},
        "dst_application_point": {"id": "vn-b", "label": "B", "type": "virtual_network"},
        "rules": rules or [],
        "tags": ["t1"],
    }


def _expand_points(stored: dict[str, Any], previous: dict[str, Any] | None) -> None:
    # requests carry application point ids; responses carry objects
    for key in ("src_application_point", "dst_application_point"):
        value = stored.get(key)
        if not isinstance(value, str):
            continue
        prior = (previous or {}).get(key)
        if isinstance(prior, dict) and prior.get("id") == value:
            stored[key] = prior
        else:
            stored[key] = {"id": value, "label": value, "type": "virtual_network"}


class FakeExecutor:
    def __init__(self, events: list | None = None) -> None:
        self.policies: dict[str, dict[str, Any]] = {}
        self.ct_policies: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str, Any]] = []
        self.events = events if events is not None else []
        self.hidden_reads = 0
        self.idless_reads = 0
        self.qe_response: Any = {"count": 0, "items": []}
        self.fail_on: dict[tuple[str, str], ApiError] = {}
        self._rule_seq = 0
        self._policy_seq = 0
        self._pending: dict[str, tuple[set[str], int]] = {}
        self._idless: dict[str, tuple[set[str], int]] = {}

    def add_policy(self, policy: dict[str, Any]) -> None:
        self.policies[policy["id"]] = copy.deepcopy(policy)

    def rule_labels(self, policy_id: str) -> list[str]:
        return [r["label"] for r in self.policies[policy_id]["rules"]]

    def writes(self) -> list[tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] in ("PUT", "POST", "DELETE")]

    # ------------------------------------------------------------------

    def do(self, ctx: Any, method: str, path: str, body: Any = None) -> Any:
        self.calls.append((method, path, copy.deepcopy(body)))
        self.events.append((method, path))
        if (method, path) in self.fail_on:
            raise self.fail_on[(method, path)]

        for name, pattern in _ROUTES:
            m = pattern.match(path)
            if m:
                handler = getattr(self, f"_{name}")
                return handler(method, m.groupdict(), body)
        raise ApiError(404, f"no route for {method} {path}")

    def _policies(self, method: str, params: dict, body: Any) -> Any:
        if method == "GET":
            return {"policies": [copy.deepcopy(p) for p in self.policies.values()]}
        if method == "POST":
            self._policy_seq += 1
            policy_id = f"policy-{self._policy_seq}"
            stored = copy.deepcopy(body)
            stored["id"] = policy_id
            stored["rules"] = [self._assign(r) for r in stored.get("rules", [])]
            _expand_points(stored, None)
            self.policies[policy_id] = stored
            return {"id": policy_id}
        raise ApiError(405, method)

    def _policy(self, method: str, params: dict, body: Any) -> Any:
        policy_id = params["id"]
        if policy_id not in self.policies:
            raise ApiError(404, f"policy {policy_id} not found")

        if method == "GET":
            policy = copy.deepcopy(self.policies[policy_id])
            hidden, remaining = self._pending.get(policy_id, (set(), 0))
            if remaining > 0:
                self._pending[policy_id] = (hidden, remaining - 1)
                policy["rules"] = [r for r in policy["rules"] if r.get("id") not in hidden]
            unassigned, pending = self._idless.get(policy_id, (set(), 0))
            if pending > 0:
                # listed before the server has filled in the id
                self._idless[policy_id] = (unassigned, pending - 1)
                for rule in policy["rules"]:
                    if rule.get("id") in unassigned:
                        rule["id"] = ""
            return policy

        if method == "PUT":
            new_ids = set()
            rules = []
            for rule in copy.deepcopy(body.get("rules", [])):
                if not rule.get("id"):
                    rule = self._assign(rule)
                    new_ids.add(rule["id"])
                rules.append(rule)
            stored = copy.deepcopy(body)
            stored["id"] = policy_id
            stored["rules"] = rules
            _expand_points(stored, self.policies[policy_id])
            self.policies[policy_id] = stored
            if new_ids and self.hidden_reads:
                self._pending[policy_id] = (new_ids, self.hidden_reads)
            if new_ids and self.idless_reads:
                self._idless[policy_id] = (new_ids, self.idless_reads)
            return None

        if method == "DELETE":
            del self.policies[policy_id]
            return None
        raise ApiError(405, method)

    def _qe(self, method: str, params: dict, body: Any) -> Any:
        return copy.deepcopy(self.qe_response)

    def _import(self, method: str, params: dict, body: Any) -> Any:
        self.ct_policies.extend(copy.deepcopy(body["policies"]))
        return None

    def _export(self, method: str, params: dict, body: Any) -> Any:
        return {"policies": copy.deepcopy(self.ct_policies)}

    def _endpoint_policy(self, method: str, params: dict, body: Any) -> Any:
        before = len(self.ct_policies)
        self.ct_policies = [p for p in self.ct_policies if p["id"] != params["id"]]
        if len(self.ct_policies) == before:
            raise ApiError(404, f"endpoint policy {params['id']} not found")
        return None

    def _assign(self, rule: dict[str, Any]) -> dict[str, Any]:
        self._rule_seq += 1
        rule = dict(rule)
        rule["id"] = f"rule-{self._rule_seq}"
        return rule


class RecordingLocks(MutexMap):
    """MutexMap that appends lock / unlock events to a shared list."""

    def __init__(self, events: list) -> None:
        super().__init__()
        self.events = events

    def lock(self, key: str) -> None:
        super().lock(key)
        self.events.append(("lock", key))

    def unlock(self, key: str) -> None:
        self.events.append(("unlock", key))
        super().unlock(key)
