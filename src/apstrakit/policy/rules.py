"""
Policy rule list editor — locked read-modify-write of a policy's ordered rules.

Rule order is first-match-wins on the remote firewall, so inserts are
position-aware. The server assigns a new rule's id during the PUT and does
not return it; :meth:`PolicyRuleEditor.insert_rule` finds it afterwards by
re-reading the policy and matching on label, retrying while the server
catches up.

Usage::

    editor = PolicyRuleEditor(executor, blueprint_id="bp-1")
    rule_id = editor.insert_rule(ctx, policy_id, rule, position=0)
    editor.delete_rule(ctx, policy_id, rule_id)

Limitations:
  - The lock is in-process. Two independent clients editing the same policy
    race, and the last PUT wins.
  - If two rules share a label, the post-insert lookup returns the first one
    in list order.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from apstrakit.core.config import RulesConfig
from apstrakit.core.constants import (
    API_URL_POLICIES,
    API_URL_POLICY_BY_ID,
    MUTEX_KEY_SEPARATOR,
    RULE_LOOKUP_BACKOFF_SECONDS,
    RULE_LOOKUP_MAX_RETRIES,
)
from apstrakit.core.context import RequestContext
from apstrakit.core.exceptions import MultipleMatchError, NotFoundError, RuleLookupTimeoutError
from apstrakit.core.executor import (
    METHOD_DELETE,
    METHOD_GET,
    METHOD_POST,
    METHOD_PUT,
    RequestExecutor,
)
from apstrakit.core.locks import LockProvider, MutexMap, holding
from apstrakit.policy.model import Policy, PolicyData, PolicyRuleData, RawPolicy, RawPolicyRule

logger = logging.getLogger(__name__)


def splice_rule(rules: list[Any], rule: Any, position: int) -> list[Any]:
    """
    Return a new list with ``rule`` inserted at ``position``.

    ``position < 0`` or ``>= len(rules)`` appends, ``0`` prepends, anything
    else inserts before the rule currently at that index. ``rules`` is not
    modified.
    """
    count = len(rules)
    if position < 0:
        return [*rules, rule]
    if position == 0:
        return [rule, *rules]
    if position >= count:
        return [*rules, rule]
    return [*rules[:position], rule, *rules[position:]]


class PolicyRuleEditor:
    """Security policy CRUD plus ordered rule insert / delete for one blueprint."""

    def __init__(
        self,
        executor: RequestExecutor,
        blueprint_id: str,
        locks: LockProvider | None = None,
        max_retries: int = RULE_LOOKUP_MAX_RETRIES,
        backoff: float = RULE_LOOKUP_BACKOFF_SECONDS,
    ) -> None:
        self._executor = executor
        self.blueprint_id = blueprint_id
        self._locks = locks if locks is not None else MutexMap()
        self.max_retries = max_retries
        self.backoff = backoff

    @classmethod
    def from_config(
        cls,
        executor: RequestExecutor,
        blueprint_id: str,
        config: RulesConfig,
        locks: LockProvider | None = None,
    ) -> PolicyRuleEditor:
        """Editor whose post-insert lookup uses the configured retry budget."""
        return cls(
            executor,
            blueprint_id,
            locks=locks,
            max_retries=config.lookup_max_retries,
            backoff=config.lookup_backoff_seconds,
        )

    def lock_id(self, *ids: str) -> str:
        """Mutex key for objects inside this blueprint."""
        return MUTEX_KEY_SEPARATOR.join([self.blueprint_id, *ids])

    def _policies_url(self) -> str:
        return API_URL_POLICIES.format(blueprint_id=self.blueprint_id)

    def _policy_url(self, policy_id: str) -> str:
        return API_URL_POLICY_BY_ID.format(blueprint_id=self.blueprint_id, policy_id=policy_id)

    # ------------------------------------------------------------------
    # Policy CRUD
    # ------------------------------------------------------------------

    def list_raw_policies(self, ctx: RequestContext) -> list[RawPolicy]:
        response = self._executor.do(ctx, METHOD_GET, self._policies_url())
        return [RawPolicy.model_validate(p) for p in (response or {}).get("policies") or []]

    def list_policies(self, ctx: RequestContext) -> list[Policy]:
        return [raw.polish() for raw in self.list_raw_policies(ctx)]

    def get_raw_policy(self, ctx: RequestContext, policy_id: str) -> RawPolicy:
        response = self._executor.do(ctx, METHOD_GET, self._policy_url(policy_id))
        return RawPolicy.model_validate(response)

    def get_policy(self, ctx: RequestContext, policy_id: str) -> Policy:
        return self.get_raw_policy(ctx, policy_id).polish()

    def get_policy_by_label(self, ctx: RequestContext, label: str) -> Policy:
        """
        Raises:
            NotFoundError:      no policy carries ``label``.
            MultipleMatchError: more than one does.
        """
        matches = [p for p in self.list_raw_policies(ctx) if p.label == label]
        if not matches:
            raise NotFoundError(f"policy with label {label!r} not found")
        if len(matches) > 1:
            raise MultipleMatchError(f"found multiple ({len(matches)}) policies with label {label!r}")
        return matches[0].polish()

    def create_policy(self, ctx: RequestContext, data: PolicyData) -> str:
        response = self._executor.do(ctx, METHOD_POST, self._policies_url(), data.request())
        policy_id = (response or {}).get("id", "")
        logger.info("policy created: blueprint=%s id=%s label=%s", self.blueprint_id, policy_id, data.label)
        return policy_id

    def update_policy(self, ctx: RequestContext, policy_id: str, body: dict[str, Any]) -> None:
        self._executor.do(ctx, METHOD_PUT, self._policy_url(policy_id), body)

    def delete_policy(self, ctx: RequestContext, policy_id: str) -> None:
        self._executor.do(ctx, METHOD_DELETE, self._policy_url(policy_id))
        logger.info("policy deleted: blueprint=%s id=%s", self.blueprint_id, policy_id)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def insert_rule(
        self,
        ctx: RequestContext,
        policy_id: str,
        rule: PolicyRuleData,
        position: int = -1,
    ) -> str:
        """
        Insert ``rule`` into the policy's rule list and return its new id.

        The fetch / splice / PUT cycle runs under the policy's lock; the id
        lookup afterwards does not.

        Raises:
            RuleLookupTimeoutError: the rule never appeared after the PUT.
            OperationCancelledError: ``ctx`` was cancelled.
            ApiError: passed through from the executor.
        """
        raw_rule = rule.raw()

        with holding(self._locks, self.lock_id(policy_id)):
            ctx.raise_if_done()
            policy = self.get_raw_policy(ctx, policy_id)
            rules = splice_rule(policy.rules, raw_rule, position)
            self.update_policy(ctx, policy_id, policy.request(rules=rules))

        logger.debug(
            "rule %r written to policy %s at position %d (%d rules)",
            rule.label,
            policy_id,
            position,
            len(rules),
        )
        return self.rule_id_by_label(ctx, policy_id, rule.label)

    def delete_rule(self, ctx: RequestContext, policy_id: str, rule_id: str) -> None:
        """
        Remove the rule with ``rule_id`` from the policy.

        Raises:
            NotFoundError: no such rule; nothing is written.
        """
        with holding(self._locks, self.lock_id(policy_id)):
            ctx.raise_if_done()
            policy = self.get_raw_policy(ctx, policy_id)

            index = -1
            for i, existing in enumerate(policy.rules):
                if existing.id == rule_id:
                    index = i
                    break

            if index < 0:
                raise NotFoundError(f"rule id {rule_id!r} not found in policy {policy_id!r}")

            rules: list[RawPolicyRule] = policy.rules[:index] + policy.rules[index + 1 :]
            self.update_policy(ctx, policy_id, policy.request(rules=rules))

        logger.debug("rule %s removed from policy %s", rule_id, policy_id)

    def rule_id_by_label(self, ctx: RequestContext, policy_id: str, label: str) -> str:
        """
        Poll the policy until a rule labelled ``label`` shows up; return its id.

        Attempt ``i`` (from 0) waits ``i * backoff`` seconds first, for
        ``max_retries + 1`` attempts in total.

        Raises:
            RuleLookupTimeoutError: carrying the attempt count and elapsed time.
        """
        start = time.monotonic()
        attempts = 0
        for attempt in range(self.max_retries + 1):
            ctx.sleep(attempt * self.backoff)
            attempts += 1
            policy = self.get_raw_policy(ctx, policy_id)
            for existing in policy.rules:
                # a rule without an id is not committed yet
                if existing.label == label and existing.id:
                    return existing.id
            logger.debug("rule %r not yet visible in policy %s (attempt %d)", label, policy_id, attempts)

        elapsed = time.monotonic() - start
        logger.warning(
            "rule %r did not appear in policy %s after %d attempts (%.3fs)",
            label,
            policy_id,
            attempts,
            elapsed,
        )
        raise RuleLookupTimeoutError(label, policy_id, attempts, elapsed)
