"""
Tests for apstrakit.policy.rules — ordered rule insert / delete.

Covers:
  - splice_rule boundary cases
  - insert at every position class, id lookup by label
  - delayed visibility, lookup exhaustion, cancellation during backoff
  - delete of present and absent rules
  - lock held across fetch/write and released before the lookup
  - policy CRUD helpers
"""

from __future__ import annotations

import threading

import pytest

from apstrakit.core.config import RulesConfig
from apstrakit.core.context import RequestContext
from apstrakit.core.exceptions import (
    ApiError,
    MultipleMatchError,
    NotFoundError,
    OperationCancelledError,
    RuleLookupTimeoutError,
)
from apstrakit.core.locks import MutexMap
from apstrakit.policy.model import (
    PolicyApplicationPoint,
    PolicyApplicationPointType,
    PolicyData,
    PolicyRuleAction,
    PolicyRuleData,
    PolicyRuleProtocol,
)
from apstrakit.policy.ports import PortRange
from apstrakit.policy.rules import PolicyRuleEditor, splice_rule
from tests.fakes import FakeExecutor, RecordingLocks, raw_policy, raw_rule

BP = "bp-1"
POLICY = "policy-x"
POLICY_PATH = f"/api/blueprints/{BP}/policies/{POLICY}"


def _rule(label: str) -> PolicyRuleData:
    return PolicyRuleData(
        label=label,
        protocol=PolicyRuleProtocol.TCP,
        action=PolicyRuleAction.PERMIT,
        dst_port=[PortRange(443, 443)],
    )


def _setup(*labels: str, **editor_kwargs) -> tuple[FakeExecutor, PolicyRuleEditor]:
    executor = FakeExecutor()
    rules = [raw_rule(label, rule_id=f"id-{label}") for label in labels]
    executor.add_policy(raw_policy(POLICY, rules=rules))
    editor_kwargs.setdefault("backoff", 0.0)
    return executor, PolicyRuleEditor(executor, BP, **editor_kwargs)


class _RecordingContext(RequestContext):
    """Records requested waits instead of sleeping."""

    __slots__ = ("waits",)

    def __init__(self) -> None:
        super().__init__()
        self.waits: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.raise_if_done()
        self.waits.append(seconds)


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext.background()


# ---------------------------------------------------------------------------
# splice_rule
# ---------------------------------------------------------------------------


class TestSpliceRule:
    def test_middle(self) -> None:
        assert splice_rule(["A", "B"], "C", 1) == ["A", "C", "B"]

    def test_front(self) -> None:
        assert splice_rule(["A", "B"], "C", 0) == ["C", "A", "B"]

    def test_negative_appends(self) -> None:
        assert splice_rule(["A", "B"], "C", -1) == ["A", "B", "C"]

    @pytest.mark.parametrize("position", [2, 3, 100])
    def test_past_end_appends(self, position: int) -> None:
        assert splice_rule(["A", "B"], "C", position) == ["A", "B", "C"]

    @pytest.mark.parametrize("position", [-5, -1, 0, 1, 7])
    def test_empty_list(self, position: int) -> None:
        assert splice_rule([], "C", position) == ["C"]

    def test_input_untouched(self) -> None:
        rules = ["A", "B"]
        splice_rule(rules, "C", 1)
        assert rules == ["A", "B"]


# ---------------------------------------------------------------------------
# insert_rule
# ---------------------------------------------------------------------------


class TestInsertRule:
    @pytest.mark.parametrize(
        "position, expected",
        [
            (1, ["A", "C", "B"]),
            (0, ["C", "A", "B"]),
            (-1, ["A", "B", "C"]),
            (2, ["A", "B", "C"]),
            (9, ["A", "B", "C"]),
        ],
    )
    def test_positions(self, ctx: RequestContext, position: int, expected: list[str]) -> None:
        executor, editor = _setup("A", "B")
        editor.insert_rule(ctx, POLICY, _rule("C"), position=position)
        assert executor.rule_labels(POLICY) == expected

    def test_into_empty_policy(self, ctx: RequestContext) -> None:
        executor, editor = _setup()
        editor.insert_rule(ctx, POLICY, _rule("C"), position=3)
        assert executor.rule_labels(POLICY) == ["C"]

    def test_returns_server_assigned_id(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A")
        rule_id = editor.insert_rule(ctx, POLICY, _rule("C"))
        stored = {r["label"]: r["id"] for r in executor.policies[POLICY]["rules"]}
        assert rule_id == stored["C"]
        assert rule_id.startswith("rule-")

    def test_single_put_with_whole_policy(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A")
        editor.insert_rule(ctx, POLICY, _rule("C"), position=0)

        puts = [c for c in executor.calls if c[0] == "PUT"]
        assert len(puts) == 1
        _, path, body = puts[0]
        assert path == POLICY_PATH
        assert body["label"] == "pol"
        assert body["tags"] == ["t1"]
        assert body["src_application_point"] == "vn-a"
        assert body["dst_application_point"] == "vn-b"
        assert [r["label"] for r in body["rules"]] == ["C", "A"]
        assert "id" not in body["rules"][0]
        assert body["rules"][1]["id"] == "id-A"
        assert body["rules"][0]["dst_port"] == "443"
        assert body["rules"][0]["src_port"] == "any"

    def test_waits_for_eventual_consistency(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", max_retries=5)
        executor.hidden_reads = 3
        rule_id = editor.insert_rule(ctx, POLICY, _rule("C"))
        assert rule_id
        gets_after_put = [c for c in executor.calls if c[0] == "GET"][1:]
        assert len(gets_after_put) == 4

    def test_lookup_exhaustion(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", max_retries=2)
        executor.hidden_reads = 100
        with pytest.raises(RuleLookupTimeoutError) as exc_info:
            editor.insert_rule(ctx, POLICY, _rule("C"))
        err = exc_info.value
        assert err.attempts == 3
        assert err.label == "C"
        assert err.policy_id == POLICY
        assert err.elapsed >= 0
        assert "after 3 attempts" in str(err)
        assert isinstance(err, NotFoundError)

    def test_linear_backoff_schedule(self) -> None:
        executor, editor = _setup("A", max_retries=3, backoff=0.25)
        executor.hidden_reads = 100
        ctx = _RecordingContext()
        with pytest.raises(RuleLookupTimeoutError):
            editor.insert_rule(ctx, POLICY, _rule("C"))
        assert ctx.waits == [0.0, 0.25, 0.5, 0.75]

    def test_from_config_uses_lookup_budget(self) -> None:
        executor = FakeExecutor()
        executor.add_policy(raw_policy(POLICY, rules=[raw_rule("A", rule_id="id-A")]))
        executor.hidden_reads = 100
        config = RulesConfig(lookup_max_retries=2, lookup_backoff_seconds=0.5)
        editor = PolicyRuleEditor.from_config(executor, BP, config)
        assert (editor.max_retries, editor.backoff) == (2, 0.5)

        ctx = _RecordingContext()
        with pytest.raises(RuleLookupTimeoutError) as exc_info:
            editor.insert_rule(ctx, POLICY, _rule("C"))
        assert exc_info.value.attempts == 3
        assert ctx.waits == [0.0, 0.5, 1.0]

    def test_rule_without_id_keeps_polling(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", max_retries=5)
        executor.idless_reads = 2
        rule_id = editor.insert_rule(ctx, POLICY, _rule("C"))
        assert rule_id == "rule-1"
        gets_after_put = [c for c in executor.calls if c[0] == "GET"][1:]
        assert len(gets_after_put) == 3

    def test_rule_without_id_never_returned(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", max_retries=2)
        executor.add_policy(raw_policy(POLICY, rules=[raw_rule("A", rule_id="id-A"), raw_rule("C")]))
        with pytest.raises(RuleLookupTimeoutError) as exc_info:
            editor.rule_id_by_label(ctx, POLICY, "C")
        assert exc_info.value.attempts == 3

    def test_label_collision_returns_first(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", "C")
        rule_id = editor.insert_rule(ctx, POLICY, _rule("C"), position=-1)
        assert rule_id == "id-C"
        assert executor.rule_labels(POLICY) == ["A", "C", "C"]

    def test_cancel_during_backoff(self) -> None:
        executor, editor = _setup("A", max_retries=10, backoff=5.0)
        executor.hidden_reads = 100
        ctx = RequestContext.background()
        threading.Timer(0.2, ctx.cancel).start()
        with pytest.raises(OperationCancelledError):
            editor.insert_rule(ctx, POLICY, _rule("C"))
        # the write went through before the lookup was cancelled
        assert executor.rule_labels(POLICY) == ["A", "C"]

    def test_cancelled_context_writes_nothing(self) -> None:
        executor, editor = _setup("A")
        ctx = RequestContext.background()
        ctx.cancel()
        with pytest.raises(OperationCancelledError):
            editor.insert_rule(ctx, POLICY, _rule("C"))
        assert executor.writes() == []

    def test_api_error_passes_through_and_unlocks(self, ctx: RequestContext) -> None:
        executor = FakeExecutor()
        executor.add_policy(raw_policy(POLICY))
        boom = ApiError(500, "server exploded")
        executor.fail_on[("PUT", POLICY_PATH)] = boom
        locks = MutexMap()
        editor = PolicyRuleEditor(executor, BP, locks=locks, backoff=0.0)

        with pytest.raises(ApiError) as exc_info:
            editor.insert_rule(ctx, POLICY, _rule("C"))
        assert exc_info.value is boom
        assert not locks.locked(editor.lock_id(POLICY))

    def test_lock_released_before_lookup(self, ctx: RequestContext) -> None:
        events: list = []
        executor = FakeExecutor(events=events)
        executor.add_policy(raw_policy(POLICY))
        editor = PolicyRuleEditor(executor, BP, locks=RecordingLocks(events), backoff=0.0)

        editor.insert_rule(ctx, POLICY, _rule("C"))

        key = f"{BP}:{POLICY}"
        assert events == [
            ("lock", key),
            ("GET", POLICY_PATH),
            ("PUT", POLICY_PATH),
            ("unlock", key),
            ("GET", POLICY_PATH),
        ]

    def test_concurrent_inserts_keep_every_rule(self) -> None:
        executor, editor = _setup()
        labels = [f"r{i}" for i in range(20)]
        errors: list[BaseException] = []

        def insert(label: str) -> None:
            try:
                editor.insert_rule(RequestContext.background(), POLICY, _rule(label), position=0)
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=insert, args=(label,)) for label in labels]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert sorted(executor.rule_labels(POLICY)) == sorted(labels)


# ---------------------------------------------------------------------------
# delete_rule
# ---------------------------------------------------------------------------


class TestDeleteRule:
    def test_removes_rule(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", "B", "C")
        editor.delete_rule(ctx, POLICY, "id-B")
        assert executor.rule_labels(POLICY) == ["A", "C"]

    def test_missing_rule_no_write(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", "B")
        with pytest.raises(NotFoundError):
            editor.delete_rule(ctx, POLICY, "id-Z")
        assert executor.writes() == []
        assert executor.rule_labels(POLICY) == ["A", "B"]

    def test_missing_rule_releases_lock(self, ctx: RequestContext) -> None:
        executor = FakeExecutor()
        executor.add_policy(raw_policy(POLICY))
        locks = MutexMap()
        editor = PolicyRuleEditor(executor, BP, locks=locks)
        with pytest.raises(NotFoundError):
            editor.delete_rule(ctx, POLICY, "nope")
        assert not locks.locked(editor.lock_id(POLICY))

    def test_insert_then_delete_end_to_end(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A", "B")
        editor.insert_rule(ctx, POLICY, _rule("C"), position=1)
        assert executor.rule_labels(POLICY) == ["A", "C", "B"]

        editor.delete_rule(ctx, POLICY, "id-B")
        assert executor.rule_labels(POLICY) == ["A", "C"]

        policy = editor.get_policy(ctx, POLICY)
        assert [r.data.label for r in policy.data.rules] == ["A", "C"]


# ---------------------------------------------------------------------------
# Policy CRUD
# ---------------------------------------------------------------------------


class TestPolicyCrud:
    def test_get_policy_polished(self, ctx: RequestContext) -> None:
        executor, editor = _setup("A")
        policy = editor.get_policy(ctx, POLICY)
        assert policy.id == POLICY
        assert policy.data.src_application_point is not None
        assert policy.data.src_application_point.type is PolicyApplicationPointType.VIRTUAL_NETWORK
        rule = policy.data.rules[0]
        assert rule.id == "id-A"
        assert rule.data.protocol is PolicyRuleProtocol.TCP
        assert rule.data.dst_port == [PortRange(443, 443)]
        assert rule.data.src_port == []

    def test_get_missing_policy(self, ctx: RequestContext) -> None:
        _, editor = _setup()
        with pytest.raises(ApiError) as exc_info:
            editor.get_policy(ctx, "absent")
        assert exc_info.value.status == 404

    def test_list_and_by_label(self, ctx: RequestContext) -> None:
        executor, editor = _setup()
        executor.add_policy(raw_policy("p2", label="second"))
        assert {p.id for p in editor.list_policies(ctx)} == {POLICY, "p2"}
        assert editor.get_policy_by_label(ctx, "second").id == "p2"

    def test_by_label_not_found(self, ctx: RequestContext) -> None:
        _, editor = _setup()
        with pytest.raises(NotFoundError):
            editor.get_policy_by_label(ctx, "nothing")

    def test_by_label_ambiguous(self, ctx: RequestContext) -> None:
        executor, editor = _setup()
        executor.add_policy(raw_policy("p2", label="pol"))
        with pytest.raises(MultipleMatchError):
            editor.get_policy_by_label(ctx, "pol")

    def test_create_and_delete(self, ctx: RequestContext) -> None:
        executor = FakeExecutor()
        editor = PolicyRuleEditor(executor, BP)
        data = PolicyData(
            enabled=True,
            label="new",
            src_application_point=PolicyApplicationPoint(
                id="vn-a", type=PolicyApplicationPointType.VIRTUAL_NETWORK
            ),
        )
        policy_id = editor.create_policy(ctx, data)
        _, _, body = executor.calls[-1]
        assert body["src_application_point"] == "vn-a"
        assert "dst_application_point" not in body

        assert editor.get_policy(ctx, policy_id).data.label == "new"
        editor.delete_policy(ctx, policy_id)
        assert policy_id not in executor.policies
