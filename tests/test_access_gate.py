from access_gate import AccessGate, Verdict, evaluate
from allow_list import AllowList
from config import HelperSettings
from session_data import Participant


def _allow_list(display_names=(), unique_ids=(), peer_ids=()) -> AllowList:
    return AllowList(
        display_names=frozenset(display_names),
        unique_ids=frozenset(unique_ids),
        peer_ids=frozenset(peer_ids),
    )


def test_empty_allow_list_admits_everyone() -> None:
    empty = _allow_list()

    assert evaluate(Participant(peer_id="p1"), empty) is Verdict.ADMIT
    assert evaluate(Participant(peer_id="p2", display_name="Bob", unique_id="42"), empty) is Verdict.ADMIT


def test_display_name_only_list_evicts_unlisted_player() -> None:
    allow_list = _allow_list(display_names=["Alice"])

    bob = Participant(peer_id="p1", display_name="Bob", unique_id="42")
    alice = Participant(peer_id="p2", display_name="Alice", unique_id=None)

    assert evaluate(bob, allow_list) is Verdict.EVICT
    assert evaluate(alice, allow_list) is Verdict.ADMIT


def test_any_single_identity_channel_admits() -> None:
    allow_list = _allow_list(display_names=["Alice"], unique_ids=["42"], peer_ids=["p9"])

    assert evaluate(Participant(peer_id="x", unique_id="42"), allow_list) is Verdict.ADMIT
    assert evaluate(Participant(peer_id="p9"), allow_list) is Verdict.ADMIT
    assert evaluate(Participant(peer_id="x", display_name="Alice"), allow_list) is Verdict.ADMIT
    assert evaluate(Participant(peer_id="x", display_name="alice", unique_id="43"), allow_list) is Verdict.EVICT


def test_unresolved_identity_falls_back_to_peer_id() -> None:
    allow_list = _allow_list(display_names=["Alice"], peer_ids=["p1"])

    assert evaluate(Participant(peer_id="p1"), allow_list) is Verdict.ADMIT
    assert evaluate(Participant(peer_id="p2"), allow_list) is Verdict.EVICT


def test_check_kicks_by_display_name(engine, make_store) -> None:
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())

    verdict = gate.check(Participant(peer_id="p1", display_name="Bob"))

    assert verdict is Verdict.EVICT
    assert engine.kicked() == ["kick Bob"]
    assert engine.notifier.messages


def test_check_kicks_by_peer_id_when_name_is_unresolved(engine, make_store) -> None:
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())

    gate.check(Participant(peer_id="p7"))

    assert engine.kicked() == ["kick p7"]


def test_non_host_never_evicts(engine, make_store) -> None:
    engine.context.is_main_player = False
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())

    verdict = gate.check(Participant(peer_id="p1", display_name="Bob"))

    assert verdict is Verdict.ADMIT
    assert engine.commands.executed == []


def test_eviction_is_issued_once_per_peer_per_session(engine, make_store) -> None:
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())
    bob = Participant(peer_id="p1", display_name="Bob")

    gate.check(bob)
    gate.check(bob)
    assert engine.kicked() == ["kick Bob"]

    gate.reset()
    gate.check(bob)
    assert engine.kicked() == ["kick Bob", "kick Bob"]


def test_forgotten_peer_is_kicked_again_on_reconnect(engine, make_store) -> None:
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())
    bob = Participant(peer_id="p1", display_name="Bob")

    gate.check(bob)
    gate.forget("p1")
    gate.check(bob)

    assert engine.kicked() == ["kick Bob", "kick Bob"]


def test_failed_kick_is_retried_on_next_check(engine, make_store) -> None:
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())
    engine.commands.failures_left = 1
    bob = Participant(peer_id="p1", display_name="Bob")

    assert gate.check(bob) is Verdict.EVICT
    assert engine.kicked() == []

    gate.check(bob)
    assert engine.kicked() == ["kick Bob"]


def test_broken_notifier_does_not_change_decision(engine, make_store) -> None:
    engine.notifier.broken = True
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())

    assert gate.check(Participant(peer_id="p1", display_name="Bob")) is Verdict.EVICT
    assert engine.kicked() == ["kick Bob"]


def test_rescan_counts_evictions(engine, make_store) -> None:
    gate = AccessGate(engine.host, make_store(display_names=["Alice"]), HelperSettings())
    participants = [
        Participant(peer_id="p1", display_name="Alice"),
        Participant(peer_id="p2", display_name="Bob"),
        Participant(peer_id="p3"),
    ]

    assert gate.rescan(participants) == 2
    assert engine.kicked() == ["kick Bob", "kick p3"]
