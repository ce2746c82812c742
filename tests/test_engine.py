import threading

import pytest

from event_authz.directory import GuardedDirectory, LocalDirectory, ReplicatedDirectory, Status
from event_authz.engine import Decision, DecisionEngine, EventRequest
from event_authz.errors import DecisionError
from event_authz.event import Event
from event_authz.transport import LocalRelay, RelayTransientError

ADMIN = "f" * 64
A = "a" * 64
B = "b" * 64
C = "c" * 64


def control_event(tags, author=ADMIN, kind=4242):
    return EventRequest(event=Event(pubkey=author, kind=kind, tags=tags))


def plain(author, **kw):
    return EventRequest(event=Event(pubkey=author, kind=1, content="hi"), **kw)


@pytest.fixture
def engine(guarded):
    return DecisionEngine(guarded, admin_keys=[ADMIN])


def test_admin_control_event_then_allowed_author(engine):
    reply = engine.event_admit(control_event([["allow", A]]))
    assert reply.decision == Decision.PERMIT
    assert reply.message == "Ok"

    reply = engine.event_admit(plain(A))
    assert reply.decision == Decision.PERMIT
    assert reply.message == "Ok"

    reply = engine.event_admit(plain(B))
    assert reply.decision == Decision.DENY
    assert reply.message == "Not allowed to publish"


def test_unknown_author_is_denied(engine, guarded):
    assert guarded.get(C) is None
    assert not engine.event_admit(plain(C)).permitted


def test_control_directives_applied(engine, guarded):
    engine.event_admit(control_event([["allow", A, B], ["deny", C]]))
    snap = guarded.snapshot()
    assert {A, B} <= snap.allow
    assert C in snap.deny
    assert C not in snap.allow
    assert not {A, B} & snap.deny


def test_later_directive_wins_within_one_event(engine, guarded):
    engine.event_admit(control_event([["allow", A], ["deny", A]]))
    assert guarded.get(A) == Status.DENY


def test_admin_is_permitted_even_when_denied(engine, guarded):
    guarded.deny([ADMIN])
    assert engine.event_admit(control_event([["deny", ADMIN]])).permitted
    # ordinary traffic from the admin goes through the directory
    assert not engine.event_admit(plain(ADMIN)).permitted


def test_non_admin_control_kind_is_ordinary_traffic(engine, guarded):
    reply = engine.event_admit(control_event([["allow", B]], author=B))
    assert reply.decision == Decision.DENY
    assert guarded.get(B) is None


def test_auth_pubkey_overrides_event_author(engine, guarded):
    guarded.admit([A])
    assert engine.event_admit(plain(B, auth_pubkey=A)).permitted
    assert not engine.event_admit(plain(A, auth_pubkey=B)).permitted


def test_auth_pubkey_admin_runs_control_path(engine, guarded):
    req = control_event([["allow", C]], author=B)
    req.auth_pubkey = ADMIN
    assert engine.event_admit(req).permitted
    assert guarded.get(C) == Status.ALLOW


def test_malformed_author_is_denied(engine):
    assert not engine.event_admit(plain("xyz")).permitted


def test_implicit_allow_only_for_unknown(guarded):
    engine = DecisionEngine(guarded, admin_keys=[ADMIN], implicit_allow=True)
    guarded.deny([B])
    assert engine.event_admit(plain(A)).permitted
    assert not engine.event_admit(plain(B)).permitted


def test_storage_failure_is_not_a_verdict(tmp_path):
    backend = LocalDirectory(str(tmp_path / "accounts.db"))
    engine = DecisionEngine(GuardedDirectory(backend), admin_keys=[ADMIN])
    backend.close()
    with pytest.raises(DecisionError):
        engine.event_admit(plain(A))
    with pytest.raises(DecisionError):
        engine.event_admit(control_event([["allow", A]]))


def test_publish_failure_surfaces_from_control_event(keys):
    class DownRelay(LocalRelay):
        def publish(self, event, timeout=None):
            raise RelayTransientError("down")

    backend = ReplicatedDirectory(keys, DownRelay())
    backend.restore()
    engine = DecisionEngine(GuardedDirectory(backend), admin_keys=[ADMIN])
    with pytest.raises(DecisionError):
        engine.event_admit(control_event([["allow", A]]))


def test_end_to_end_over_replicated_directory(keys, relay):
    backend = ReplicatedDirectory(keys, relay, admin_keys=[ADMIN])
    backend.restore()
    engine = DecisionEngine(GuardedDirectory(backend), admin_keys=[ADMIN])
    engine.event_admit(control_event([["allow", A]]))
    assert engine.event_admit(plain(A)).permitted

    fresh = ReplicatedDirectory(keys, relay, admin_keys=[ADMIN])
    fresh.restore()
    assert DecisionEngine(GuardedDirectory(fresh)).event_admit(plain(A)).permitted


def test_empty_directive_is_noop(engine, guarded):
    assert engine.event_admit(control_event([["allow"], ["deny"]])).permitted
    assert guarded.snapshot().allow == frozenset()


class GatedRelay(LocalRelay):
    """Holds every publish until the gate opens."""

    def __init__(self):
        super().__init__()
        self.publishing = threading.Event()
        self.gate = threading.Event()

    def publish(self, event, timeout=None):
        self.publishing.set()
        self.gate.wait(5)
        return super().publish(event, timeout)


def test_readers_wait_for_the_whole_control_batch(keys):
    relay = GatedRelay()
    backend = ReplicatedDirectory(keys, relay, admin_keys=[ADMIN])
    backend.restore()
    guarded = GuardedDirectory(backend)
    engine = DecisionEngine(guarded, admin_keys=[ADMIN])

    writer = threading.Thread(
        target=engine.event_admit,
        args=(control_event([["allow", A, B], ["deny", C]]),),
    )
    writer.start()
    assert relay.publishing.wait(5)

    seen = {}

    def read():
        seen["snapshot"] = guarded.snapshot()
        seen["a_permitted"] = engine.event_admit(plain(A)).permitted
        seen["c_status"] = guarded.get(C)

    reader = threading.Thread(target=read)
    reader.start()
    try:
        # the first directive is mid-publish: readers must not get in
        reader.join(0.3)
        assert reader.is_alive()
        assert "snapshot" not in seen
    finally:
        relay.gate.set()
        writer.join(5)
        reader.join(5)

    assert seen["snapshot"].allow == {A, B}
    assert seen["snapshot"].deny == {C}
    assert seen["a_permitted"] is True
    assert seen["c_status"] == Status.DENY


def test_account_record_reflects_status(guarded):
    guarded.admit([A])
    guarded.deny([B])
    assert guarded.account(A.upper()).pubkey == A
    assert guarded.account(A).is_admitted()
    assert not guarded.account(B).is_admitted()
    assert guarded.account(C) is None
    assert guarded.account("nope") is None
