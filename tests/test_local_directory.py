import pytest

from event_authz.directory import LocalDirectory, Status
from event_authz.errors import StorageError

A = "a" * 64
B = "b" * 64
C = "c" * 64


def test_unknown_identity_is_none(local_dir):
    assert local_dir.get(A) is None
    assert local_dir.get("not-a-key") is None


@pytest.mark.parametrize("allow,deny", [
    ({A, B}, {C}),
    ({A, B}, {B, C}),
    ({A}, {A}),
    (set(), {A}),
])
def test_admit_then_deny_keeps_sets_disjoint(local_dir, allow, deny):
    local_dir.admit(allow)
    local_dir.deny(deny)
    snap = local_dir.snapshot()
    assert not snap.allow & snap.deny
    assert snap.allow >= allow - deny
    assert snap.deny >= deny


def test_admit_is_idempotent(local_dir):
    local_dir.admit([A])
    first = local_dir.snapshot()
    local_dir.admit([A])
    assert local_dir.snapshot() == first
    assert local_dir.get(A) == Status.ALLOW


def test_identities_are_case_folded(local_dir):
    local_dir.admit([A.upper()])
    assert local_dir.get(A) == Status.ALLOW
    assert local_dir.snapshot().allow == {A}


def test_surrounding_whitespace_is_not_normalized(local_dir):
    res = local_dir.admit([" " + A, B + "\n"])
    assert res.applied == set()
    assert local_dir.get(" " + A) is None
    assert local_dir.snapshot().allow == frozenset()


def test_malformed_entries_do_not_block_batch(local_dir):
    res = local_dir.admit([A, "short", "z" * 64, B, 42])
    assert res.applied == {A, B}
    assert res.rejected == ["short", "z" * 64, 42]
    assert local_dir.get(A) == Status.ALLOW
    assert local_dir.get(B) == Status.ALLOW


def test_unknown_status_byte_reads_as_deny(local_dir):
    with local_dir.db:
        local_dir.db.execute("INSERT INTO account(pubkey,status) VALUES(?,?)", (A, 7))
    assert local_dir.get(A) == Status.DENY
    assert A in local_dir.snapshot().deny


def test_state_survives_reopen(tmp_path):
    path = str(tmp_path / "nested" / "accounts.db")
    d = LocalDirectory(path)
    d.admit([A])
    d.deny([B])
    d.close()

    reopened = LocalDirectory(path)
    assert reopened.get(A) == Status.ALLOW
    assert reopened.get(B) == Status.DENY
    reopened.close()


def test_account_table_schema(local_dir):
    cur = local_dir.db.execute("PRAGMA table_info(account)")
    cols = {row[1] for row in cur.fetchall()}
    assert cols == {"pubkey", "status"}


def test_storage_failure_raises(tmp_path):
    d = LocalDirectory(str(tmp_path / "accounts.db"))
    d.close()
    with pytest.raises(StorageError):
        d.admit([A])
    with pytest.raises(StorageError):
        d.get(A)


def test_clear_and_readyz(local_dir):
    local_dir.admit([A])
    local_dir.clear()
    assert local_dir.get(A) is None
    assert local_dir.readyz()["status"] == "ok"
