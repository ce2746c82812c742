import json
import pytest

from event_authz.crypto import (
    DecryptionError, Keypair, derive_key, x25519_from_seed, ed25519_generate,
)
from event_authz.event import Event


def test_sign_verify(keys):
    ev = Event.make(keys, 1, [["t", "x"]], "hello")
    assert ev.pubkey == keys.pubkey
    assert len(ev.id) == 64
    assert ev.verify()


def test_tampered_event_fails_verification(keys):
    ev = Event.make(keys, 1, [], "hello")
    ev.content = "changed"
    assert not ev.verify()

    ev2 = Event.make(keys, 1, [], "hello")
    ev2.sig = "00" * 64
    assert not ev2.verify()


def test_event_id_is_deterministic(keys):
    a = Event(pubkey=keys.pubkey, kind=4242, tags=[["allow", "ab"]], content="é", created_at=10)
    b = Event.from_dict(json.loads(json.dumps(a.to_dict())))
    assert a.compute_id() == b.compute_id()


def test_derive_key_is_symmetric():
    s_priv, s_pub = x25519_from_seed(ed25519_generate()[0])
    r_priv, r_pub = x25519_from_seed(ed25519_generate()[0])
    assert derive_key(s_priv, r_pub) == derive_key(r_priv, s_pub)


def test_self_encrypt_decrypt(keys):
    content = keys.encrypt_to_self(b'["a","b"]', aad_fields={"label": "allow"})
    assert "ciphertext" in json.loads(content)
    assert keys.decrypt_from_self(content, aad_fields={"label": "allow"}) == b'["a","b"]'


def test_decrypt_rejects_wrong_label_and_wrong_key(keys):
    content = keys.encrypt_to_self(b"[]", aad_fields={"label": "allow"})
    with pytest.raises(DecryptionError):
        keys.decrypt_from_self(content, aad_fields={"label": "deny"})
    with pytest.raises(DecryptionError):
        Keypair.generate().decrypt_from_self(content, aad_fields={"label": "allow"})
    with pytest.raises(DecryptionError):
        keys.decrypt_from_self("not json")


def test_keypair_from_hex_roundtrip(keys):
    again = Keypair.from_hex(keys.seed.hex())
    assert again.pubkey == keys.pubkey
