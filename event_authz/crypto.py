from __future__ import annotations
from typing import Tuple, Optional, Dict, Any
from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
import os, json
from .constants import CRYPTO_INFO
from .utils import b64e, b64d

"""
event_authz.crypto
------------------
Cryptographic primitives for event_authz:

- Ed25519: event signatures (identity = raw 32 byte public key)
- X25519 + HKDF + AES-GCM: encryption of list documents; the service
  encrypts to its own key so relay operators only see ciphertext
"""


class DecryptionError(Exception):
    pass


# --------- Ed25519 (sign/verify) ----------
def ed25519_generate() -> Tuple[bytes, bytes]:
    sk = ed25519.Ed25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()


def ed25519_public(priv_raw: bytes) -> bytes:
    return ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw).public_key().public_bytes_raw()


def ed25519_sign(priv_raw: bytes, data: bytes) -> bytes:
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw)
    return sk.sign(data)


def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError):
        return False


# --------- X25519 + HKDF + AES-GCM (encrypt/decrypt) ----------
def x25519_from_seed(seed: bytes) -> Tuple[bytes, bytes]:
    # Any 32 bytes are a valid X25519 scalar; derive one from the signing seed
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=CRYPTO_INFO + b"/x25519")
    sk = x25519.X25519PrivateKey.from_private_bytes(hkdf.derive(seed))
    return sk.private_bytes_raw(), sk.public_key().public_bytes_raw()


def derive_key(sender_priv: bytes, recipient_pub: bytes, salt: Optional[bytes] = None, info: bytes = CRYPTO_INFO) -> bytes:
    sk = x25519.X25519PrivateKey.from_private_bytes(sender_priv)
    shared = sk.exchange(x25519.X25519PublicKey.from_public_bytes(recipient_pub))
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=salt, info=info)
    return hkdf.derive(shared)  # 256-bit AEAD key


def aead_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> Tuple[bytes, bytes]:
    aes = AESGCM(key)
    nonce = os.urandom(12)
    ct = aes.encrypt(nonce, plaintext, aad)
    return nonce, ct


def aead_decrypt(key: bytes, nonce: bytes, ciphertext: bytes, aad: Optional[bytes] = None) -> bytes:
    aes = AESGCM(key)
    return aes.decrypt(nonce, ciphertext, aad)


def _aad(aad_fields: Optional[Dict[str, Any]]) -> Optional[bytes]:
    if not aad_fields:
        return None
    return json.dumps(aad_fields, separators=(",", ":"), sort_keys=True).encode("utf-8")


def encrypt(sender_priv: bytes, peer_pub: bytes, plaintext: bytes, aad_fields: Optional[Dict[str, Any]] = None) -> str:
    """Encrypt to peer_pub; returns the compact JSON form stored as event content."""
    nonce, ct = aead_encrypt(derive_key(sender_priv, peer_pub), plaintext, aad=_aad(aad_fields))
    return json.dumps({"nonce": b64e(nonce), "ciphertext": b64e(ct)}, separators=(",", ":"))


def decrypt(recipient_priv: bytes, peer_pub: bytes, content: str, aad_fields: Optional[Dict[str, Any]] = None) -> bytes:
    try:
        enc = json.loads(content)
        nonce, ct = b64d(enc["nonce"]), b64d(enc["ciphertext"])
    except (ValueError, KeyError, TypeError) as e:
        raise DecryptionError(f"malformed ciphertext: {e}") from e
    try:
        return aead_decrypt(derive_key(recipient_priv, peer_pub), nonce, ct, aad=_aad(aad_fields))
    except InvalidTag as e:
        raise DecryptionError("authentication failed") from e


class Keypair:
    """Service identity: Ed25519 for signing, X25519 (derived) for self-encryption."""

    def __init__(self, seed: bytes):
        if len(seed) != 32:
            raise ValueError("private key must be 32 bytes")
        self.seed = seed
        self.public = ed25519_public(seed)
        self._x_priv, self._x_pub = x25519_from_seed(seed)

    @classmethod
    def from_hex(cls, private_key_hex: str) -> "Keypair":
        return cls(bytes.fromhex(private_key_hex.strip()))

    @classmethod
    def generate(cls) -> "Keypair":
        priv, _ = ed25519_generate()
        return cls(priv)

    @property
    def pubkey(self) -> str:
        return self.public.hex()

    def sign(self, data: bytes) -> bytes:
        return ed25519_sign(self.seed, data)

    def encrypt_to_self(self, plaintext: bytes, aad_fields: Optional[Dict[str, Any]] = None) -> str:
        return encrypt(self._x_priv, self._x_pub, plaintext, aad_fields)

    def decrypt_from_self(self, content: str, aad_fields: Optional[Dict[str, Any]] = None) -> bytes:
        return decrypt(self._x_priv, self._x_pub, content, aad_fields)
