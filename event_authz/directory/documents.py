"""
event_authz.directory.documents
-------------------------------
Allow/deny list documents as they live on the relay network.

A list document is an Event of LIST_DOCUMENT_KIND signed by the service:

    tags    ["d", label], ["p", <service>], [label, <id>, <id>, ...]
    content encrypt_to_self(json array of the whole set), label bound as AAD

The [label, ...] tag repeats the identities touched by the update in
plaintext, in the same shape administrators use in control events.
"""

from __future__ import annotations
import json
from typing import Iterable, List, Optional, Set

from event_authz.constants import LABELS, LIST_DOCUMENT_KIND
from event_authz.crypto import DecryptionError, Keypair
from event_authz.event import Event
from event_authz.directory.models import partition_identities
from event_authz.logger import get_logger

log = get_logger("event_authz.directory.documents")


def _check_label(label: str) -> None:
    if label not in LABELS:
        raise ValueError(f"unknown list label: {label}")


def own_filter(label: str, service: str) -> dict:
    """Documents authored by the service."""
    return {"authors": [service], "kinds": [LIST_DOCUMENT_KIND], "#d": [label]}


def addressed_filter(label: str, service: str) -> dict:
    """Documents addressed to the service."""
    return {"kinds": [LIST_DOCUMENT_KIND], "#p": [service], "#d": [label]}


def build_document(keys: Keypair, label: str, members: Iterable[str],
                   involved: Iterable[str] = (), created_at: Optional[int] = None) -> Event:
    _check_label(label)
    body = json.dumps(sorted(members)).encode("utf-8")
    tags = [["d", label], ["p", keys.pubkey], [label, *sorted(involved)]]
    content = keys.encrypt_to_self(body, aad_fields={"label": label})
    return Event.make(keys, LIST_DOCUMENT_KIND, tags, content, created_at=created_at)


def select_latest(candidates: Iterable[Event]) -> Optional[Event]:
    """Newest document wins; equal timestamps fall back to the greater id."""
    best = None
    for ev in candidates:
        if best is None or (ev.created_at, ev.id) > (best.created_at, best.id):
            best = ev
    return best


def read_document(keys: Keypair, label: str, doc: Event) -> Set[str]:
    """Members carried by a document: decrypted content plus plaintext label tags."""
    _check_label(label)
    raw: List = []
    if doc.content:
        try:
            entries = json.loads(keys.decrypt_from_self(doc.content, aad_fields={"label": label}))
            if isinstance(entries, list):
                raw.extend(entries)
            else:
                log.warning(f"{label} document {doc.id} content is not a list")
        except (DecryptionError, ValueError) as e:
            log.warning(f"cannot decrypt {label} document {doc.id}: {e}")

    for tag in doc.tags:
        if tag and tag[0] == label:
            raw.extend(tag[1:])

    valid, rejected = partition_identities(raw)
    if rejected:
        log.warning(f"{label} document {doc.id} had {len(rejected)} malformed entr(ies)")
    return set(valid)
