from __future__ import annotations
from typing import Dict, Iterable, Optional, Set

from event_authz.constants import (
    DEFAULT_PUBLISH_TIMEOUT, DEFAULT_RESTORE_TIMEOUT, LABEL_ALLOW, LABEL_DENY, LABELS,
)
from event_authz.crypto import Keypair
from event_authz.directory.documents import (
    addressed_filter, build_document, own_filter, read_document, select_latest,
)
from event_authz.directory.models import (
    BatchResult, Snapshot, Status, parse_identity, partition_identities,
)
from event_authz.errors import InvalidIdentity, PublishError
from event_authz.event import Event
from event_authz.logger import get_logger
from event_authz.transport.transport_base import BaseRelay, RelayError
from event_authz.utils import unix_time

log = get_logger("event_authz.directory.relay")


class ReplicatedDirectory:
    """
    Account directory replicated as encrypted list documents on the relays.

    The in-memory allow/deny sets are the cache and are rebuilt by restore().
    Writes mutate memory first, then publish; a failed publish raises
    PublishError but leaves memory as mutated. Two processes writing the
    same lists race: the newest document wins at the next restore.
    """

    name = "relay"

    def __init__(self, keys: Keypair, relay: BaseRelay, admin_keys: Iterable[str] = (),
                 restore_timeout: float = DEFAULT_RESTORE_TIMEOUT,
                 publish_timeout: float = DEFAULT_PUBLISH_TIMEOUT):
        self.keys = keys
        self.relay = relay
        self.trusted_authors = {keys.pubkey} | {k.lower() for k in admin_keys}
        self.restore_timeout = restore_timeout
        self.publish_timeout = publish_timeout
        self.allow_set: Set[str] = set()
        self.deny_set: Set[str] = set()
        self._last_published: Dict[str, int] = {label: 0 for label in LABELS}

    # ------------------------------------------------------------------
    # Startup restore
    # ------------------------------------------------------------------
    def restore(self) -> None:
        service = self.keys.pubkey
        allow_doc = self._latest(LABEL_ALLOW, own_filter(LABEL_ALLOW, service))
        deny_doc = self._latest(LABEL_DENY, addressed_filter(LABEL_DENY, service))

        allow = read_document(self.keys, LABEL_ALLOW, allow_doc) if allow_doc else set()
        deny = read_document(self.keys, LABEL_DENY, deny_doc) if deny_doc else set()

        overlap = allow & deny
        if overlap:
            allow_ts = allow_doc.created_at if allow_doc else -1
            deny_ts = deny_doc.created_at if deny_doc else -1
            if allow_ts > deny_ts:
                deny -= overlap
            else:
                allow -= overlap
            log.warning(f"restored lists overlapped on {len(overlap)} identit(ies); newer list kept them")

        self.allow_set, self.deny_set = allow, deny
        for label, doc in ((LABEL_ALLOW, allow_doc), (LABEL_DENY, deny_doc)):
            if doc is not None and doc.pubkey == service:
                self._last_published[label] = doc.created_at
        log.info(f"restored {len(self.allow_set)} allowed, {len(self.deny_set)} denied")

    def _latest(self, label: str, flt: dict) -> Optional[Event]:
        try:
            candidates = self.relay.query(flt, timeout=self.restore_timeout)
        except RelayError as e:
            log.error(f"{label} list query failed, starting empty: {e}")
            return None

        usable = []
        for ev in candidates:
            if not ev.matches(flt):
                continue
            if ev.pubkey not in self.trusted_authors:
                log.warning(f"ignoring {label} document {ev.id} from untrusted author {ev.pubkey}")
                continue
            if not ev.verify():
                log.warning(f"ignoring {label} document {ev.id} with bad signature")
                continue
            usable.append(ev)

        doc = select_latest(usable)
        if doc is None:
            log.info(f"no {label} document found")
        return doc

    # ------------------------------------------------------------------
    # AccountDirectory
    # ------------------------------------------------------------------
    def get(self, identity) -> Optional[Status]:
        try:
            pubkey = parse_identity(identity)
        except InvalidIdentity:
            return None
        if pubkey in self.allow_set:
            return Status.ALLOW
        if pubkey in self.deny_set:
            return Status.DENY
        return None

    def admit(self, identities: Iterable) -> BatchResult:
        return self._move(identities, LABEL_ALLOW)

    def deny(self, identities: Iterable) -> BatchResult:
        return self._move(identities, LABEL_DENY)

    def _move(self, identities: Iterable, label: str) -> BatchResult:
        valid, rejected = partition_identities(identities)
        for raw in rejected:
            log.warning(f"skipping malformed identity {raw!r}")
        if not valid:
            return BatchResult(rejected=rejected)

        target, other = (self.allow_set, self.deny_set) if label == LABEL_ALLOW else (self.deny_set, self.allow_set)
        other_label = LABEL_DENY if label == LABEL_ALLOW else LABEL_ALLOW
        batch = set(valid)
        removed = other & batch
        # disjointness holds before anything is published
        target |= batch
        other -= batch

        self._publish(label, target, involved=batch)
        if removed:
            self._publish(other_label, other, involved=())
        return BatchResult(applied=batch, rejected=rejected)

    def _publish(self, label: str, members: Set[str], involved: Iterable[str]) -> Event:
        created_at = max(unix_time(), self._last_published[label] + 1)
        doc = build_document(self.keys, label, members, involved, created_at=created_at)
        try:
            self.relay.publish(doc, timeout=self.publish_timeout)
        except RelayError as e:
            raise PublishError(f"publishing {label} list failed: {e}") from e
        self._last_published[label] = created_at
        log.info(f"published {label} list ({len(members)} member(s)) as {doc.id}")
        return doc

    def snapshot(self) -> Snapshot:
        return Snapshot(allow=frozenset(self.allow_set), deny=frozenset(self.deny_set))

    def readyz(self) -> dict:
        return {
            "status": "ok",
            "backend": self.name,
            "allow": len(self.allow_set),
            "deny": len(self.deny_set),
        }

    def close(self) -> None:
        self.relay.close()
