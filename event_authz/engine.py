"""
event_authz.engine
------------------
DecisionEngine: classifies one candidate event per request.

    Received   → effective author = authenticated pubkey, else event.pubkey
    Classified → administrator control event: apply directives, always permit
                 anything else: look the author up in the directory
    Decided    → Permit "Ok" | Deny "Not allowed to publish"

Directory failures raise DecisionError. They are never turned into a verdict.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from event_authz.admin import is_control_event, parse_directives
from event_authz.constants import CONTROL_KIND, MSG_NOT_ALLOWED, MSG_OK
from event_authz.directory.guarded import GuardedDirectory
from event_authz.directory.models import parse_identity
from event_authz.errors import DecisionError, DirectoryError, InvalidIdentity
from event_authz.event import Event
from event_authz.logger import get_logger

log = get_logger("event_authz.engine")


class Decision(str, Enum):
    PERMIT = "permit"
    DENY = "deny"


@dataclass
class Nip05:
    pubkey: str = ""
    domain: str = ""


@dataclass
class EventRequest:
    event: Event
    auth_pubkey: Optional[str] = None
    origin: Optional[str] = None
    user_agent: Optional[str] = None
    nip05: Optional[Nip05] = None


@dataclass
class EventReply:
    decision: Decision
    message: str

    @property
    def permitted(self) -> bool:
        return self.decision == Decision.PERMIT

    def to_dict(self):
        return {"decision": self.decision.value, "message": self.message}


PERMIT = EventReply(Decision.PERMIT, MSG_OK)
DENY = EventReply(Decision.DENY, MSG_NOT_ALLOWED)


class DecisionEngine:
    def __init__(self, directory: GuardedDirectory, admin_keys: Iterable[str] = (),
                 control_kind: int = CONTROL_KIND, implicit_allow: bool = False):
        self.directory = directory
        self.admin_keys = frozenset(k.strip().lower() for k in admin_keys)
        self.control_kind = control_kind
        self.implicit_allow = implicit_allow

    @classmethod
    def from_settings(cls, settings, directory: GuardedDirectory) -> "DecisionEngine":
        return cls(directory, settings.admin_keys, settings.control_kind, settings.implicit_allow)

    def event_admit(self, request: EventRequest) -> EventReply:
        event = request.event
        log.info(
            f"recvd event, [kind={event.kind}, origin={request.origin}, "
            f"nip05_domain={request.nip05.domain if request.nip05 else None}, "
            f"tag_count={len(event.tags)}, content_sample={event.content[:40]!r}]"
        )

        raw_author = request.auth_pubkey or event.pubkey
        try:
            author = parse_identity(raw_author)
        except InvalidIdentity as e:
            log.info(f"deny: {e}")
            return DENY

        if is_control_event(author, event, self.admin_keys, self.control_kind):
            self._apply_control(author, event)
            return PERMIT

        try:
            account = self.directory.account(author)
        except DirectoryError as e:
            log.error(f"lookup failed for {author}: {e}")
            raise DecisionError(f"directory lookup failed: {e}") from e

        if account is not None and account.is_admitted():
            return PERMIT
        if account is None and self.implicit_allow:
            return PERMIT
        return DENY

    def _apply_control(self, author: str, event: Event) -> None:
        directives = parse_directives(event.tags)
        try:
            result = self.directory.apply(directives)
        except DirectoryError as e:
            log.error(f"control event {event.id or '?'} from {author} failed: {e}")
            raise DecisionError(f"applying control event failed: {e}") from e
        log.info(
            f"control event from {author}: {len(directives)} directive(s), "
            f"{len(result.applied)} applied, {len(result.rejected)} rejected"
        )
