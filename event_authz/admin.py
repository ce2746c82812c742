# event_authz/admin.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from event_authz.constants import LABEL_ALLOW, LABEL_DENY
from event_authz.event import Event


@dataclass(frozen=True)
class AdminDirective:
    """One ["allow", ...] or ["deny", ...] tag of a control event."""
    action: str
    identities: Tuple[str, ...] = ()


def is_control_event(author: str, event: Event, admin_keys: Iterable[str], control_kind: int) -> bool:
    return author in set(admin_keys) and event.kind == control_kind


def parse_directives(tags: Sequence[Sequence[str]]) -> List[AdminDirective]:
    """
    Directives in tag order. Identities are passed through unvalidated;
    the directory rejects malformed ones per item. An entry with no values
    after the action is an empty directive and applies as a no-op.
    """
    directives = []
    for tag in tags:
        if not tag:
            continue
        action = tag[0]
        if action in (LABEL_ALLOW, LABEL_DENY):
            directives.append(AdminDirective(action, tuple(tag[1:])))
    return directives
