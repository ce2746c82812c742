from event_authz.admin import AdminDirective, is_control_event, parse_directives
from event_authz.event import Event

K1, K2, K3 = "1" * 64, "2" * 64, "3" * 64
ADMIN = "f" * 64


def test_parse_allow_and_deny_in_order():
    tags = [["allow", K1, K2], ["p", K3], ["deny", K3], []]
    assert parse_directives(tags) == [
        AdminDirective("allow", (K1, K2)),
        AdminDirective("deny", (K3,)),
    ]


def test_empty_payload_yields_empty_directive():
    assert parse_directives([["allow"]]) == [AdminDirective("allow", ())]


def test_other_tags_ignored():
    assert parse_directives([["e", "x"], ["Allow", K1], ["t", "allow"]]) == []


def test_identities_passed_through_unvalidated():
    d = parse_directives([["deny", "garbage", ""]])
    assert d[0].identities == ("garbage", "")


def test_is_control_event():
    ev = Event(pubkey=ADMIN, kind=4242)
    assert is_control_event(ADMIN, ev, [ADMIN], 4242)
    assert not is_control_event(K1, ev, [ADMIN], 4242)
    assert not is_control_event(ADMIN, Event(pubkey=ADMIN, kind=1), [ADMIN], 4242)
