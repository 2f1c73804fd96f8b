"""
Tests for the access gate.
"""
import pytest

from smartcare.auth.schemas import SessionStatus
from smartcare.core.access_gate import GateDecision, ViewKind, evaluate_access, redirect_target, watch_access


@pytest.mark.parametrize(
    "status, view, expected",
    [
        (SessionStatus.LOADING, ViewKind.PUBLIC, GateDecision.PLACEHOLDER),
        (SessionStatus.LOADING, ViewKind.PROTECTED, GateDecision.PLACEHOLDER),
        (SessionStatus.UNAUTHENTICATED, ViewKind.PUBLIC, GateDecision.ALLOW),
        (SessionStatus.UNAUTHENTICATED, ViewKind.PROTECTED, GateDecision.DENY),
        (SessionStatus.AUTHENTICATED_NO_PROFILE, ViewKind.PUBLIC, GateDecision.DENY),
        (SessionStatus.AUTHENTICATED_NO_PROFILE, ViewKind.PROTECTED, GateDecision.ALLOW),
        (SessionStatus.AUTHENTICATED, ViewKind.PUBLIC, GateDecision.DENY),
        (SessionStatus.AUTHENTICATED, ViewKind.PROTECTED, GateDecision.ALLOW),
    ],
)
def test_evaluate_access(status, view, expected):
    assert evaluate_access(status, view) == expected


def test_every_status_has_a_rule_for_every_view():
    for status in SessionStatus:
        for view in ViewKind:
            assert isinstance(evaluate_access(status, view), GateDecision)


def test_redirect_targets():
    assert redirect_target(ViewKind.PROTECTED) == "/login"
    assert redirect_target(ViewKind.PUBLIC) == "/"


@pytest.mark.asyncio
async def test_watch_access_follows_session_changes(manager, identity_client):
    identity_client.register("a@b.com", "secret1")
    decisions = []
    unsubscribe = watch_access(manager, ViewKind.PROTECTED, decisions.append)

    await manager.start()
    await manager.sign_in("a@b.com", "secret1")
    await manager.sign_out()
    unsubscribe()
    identity_client.emit(identity_client.accounts["a@b.com"][1])
    await manager.drain()

    assert decisions == [
        GateDecision.PLACEHOLDER,
        GateDecision.DENY,
        GateDecision.PLACEHOLDER,
        GateDecision.ALLOW,
        GateDecision.PLACEHOLDER,
        GateDecision.DENY,
    ]
