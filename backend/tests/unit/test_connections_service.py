import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from models.connections import (
    Connection,
    ConnectionStatus,
    Direction,
    Relationship,
    RespondAction,
)
from services import connections
from services.conflicts import PairConflict
from services.connections import (
    list_connections,
    relationship_for,
    remove,
    respond,
    send_request,
)
from services.errors import BadRequest, Forbidden, InternalError, InvalidState, NotFound


def all_connections(session: Session) -> list[Connection]:
    return list(session.exec(select(Connection)).all())


def test_request_creates_one_pending_row(test_session: Session, alice, bob):
    result = send_request(test_session, user_id=alice.id, target_id=bob.id)
    assert result.status == ConnectionStatus.pending

    rows = all_connections(test_session)
    assert len(rows) == 1
    assert rows[0].id == result.connection_id
    assert rows[0].initiator_id == alice.id
    assert rows[0].target_id == bob.id
    assert rows[0].pair_key == Connection.make_pair_key(bob.id, alice.id)


def test_repeated_request_returns_the_existing_row(test_session: Session, alice, bob):
    first = send_request(test_session, user_id=alice.id, target_id=bob.id)
    again = send_request(test_session, user_id=alice.id, target_id=bob.id)
    assert again.connection_id == first.connection_id
    assert again.status == ConnectionStatus.pending
    assert len(all_connections(test_session)) == 1


def test_crossed_requests_accept(test_session: Session, alice, bob):
    first = send_request(test_session, user_id=alice.id, target_id=bob.id)
    crossed = send_request(test_session, user_id=bob.id, target_id=alice.id)

    assert crossed.status == ConnectionStatus.accepted
    assert crossed.connection_id == first.connection_id
    rows = all_connections(test_session)
    assert len(rows) == 1
    assert rows[0].status == ConnectionStatus.accepted
    # the first requester stays the initiator
    assert rows[0].initiator_id == alice.id


def test_request_on_accepted_pair_is_a_noop(test_session: Session, alice, bob):
    send_request(test_session, user_id=alice.id, target_id=bob.id)
    send_request(test_session, user_id=bob.id, target_id=alice.id)

    result = send_request(test_session, user_id=alice.id, target_id=bob.id)
    assert result.status == ConnectionStatus.accepted
    assert len(all_connections(test_session)) == 1


def test_cannot_request_yourself(test_session: Session, alice):
    with pytest.raises(BadRequest):
        send_request(test_session, user_id=alice.id, target_id=alice.id)
    assert all_connections(test_session) == []


def test_decline_deletes_and_allows_a_fresh_request(test_session: Session, alice, bob):
    first = send_request(test_session, user_id=alice.id, target_id=bob.id)

    declined = respond(
        test_session,
        user_id=bob.id,
        connection_id=first.connection_id,
        action=RespondAction.decline,
    )
    assert declined.status == "declined"
    assert all_connections(test_session) == []

    again = send_request(test_session, user_id=alice.id, target_id=bob.id)
    assert again.status == ConnectionStatus.pending
    assert again.connection_id != first.connection_id


def test_initiator_can_withdraw_by_declining(test_session: Session, alice, bob):
    request = send_request(test_session, user_id=alice.id, target_id=bob.id)
    respond(
        test_session,
        user_id=alice.id,
        connection_id=request.connection_id,
        action=RespondAction.decline,
    )
    assert all_connections(test_session) == []


def test_blocked_pair_is_forbidden_both_ways_until_removed(
    test_session: Session, alice, bob
):
    request = send_request(test_session, user_id=alice.id, target_id=bob.id)
    blocked = respond(
        test_session,
        user_id=bob.id,
        connection_id=request.connection_id,
        action=RespondAction.block,
    )
    assert blocked.status == "blocked"

    with pytest.raises(Forbidden):
        send_request(test_session, user_id=alice.id, target_id=bob.id)
    with pytest.raises(Forbidden):
        send_request(test_session, user_id=bob.id, target_id=alice.id)

    assert remove(test_session, user_id=bob.id, target_id=alice.id).removed is True
    assert all_connections(test_session) == []

    result = send_request(test_session, user_id=bob.id, target_id=alice.id)
    assert result.status == ConnectionStatus.pending


def test_block_an_accepted_connection(test_session: Session, alice, bob):
    request = send_request(test_session, user_id=alice.id, target_id=bob.id)
    send_request(test_session, user_id=bob.id, target_id=alice.id)

    result = respond(
        test_session,
        user_id=alice.id,
        connection_id=request.connection_id,
        action=RespondAction.block,
    )
    assert result.status == "blocked"


def test_remove_is_idempotent(test_session: Session, alice, bob):
    assert remove(test_session, user_id=alice.id, target_id=bob.id).removed is False

    send_request(test_session, user_id=alice.id, target_id=bob.id)
    assert remove(test_session, user_id=alice.id, target_id=bob.id).removed is True
    assert remove(test_session, user_id=alice.id, target_id=bob.id).removed is False


class TestRespondErrors:
    def test_unknown_connection(self, test_session: Session, alice):
        with pytest.raises(NotFound):
            respond(
                test_session,
                user_id=alice.id,
                connection_id="missing",
                action=RespondAction.accept,
            )

    def test_outsider_cannot_respond(self, test_session: Session, alice, bob, carol):
        request = send_request(test_session, user_id=alice.id, target_id=bob.id)
        for action in RespondAction:
            with pytest.raises(Forbidden):
                respond(
                    test_session,
                    user_id=carol.id,
                    connection_id=request.connection_id,
                    action=action,
                )

    def test_initiator_cannot_accept(self, test_session: Session, alice, bob):
        request = send_request(test_session, user_id=alice.id, target_id=bob.id)
        with pytest.raises(InvalidState):
            respond(
                test_session,
                user_id=alice.id,
                connection_id=request.connection_id,
                action=RespondAction.accept,
            )
        assert all_connections(test_session)[0].status == ConnectionStatus.pending

    def test_accepted_cannot_be_declined_or_accepted_again(
        self, test_session: Session, alice, bob
    ):
        request = send_request(test_session, user_id=alice.id, target_id=bob.id)
        respond(
            test_session,
            user_id=bob.id,
            connection_id=request.connection_id,
            action=RespondAction.accept,
        )
        with pytest.raises(InvalidState):
            respond(
                test_session,
                user_id=bob.id,
                connection_id=request.connection_id,
                action=RespondAction.accept,
            )
        with pytest.raises(InvalidState):
            respond(
                test_session,
                user_id=bob.id,
                connection_id=request.connection_id,
                action=RespondAction.decline,
            )

    def test_invalid_state_is_a_value_error(self, test_session: Session, alice, bob):
        request = send_request(test_session, user_id=alice.id, target_id=bob.id)
        with pytest.raises(ValueError):
            respond(
                test_session,
                user_id=alice.id,
                connection_id=request.connection_id,
                action=RespondAction.accept,
            )


def test_request_accept_and_list_from_both_sides(test_session: Session, alice, bob):
    request = send_request(test_session, user_id=alice.id, target_id=bob.id)
    assert request.status == ConnectionStatus.pending

    incoming = list_connections(test_session, user_id=bob.id)
    assert len(incoming) == 1
    assert incoming[0].direction == Direction.incoming
    assert incoming[0].relationship == Relationship.incoming
    assert incoming[0].other_user_id == alice.id
    assert incoming[0].other_user.name == "Alice Smith"

    accepted = respond(
        test_session,
        user_id=bob.id,
        connection_id=request.connection_id,
        action=RespondAction.accept,
    )
    assert accepted.status == "accepted"

    outgoing = list_connections(test_session, user_id=alice.id)
    assert len(outgoing) == 1
    assert outgoing[0].direction == Direction.outgoing
    assert outgoing[0].status == ConnectionStatus.accepted
    assert outgoing[0].other_user.avatar == "https://cdn/bob.png"


def test_list_filters_by_status(test_session: Session, alice, bob, carol):
    send_request(test_session, user_id=alice.id, target_id=bob.id)
    send_request(test_session, user_id=carol.id, target_id=alice.id)
    send_request(test_session, user_id=alice.id, target_id=carol.id)

    accepted = list_connections(
        test_session, user_id=alice.id, status=ConnectionStatus.accepted
    )
    assert [c.other_user_id for c in accepted] == [carol.id]

    pending = list_connections(
        test_session, user_id=alice.id, status=ConnectionStatus.pending
    )
    assert [c.other_user_id for c in pending] == [bob.id]
    assert pending[0].relationship == Relationship.pending


def test_list_without_profile_has_no_other_user(test_session: Session, alice):
    send_request(test_session, user_id=alice.id, target_id="ghost-user")
    (view,) = list_connections(test_session, user_id=alice.id)
    assert view.other_user_id == "ghost-user"
    assert view.other_user is None


def test_relationship_for_rows():
    assert relationship_for("a", None) == Relationship.none
    row = Connection(initiator_id="a", target_id="b", pair_key="a:b")
    assert relationship_for("a", row) == Relationship.pending
    assert relationship_for("b", row) == Relationship.incoming
    row.status = ConnectionStatus.blocked
    assert relationship_for("b", row) == Relationship.blocked


class TestLostRace:
    """Another request commits the pair between our check and our insert"""

    def test_second_run_sees_the_concurrent_row(
        self, test_session: Session, alice, bob, monkeypatch
    ):
        alice_id, bob_id = alice.id, bob.id
        # bob's request is already stored, but our first lookup missed it
        winner = Connection(
            initiator_id=bob_id,
            target_id=alice_id,
            pair_key=Connection.make_pair_key(alice_id, bob_id),
        )
        test_session.add(winner)
        test_session.commit()
        winner_id = winner.id

        real_find_between = connections.find_between
        calls = []

        def stale_then_real(session, a, b):
            calls.append((a, b))
            if len(calls) == 1:
                return None
            return real_find_between(session, a, b)

        monkeypatch.setattr(connections, "find_between", stale_then_real)

        result = send_request(test_session, user_id=alice_id, target_id=bob_id)
        assert len(calls) == 2
        assert result.connection_id == winner_id
        assert result.status == ConnectionStatus.accepted
        assert len(all_connections(test_session)) == 1

    def test_conflict_twice_gives_up(self, test_session: Session, alice, bob, monkeypatch):
        alice_id, bob_id = alice.id, bob.id
        test_session.add(
            Connection(
                initiator_id=bob_id,
                target_id=alice_id,
                pair_key=Connection.make_pair_key(alice_id, bob_id),
            )
        )
        test_session.commit()
        monkeypatch.setattr(connections, "find_between", lambda *args: None)

        with pytest.raises(PairConflict) as exc:
            send_request(test_session, user_id=alice_id, target_id=bob_id)
        assert exc.value.status_code == 500
        assert len(all_connections(test_session)) == 1


def test_store_failure_becomes_internal_error(test_session: Session, alice, monkeypatch):
    user_id = alice.id

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(test_session, "exec", broken)
    with pytest.raises(InternalError) as exc:
        list_connections(test_session, user_id=user_id)
    assert exc.value.code == "INTERNAL_SERVER_ERROR"
    assert "disk" not in exc.value.message
