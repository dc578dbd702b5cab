import logging
from typing import Iterable

from sqlalchemy import and_, or_
from sqlmodel import Session, select

from models.connections import (
    Connection,
    ConnectionStatus,
    Relationship,
    RespondAction,
)
from models.types import utcnow
from models.views import (
    ConnectionView,
    RemoveResult,
    RequestResult,
    RespondResult,
    connection_view,
)
from services.conflicts import conflict_retry, insert_unique
from services.directory import profile_cards
from services.errors import BadRequest, Forbidden, InvalidState, NotFound, store_errors

logger = logging.getLogger("tapin.connections")


def find_between(session: Session, a: str, b: str) -> Connection | None:
    """The row for the pair, whoever initiated it"""
    return session.exec(
        select(Connection).where(
            or_(
                and_(Connection.initiator_id == a, Connection.target_id == b),
                and_(Connection.initiator_id == b, Connection.target_id == a),
            )
        )
    ).first()


def relationship_for(viewer_id: str, connection: Connection | None) -> Relationship:
    if connection is None:
        return Relationship.none
    match connection.status:
        case ConnectionStatus.blocked:
            return Relationship.blocked
        case ConnectionStatus.accepted:
            return Relationship.accepted
        case _:
            if connection.initiator_id == viewer_id:
                return Relationship.pending
            return Relationship.incoming


def relationships_for_candidates(
    session: Session, *, viewer_id: str, candidate_ids: Iterable[str]
) -> dict[str, tuple[Relationship, str]]:
    """Relationship and connection id for each candidate that has a row.

    Two queries whatever the number of candidates: the rows the viewer
    initiated and the rows the candidates initiated.
    """
    ids = list(set(candidate_ids))
    if not ids:
        return {}
    outgoing = session.exec(
        select(Connection).where(
            Connection.initiator_id == viewer_id, Connection.target_id.in_(ids)
        )
    ).all()
    incoming = session.exec(
        select(Connection).where(
            Connection.target_id == viewer_id, Connection.initiator_id.in_(ids)
        )
    ).all()

    result = {}
    for connection in [*outgoing, *incoming]:
        result[connection.other_party(viewer_id)] = (
            relationship_for(viewer_id, connection),
            connection.id,
        )
    return result


@store_errors
@conflict_retry()
def send_request(session: Session, *, user_id: str, target_id: str) -> RequestResult:
    if user_id == target_id:
        raise BadRequest("Cannot connect with yourself")

    existing = find_between(session, user_id, target_id)
    if existing:
        match existing.status:
            case ConnectionStatus.blocked:
                raise Forbidden("User is blocked")
            case ConnectionStatus.accepted:
                return RequestResult(status=existing.status, connection_id=existing.id)
            case ConnectionStatus.pending if existing.initiator_id == target_id:
                # Both sides asked: the second request accepts the first
                logger.debug(f"Crossed requests on {existing.id}, accepting")
                existing.status = ConnectionStatus.accepted
                existing.updated_at = utcnow()
                session.add(existing)
                session.commit()
                return RequestResult(status=existing.status, connection_id=existing.id)
            case _:
                return RequestResult(status=existing.status, connection_id=existing.id)

    connection = Connection(
        initiator_id=user_id,
        target_id=target_id,
        pair_key=Connection.make_pair_key(user_id, target_id),
        status=ConnectionStatus.pending,
    )
    insert_unique(session, connection)
    logger.debug(f"Connection request {connection.id} from {user_id} to {target_id}")
    return RequestResult(status=connection.status, connection_id=connection.id)


@store_errors
def respond(
    session: Session, *, user_id: str, connection_id: str, action: RespondAction
) -> RespondResult:
    connection = session.get(Connection, connection_id)
    if not connection:
        raise NotFound("Connection not found")
    if not connection.involves(user_id):
        raise Forbidden("Not authorized")

    match action:
        case RespondAction.accept:
            if (
                connection.status != ConnectionStatus.pending
                or connection.target_id != user_id
            ):
                raise InvalidState("Cannot accept this request")
            connection.status = ConnectionStatus.accepted
        case RespondAction.decline:
            if connection.status != ConnectionStatus.pending:
                raise InvalidState("Only pending requests can be declined")
            # Declined requests leave no trace, the pair goes back to none
            session.delete(connection)
            session.commit()
            logger.debug(f"Connection {connection_id} declined by {user_id}")
            return RespondResult(status="declined")
        case RespondAction.block:
            connection.status = ConnectionStatus.blocked

    connection.updated_at = utcnow()
    session.add(connection)
    session.commit()
    logger.debug(f"Connection {connection_id} is now {connection.status.value}")
    return RespondResult(status=connection.status.value)


@store_errors
def remove(session: Session, *, user_id: str, target_id: str) -> RemoveResult:
    connection = find_between(session, user_id, target_id)
    if not connection:
        return RemoveResult(removed=False)
    session.delete(connection)
    session.commit()
    logger.debug(f"Connection between {user_id} and {target_id} removed")
    return RemoveResult(removed=True)


@store_errors
def list_connections(
    session: Session, *, user_id: str, status: ConnectionStatus | None = None
) -> list[ConnectionView]:
    query = (
        select(Connection)
        .where(or_(Connection.initiator_id == user_id, Connection.target_id == user_id))
        .order_by(Connection.updated_at.desc())
    )
    if status:
        query = query.where(Connection.status == status)
    connections = session.exec(query).all()

    cards = profile_cards(session, (c.other_party(user_id) for c in connections))
    return [
        connection_view(
            user_id,
            connection,
            relationship_for(user_id, connection),
            cards.get(connection.other_party(user_id)),
        )
        for connection in connections
    ]
