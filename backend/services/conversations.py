import logging
from collections import defaultdict

from sqlalchemy import or_
from sqlmodel import Session, select, update

from models.messaging import MESSAGE_MAX_LENGTH, Conversation, Message, participant_key
from models.types import to_utc, utcnow
from models.views import (
    ConversationSummary,
    ConversationView,
    DeletedMessage,
    MessagePage,
    MessageView,
    SentMessage,
    SuccessResult,
)
from services.conflicts import conflict_retry, insert_unique
from services.directory import profile_cards
from services.errors import BadRequest, Forbidden, NotFound, store_errors

logger = logging.getLogger("tapin.conversations")

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 200


def find_conversation(session: Session, a: str, b: str) -> Conversation | None:
    return session.exec(
        select(Conversation).where(Conversation.participant_key == participant_key(a, b))
    ).first()


@conflict_retry()
def resolve_conversation(session: Session, user_id: str, other_id: str) -> Conversation:
    """The one conversation of the pair, created on first use"""
    if user_id == other_id:
        raise BadRequest("Cannot start a conversation with yourself")
    existing = find_conversation(session, user_id, other_id)
    if existing:
        return existing
    conversation = insert_unique(session, Conversation.for_pair(user_id, other_id))
    logger.debug(f"New conversation {conversation.id} for {conversation.participants}")
    return conversation


def participant_conversation(
    session: Session, user_id: str, conversation_id: str
) -> Conversation:
    conversation = session.get(Conversation, conversation_id)
    # A missing conversation is reported like a foreign one
    if not conversation or not conversation.has_participant(user_id):
        raise Forbidden("Not a participant")
    return conversation


def parse_cursor(cursor: str | None):
    if not cursor:
        return None
    try:
        return to_utc(cursor)
    except ValueError:
        raise BadRequest("Invalid cursor")


@store_errors
def upsert_conversation(
    session: Session, *, user_id: str, other_id: str
) -> ConversationView:
    conversation = resolve_conversation(session, user_id, other_id)
    cards = profile_cards(session, [other_id])
    return ConversationView.from_row(conversation, cards.get(other_id))


@store_errors
def get_conversation(
    session: Session, *, user_id: str, conversation_id: str
) -> ConversationView:
    conversation = participant_conversation(session, user_id, conversation_id)
    other_id = conversation.other_participant(user_id)
    cards = profile_cards(session, [other_id])
    return ConversationView.from_row(conversation, cards.get(other_id))


@store_errors
def list_conversations(session: Session, *, user_id: str) -> list[ConversationSummary]:
    """Conversations of the user, newest activity first.

    Last message and unread count are derived from the messages on every call,
    there is no counter to keep in sync.
    """
    conversations = session.exec(
        select(Conversation)
        .where(
            or_(
                Conversation.participant_low_id == user_id,
                Conversation.participant_high_id == user_id,
            )
        )
        .order_by(Conversation.updated_at.desc())
    ).all()
    if not conversations:
        return []

    messages = session.exec(
        select(Message)
        .where(
            Message.conversation_id.in_([c.id for c in conversations]),
            Message.deleted_at.is_(None),
        )
        .order_by(Message.created_at.desc())
    ).all()

    latest: dict[str, Message] = {}
    unread: dict[str, int] = defaultdict(int)
    for message in messages:
        latest.setdefault(message.conversation_id, message)
        if message.receiver_id == user_id and not message.read:
            unread[message.conversation_id] += 1

    cards = profile_cards(session, (c.other_participant(user_id) for c in conversations))
    summaries = []
    for conversation in conversations:
        last = latest.get(conversation.id)
        summaries.append(
            ConversationSummary(
                **ConversationView.from_row(
                    conversation, cards.get(conversation.other_participant(user_id))
                ).model_dump(),
                last_message=MessageView.from_row(last) if last else None,
                unread_count=unread[conversation.id],
            )
        )
    return summaries


@store_errors
def get_messages(
    session: Session,
    *,
    user_id: str,
    conversation_id: str,
    limit: int = DEFAULT_PAGE_SIZE,
    cursor: str | None = None,
) -> MessagePage:
    """A page of messages in chronological order.

    Pages walk backwards in time: the next cursor is the creation time of the
    oldest message returned, the following page has messages strictly older.
    """
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise BadRequest(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    before = parse_cursor(cursor)
    participant_conversation(session, user_id, conversation_id)

    query = (
        select(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.deleted_at.is_(None),
        )
        .order_by(Message.created_at.desc())
        .limit(limit + 1)  # one extra tells if there is a next page
    )
    if before:
        query = query.where(Message.created_at < before)

    rows = list(session.exec(query).all())
    rows.reverse()
    next_cursor = None
    if len(rows) > limit:
        rows.pop(0)
        next_cursor = rows[0].created_at.isoformat()

    return MessagePage(
        items=[MessageView.from_row(m) for m in rows], next_cursor=next_cursor
    )


@store_errors
def send_message(
    session: Session, *, user_id: str, other_id: str, content: str
) -> SentMessage:
    if other_id == user_id:
        raise BadRequest("Cannot message yourself")
    if not content or len(content) > MESSAGE_MAX_LENGTH:
        raise BadRequest(
            f"Message content must be between 1 and {MESSAGE_MAX_LENGTH} characters"
        )

    conversation = resolve_conversation(session, user_id, other_id)
    now = utcnow()
    message = Message(
        conversation_id=conversation.id,
        sender_id=user_id,
        receiver_id=other_id,
        content=content,
        created_at=now,
    )
    # Touch the conversation for the ordering of the listing
    conversation.last_message_at = now
    conversation.updated_at = now
    session.add(message)
    session.add(conversation)
    session.commit()

    return SentMessage(
        **MessageView.from_row(message).model_dump(),
        participants=conversation.participants,
    )


@store_errors
def mark_read(session: Session, *, user_id: str, conversation_id: str) -> SuccessResult:
    session.exec(
        update(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.receiver_id == user_id,
            Message.deleted_at.is_(None),
            Message.read.is_(False),
        )
        .values(read=True)
    )
    session.commit()
    return SuccessResult()


@store_errors
def delete_message(session: Session, *, user_id: str, message_id: str) -> DeletedMessage:
    message = session.get(Message, message_id)
    if not message or message.deleted_at is not None:
        raise NotFound("Message not found")
    if user_id not in (message.sender_id, message.receiver_id):
        raise Forbidden("Not authorized")

    message.deleted_at = utcnow()
    session.add(message)
    session.commit()
    logger.debug(f"Message {message_id} deleted by {user_id}")
    return DeletedMessage(conversation_id=message.conversation_id)
