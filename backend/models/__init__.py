"""Models package for the TapIn backend"""

from .common import get_session, CamelModel
from .types import UtcAwareDateTime
from .profile import Profile
from .connections import Connection, ConnectionStatus, Direction, Relationship
from .messaging import Conversation, Message
from .profile_qr import ProfileQrToken

__all__ = [
    "CamelModel",
    "Connection",
    "ConnectionStatus",
    "Conversation",
    "Direction",
    "Message",
    "Profile",
    "ProfileQrToken",
    "Relationship",
    "UtcAwareDateTime",
    "get_session",
]
