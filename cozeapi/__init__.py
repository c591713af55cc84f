"""Client library for the Coze bot platform API: bots, chats, conversations and audio."""

__version__ = "0.1.0"

__all__ = [
    "audio",
    "auth",
    "bots",
    "chat_messages",
    "chats",
    "client",
    "conversations",
    "models",
    "transport",
]