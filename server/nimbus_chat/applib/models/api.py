from pydantic import BaseModel, Field, field_validator
from typing import Any, Literal

class InboundFrame(BaseModel):
    """Client -> server frame: {"event": "join"|"message", "data": ...}"""
    event: str = Field(min_length=1)
    data: Any = None

class ChatMessage(BaseModel):
    id: str
    text: str
    sender: str
    time: int

    @field_validator('text', mode='before')
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        """Text is not validated, only made JSON-safe: null -> '', other values -> str."""
        if value is None:
            return ''
        if isinstance(value, str):
            return value
        return str(value)

class SystemNotice(BaseModel):
    text: str
    time: int

class ConnectedEvent(BaseModel):
    """Sent to a single socket right after accept"""
    event: Literal['connected'] = 'connected'
    data: dict[str, str]

class UserListEvent(BaseModel):
    """Broadcast: display names of everyone online, in join order"""
    event: Literal['userList'] = 'userList'
    data: list[str]

class SystemMessageEvent(BaseModel):
    """Broadcast: join/leave announcement"""
    event: Literal['systemMessage'] = 'systemMessage'
    data: SystemNotice

class MessageEvent(BaseModel):
    """Broadcast: user-authored chat message"""
    event: Literal['message'] = 'message'
    data: ChatMessage

class ErrorEvent(BaseModel):
    """Sent to the offending socket only, for frames that cannot be parsed"""
    event: Literal['error'] = 'error'
    data: dict[str, str]

    @classmethod
    def from_message(cls, message: str) -> 'ErrorEvent':
        return cls(data={'message': message})
