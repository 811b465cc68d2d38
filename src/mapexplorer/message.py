from enum import Enum
from pydantic import BaseModel, field_serializer


class MessageRole(Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"


class Message(BaseModel):
    role: MessageRole
    content: str

    @field_serializer('role')
    def serialize_role(self, role: MessageRole, _info) -> str:
        return role.value


def build_messages(system_prompt: str, prompt: str) -> list[Message]:
    """A fresh two-message conversation; no history is carried over."""
    return [
        Message(role=MessageRole.SYSTEM, content=system_prompt),
        Message(role=MessageRole.USER, content=prompt),
    ]
