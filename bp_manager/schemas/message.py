"""
Esquemas Pydantic para Mensajes
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from bp_manager.models.message import MessagePriority
from bp_manager.models.user import UserRole


class MessageCreate(BaseModel):
    """Enviar un mensaje"""
    receiver_id: int
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=2000)
    priority: MessagePriority = MessagePriority.NORMAL

    @validator('subject', 'body')
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()


class MessageParticipant(BaseModel):
    id: int
    first_name: str
    last_name: str
    role: UserRole

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    subject: str
    body: str
    priority: MessagePriority
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    sender: Optional[MessageParticipant] = None
    receiver: Optional[MessageParticipant] = None

    class Config:
        from_attributes = True


class MessagePage(BaseModel):
    messages: List[MessageResponse]
    total: int
    skip: int
    limit: int


class LastMessage(BaseModel):
    id: int
    subject: str
    body: str
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    """Última conversación con cada usuario"""
    other_user: MessageParticipant
    last_message: LastMessage
    unread_count: int
