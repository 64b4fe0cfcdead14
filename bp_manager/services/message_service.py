"""
Servicio de mensajería entre usuarios
"""
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import List, Optional, Tuple

from bp_manager.models.message import Message
from bp_manager.models.user import User
from bp_manager.schemas.message import MessageCreate
from bp_manager.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)

MESSAGE_BOXES = ("all", "inbox", "sent")


class MessageService:
    """Servicio para mensajes directos"""

    def __init__(self, db: Session):
        self.db = db

    def send_message(self, sender: User, message_data: MessageCreate) -> Optional[Message]:
        """Enviar mensaje; None si el destinatario no existe o está inactivo"""
        receiver = self.db.query(User).filter(
            User.id == message_data.receiver_id,
            User.is_active.is_(True)
        ).first()
        if not receiver:
            return None

        if receiver.id == sender.id:
            raise ValueError("No puedes enviarte mensajes a ti mismo")

        message = Message(
            sender_id=sender.id,
            receiver_id=receiver.id,
            subject=message_data.subject,
            body=message_data.body,
            priority=message_data.priority,
            is_read=False
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)

        logger.info(f"Mensaje {message.id} enviado de {sender.id} a {receiver.id} ({message.priority.value})")
        return message

    def _participant_query(self, user_id: int):
        return self.db.query(Message).filter(
            or_(Message.sender_id == user_id, Message.receiver_id == user_id)
        )

    def get_messages(
            self,
            user_id: int,
            box: str = "all",
            unread: bool = False,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[Message], int]:
        """Mensajes enviados o recibidos, más recientes primero"""
        if box == "inbox":
            query = self.db.query(Message).filter(Message.receiver_id == user_id)
        elif box == "sent":
            query = self.db.query(Message).filter(Message.sender_id == user_id)
        else:
            query = self._participant_query(user_id)

        if unread:
            query = query.filter(Message.is_read.is_(False))

        total = query.count()
        messages = query.order_by(Message.created_at.desc(), Message.id.desc()).offset(skip).limit(limit).all()
        return messages, total

    def get_message(self, message_id: int, user_id: int) -> Optional[Message]:
        return self._participant_query(user_id).filter(Message.id == message_id).first()

    def mark_as_read(self, message_id: int, user_id: int) -> Optional[Message]:
        """Solo el destinatario puede marcar el mensaje como leído"""
        message = self.db.query(Message).filter(
            Message.id == message_id,
            Message.receiver_id == user_id
        ).first()
        if not message:
            return None

        if not message.is_read:
            message.is_read = True
            message.read_at = utcnow()
            self.db.commit()
            self.db.refresh(message)
        return message

    def delete_message(self, message_id: int, user_id: int) -> bool:
        message = self.get_message(message_id, user_id)
        if not message:
            return False

        self.db.delete(message)
        self.db.commit()
        logger.info(f"Mensaje {message_id} eliminado por usuario {user_id}")
        return True

    def count_unread(self, user_id: int) -> int:
        return self.db.query(Message).filter(
            Message.receiver_id == user_id,
            Message.is_read.is_(False)
        ).count()

    def get_conversations(self, user_id: int) -> List[dict]:
        """
        Una entrada por interlocutor con su último mensaje y el número
        de mensajes recibidos sin leer, ordenadas por actividad reciente
        """
        messages = self._participant_query(user_id).order_by(
            Message.created_at.desc(), Message.id.desc()
        ).all()

        conversations = {}
        for message in messages:
            other = message.receiver if message.sender_id == user_id else message.sender
            conversation = conversations.get(other.id)
            if conversation is None:
                conversation = {"other_user": other, "last_message": message, "unread_count": 0}
                conversations[other.id] = conversation
            if message.receiver_id == user_id and not message.is_read:
                conversation["unread_count"] += 1

        return list(conversations.values())
