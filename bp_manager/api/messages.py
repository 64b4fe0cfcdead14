"""
Endpoints de mensajería
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List

from bp_manager.core.database import get_db
from bp_manager.core.dependencies import get_current_user, get_pagination_params, PaginationParams
from bp_manager.models.user import User
from bp_manager.schemas.message import MessageCreate, MessageResponse, MessagePage, ConversationResponse
from bp_manager.services.message_service import MessageService, MESSAGE_BOXES

router = APIRouter()


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
        message_data: MessageCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Enviar un mensaje a otro usuario
    """
    try:
        message = MessageService(db).send_message(current_user, message_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not message:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Destinatario no encontrado"
        )
    return message


@router.get("/", response_model=MessagePage)
async def list_messages(
        box: str = Query("all", description="all, inbox o sent"),
        unread: bool = Query(False, description="Solo mensajes sin leer"),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Mensajes del usuario actual
    """
    if box not in MESSAGE_BOXES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Bandeja inválida. Use all, inbox o sent"
        )

    messages, total = MessageService(db).get_messages(
        current_user.id,
        box=box,
        unread=unread,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"messages": messages, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/conversations", response_model=List[ConversationResponse])
async def list_conversations(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return MessageService(db).get_conversations(current_user.id)


@router.get("/unread-count")
async def unread_count(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return {"unread": MessageService(db).count_unread(current_user.id)}


@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(
        message_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    message = MessageService(db).get_message(message_id, current_user.id)
    if not message:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mensaje no encontrado"
        )
    return message


@router.put("/{message_id}/read", response_model=MessageResponse)
async def mark_message_as_read(
        message_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Marcar como leído (solo el destinatario)
    """
    message = MessageService(db).mark_as_read(message_id, current_user.id)
    if not message:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mensaje no encontrado"
        )
    return message


@router.delete("/{message_id}")
async def delete_message(
        message_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    if not MessageService(db).delete_message(message_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Mensaje no encontrado"
        )
    return {"message": "Mensaje eliminado exitosamente"}
