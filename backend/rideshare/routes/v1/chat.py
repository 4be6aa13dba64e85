# backend/rideshare/routes/v1/chat.py
"""
Booking chat routes

Endpoints:
    GET /booking/{booking_id} - Open (or create) the booking's channel
    GET /my-chats - Caller's channels with unread counts
    GET /unread-count - Unread messages across all channels
    GET /{channel_id} - Channel with its messages
    POST /{channel_id}/messages - Send a message
    PUT /{channel_id}/read - Mark the caller's unread messages read
"""

import asyncio
from typing import List

from fastapi import APIRouter, Body, Depends, status
from fastapi.params import Path

from ...api.dependencies import get_chat_service, get_current_user_id
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.chat import (
    ChannelDetailResponse,
    ChannelResponse,
    ChannelSummaryResponse,
    CountResponse,
    MessageResponse,
    SendMessageRequest,
)
from ...services.chat_service import ChatService

router = APIRouter(tags=["chat"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


@router.get("/booking/{booking_id}", response_model=ChannelResponse)
async def get_booking_chat(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChannelResponse:
    """Get the booking's channel, creating it on first access."""
    try:
        channel = await asyncio.to_thread(
            chat_service.get_or_create_channel, booking_id, current_user_id
        )
        return ChannelResponse.model_validate(channel)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/my-chats", response_model=List[ChannelSummaryResponse])
async def get_my_chats(
    current_user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> List[ChannelSummaryResponse]:
    try:
        summaries = await asyncio.to_thread(chat_service.list_channels_for_user, current_user_id)
        return [ChannelSummaryResponse.model_validate(s) for s in summaries]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/unread-count", response_model=CountResponse)
async def get_unread_count(
    current_user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> CountResponse:
    try:
        count = await asyncio.to_thread(chat_service.get_total_unread_count, current_user_id)
        return CountResponse(count=count)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{channel_id}", response_model=ChannelDetailResponse)
async def get_chat(
    channel_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChannelDetailResponse:
    try:
        channel = await asyncio.to_thread(chat_service.get_channel, channel_id, current_user_id)
        messages = await asyncio.to_thread(
            chat_service.list_messages, channel_id, current_user_id
        )
        base = ChannelResponse.model_validate(channel)
        return ChannelDetailResponse(
            **base.model_dump(),
            messages=[MessageResponse.model_validate(m) for m in messages],
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{channel_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    channel_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    payload: SendMessageRequest = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> MessageResponse:
    try:
        message = await asyncio.to_thread(
            chat_service.send_message,
            channel_id,
            current_user_id,
            payload.message,
            suppress_notification=payload.suppress_notification,
        )
        return MessageResponse.model_validate(message)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{channel_id}/read", response_model=CountResponse)
async def mark_chat_read(
    channel_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> CountResponse:
    """Returns how many messages were newly marked read."""
    try:
        count = await asyncio.to_thread(chat_service.mark_read, channel_id, current_user_id)
        return CountResponse(count=count)
    except DomainException as e:
        handle_domain_exception(e)
