"""
Routes Data Transfer Objects (DTOs)

This module contains all Pydantic models used by API routes:
- Request model for the chat endpoint
- Request and response models for event sync
- Health check response model
"""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""
    user_id: str
    message: str


class ResetRequest(BaseModel):
    """Request model for clearing a user's conversation context."""
    user_id: str


class SyncRequest(BaseModel):
    """Events pushed by the client (Google Calendar event payloads)."""
    user_id: str
    events: List[Dict[str, Any]]


class SyncResponse(BaseModel):
    """Response model for event sync."""
    success: bool
    message: str
    user_id: str
    event_count: int


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: Optional[str] = None
    components: Optional[Dict[str, Any]] = None
