from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    password: str = ""


class AuthStatus(BaseModel):
    authenticated: bool
    error: Optional[str] = None


class RecordModel(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    assignee: Optional[str] = None


class ViewStateModel(BaseModel):
    search_term: Optional[str] = None
    selected_categories: Optional[List[str]] = None
    sort_key: Optional[str] = None
    sort_direction: Optional[str] = None


class MetaSourcesResponse(BaseModel):
    sources: List[str]
    app_name: str
    base_url: str