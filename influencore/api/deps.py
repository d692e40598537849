from typing import Optional
from fastapi import Header, Request
from influencore.core.context import AppContext
from influencore.core.errors import AuthenticationError

def get_context(request: Request) -> AppContext:
    return request.app.state.context

def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """identity of the calling user, set by the auth proxy in front of the api"""
    if not x_user_id:
        raise AuthenticationError()
    return x_user_id
