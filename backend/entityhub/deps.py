"""
EntityHub Backend — Request Dependencies
==========================================

What:  FastAPI dependencies shared by the generated entity routers.
"""

from typing import Optional

from fastapi import Request

from entityhub.config import settings


def get_actor_id(request: Request) -> Optional[str]:
    """
    Return the authenticated caller id for create / update stamping.

    An upstream auth layer either sets `request.state.user_id` or forwards the
    id in the configured header (default X-User-Id). Absence is not rejected
    here; authentication is enforced upstream, and the record is stamped None.
    """
    state_id = getattr(request.state, "user_id", None)
    if state_id:
        return str(state_id)
    return request.headers.get(settings.actor_header) or None
