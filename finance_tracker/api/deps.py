"""
Request-scoped dependencies shared by the routers.

The acting user comes from the X-User-Id header, set by the
gateway in front of this service. Every service call takes it
explicitly; there is no ambient "current user".
"""

from fastapi import Header


def get_current_user_id(
    x_user_id: int = Header(..., ge=1, alias="X-User-Id"),
) -> int:
    return x_user_id
