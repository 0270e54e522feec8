"""Request dependencies: caller identity and the order service.

Authentication happens upstream; the trusted proxy forwards the user id and
role in ``X-User-Id`` / ``X-User-Role``.
"""

from fastapi import Header, HTTPException

from ordering.order.service import OrderService, Requester


def get_requester(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
) -> Requester:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return Requester(user_id=x_user_id, role=x_user_role or None)


def get_order_service() -> OrderService:
    return OrderService()
