"""
HTTP routes for the portal session: sign in/out, the notification inbox,
the visible orders and pending toasts.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..errors import BackendError, EntityNotFoundError, SessionNotActiveError
from ..portal import PortalSession, get_portal_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class SignInRequest(BaseModel):
    """Sign a viewer in by profile id with their backend auth session."""
    profile_id: str
    access_token: str
    refresh_token: str


def _inactive() -> HTTPException:
    return HTTPException(status_code=401, detail="No viewer is signed in")


# ============================================================================
# Session
# ============================================================================

@router.post("/session")
async def sign_in(body: SignInRequest, session: PortalSession = Depends(get_portal_session)):
    try:
        viewer = await session.sign_in_by_id(body.profile_id, body.access_token, body.refresh_token)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BackendError as e:
        if e.operation == "authenticate":
            raise HTTPException(status_code=401, detail=str(e))
        logger.error(f"Sign in failed for {body.profile_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "viewer": viewer.model_dump(mode="json"),
        "orders": len(session.orders),
    }


@router.delete("/session")
async def sign_out(session: PortalSession = Depends(get_portal_session)):
    await session.sign_out()
    return {"status": "signed_out"}


# ============================================================================
# Notifications
# ============================================================================

@router.get("/notifications")
async def list_notifications(session: PortalSession = Depends(get_portal_session)):
    try:
        items = session.notifications
        unread = session.unread_count
    except SessionNotActiveError:
        raise _inactive()
    return {
        "notifications": [item.model_dump(mode="json") for item in items],
        "unread": unread,
    }


@router.get("/notifications/unread-count")
async def unread_count(session: PortalSession = Depends(get_portal_session)):
    try:
        return {"unread": session.unread_count}
    except SessionNotActiveError:
        raise _inactive()


@router.post("/notifications/read-all")
async def mark_all_read(session: PortalSession = Depends(get_portal_session)):
    try:
        session.mark_all_read()
    except SessionNotActiveError:
        raise _inactive()
    return {"unread": 0}


@router.post("/notifications/{notification_id}/open")
async def open_notification(notification_id: str, session: PortalSession = Depends(get_portal_session)):
    """Open a notification; `order_id` is null when there is nothing to navigate to."""
    try:
        order_id = await session.open(notification_id)
    except SessionNotActiveError:
        raise _inactive()
    return {"notification_id": notification_id, "order_id": order_id}


# ============================================================================
# Orders, toasts and sync status
# ============================================================================

@router.get("/orders")
async def list_orders(session: PortalSession = Depends(get_portal_session)):
    try:
        orders = session.orders
    except SessionNotActiveError:
        raise _inactive()
    return {"orders": [order.model_dump(mode="json") for order in orders]}


@router.get("/toasts")
async def drain_toasts(session: PortalSession = Depends(get_portal_session)):
    return {"toasts": [toast.model_dump(mode="json") for toast in session.drain_toasts()]}


@router.get("/sync/status")
async def sync_status(session: PortalSession = Depends(get_portal_session)):
    try:
        return session.sync_status()
    except SessionNotActiveError:
        raise _inactive()
