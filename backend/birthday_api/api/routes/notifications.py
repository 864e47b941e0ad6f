from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from birthday_api.db.session import get_db
from birthday_api.api.deps import get_current_user
from birthday_api.models.notification import Notification
from birthday_api.models.user import User
from birthday_api.schemas.notification import NotificationOut, UnreadCount
from birthday_api.services.notifications import unread_count as count_unread

router = APIRouter()

LIST_LIMIT = 200

def _own_notification(db: Session, notif_id: int, user: User) -> Notification:
    n = db.query(Notification).filter(Notification.id == notif_id, Notification.user_id == user.id).first()
    if not n:
        raise HTTPException(status_code=404, detail="Notification not found")
    return n

@router.get("/", response_model=list[NotificationOut])
def list_notifications(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Newest first, each with the name and date of the birthday it is about (if any)."""
    return (
        db.query(Notification)
        .options(joinedload(Notification.birthday))
        .filter(Notification.user_id == user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(LIST_LIMIT)
        .all()
    )

@router.get("/unread-count", response_model=UnreadCount)
def unread_count(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return {"unread": count_unread(db, user.id)}

@router.patch("/read-multiple")
def mark_multiple_read(body: Any = Body(default=None), db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Body: {"ids": [1, 2, ...]}. Ids that are not the caller's are ignored."""
    ids = body.get("ids") if isinstance(body, dict) else None
    if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        raise HTTPException(status_code=400, detail="Invalid notification IDs")
    updated = 0
    if ids:
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == user.id, Notification.id.in_(ids))
            .update({Notification.read: True}, synchronize_session=False)
        )
        db.commit()
    return {"status": "ok", "updated": updated}

@router.post("/mark-all-read")
@router.patch("/read-all")
def mark_all_read(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.read == False)  # noqa: E712
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return {"status": "ok", "updated": updated}

@router.delete("/clear-all")
def clear_all(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    # Declared before /{notif_id} so "clear-all" is not parsed as an id
    deleted = db.query(Notification).filter(Notification.user_id == user.id).delete(synchronize_session=False)
    db.commit()
    return {"status": "ok", "deleted": deleted}

@router.post("/{notif_id}/read", response_model=NotificationOut)
@router.patch("/{notif_id}/read", response_model=NotificationOut)
def mark_notification(notif_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    n = _own_notification(db, notif_id, user)
    n.read = True
    db.commit()
    db.refresh(n)
    return n

@router.delete("/{notif_id}")
def delete_notification(notif_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    n = _own_notification(db, notif_id, user)
    db.delete(n)
    db.commit()
    return {"status": "ok"}
