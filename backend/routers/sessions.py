import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from database import get_db, SESSIONS
from models import SessionCreate, SessionUpdate
from routers.auth import get_user_id
from routers.common import utcnow, to_object_id, check_date, date_range_query, serialize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["学习记录"])


@router.get("")
async def list_sessions(
    authorization: str = Header(...),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    db: Database = Depends(get_db)
):
    """获取学习记录，按日期降序"""
    user_id = get_user_id(authorization)
    query = date_range_query(user_id, start_date, end_date)
    sessions = db[SESSIONS].find(query).sort("date", DESCENDING)
    return {"sessions": [serialize(s) for s in sessions]}


@router.post("", status_code=201)
async def create_session(
    request: SessionCreate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """新增学习记录"""
    user_id = get_user_id(authorization)

    now = utcnow()
    session = {
        "user_id": user_id,
        "subject": request.subject,
        "minutes": request.minutes,
        "date": check_date(request.date),
        "notes": request.notes or None,
        "created_at": now,
        "updated_at": now,
    }
    result = db[SESSIONS].insert_one(session)
    session["_id"] = result.inserted_id
    logger.info("User %s logged %d minutes of %s on %s",
                user_id, session["minutes"], session["subject"], session["date"])

    return {"session": serialize(session)}


@router.put("/{session_id}")
async def update_session(
    session_id: str,
    request: SessionUpdate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """更新学习记录（仅更新传入的字段）"""
    user_id = get_user_id(authorization)
    oid = to_object_id(session_id, "记录ID")

    updates = request.model_dump(exclude_none=True)
    if "date" in updates:
        updates["date"] = check_date(updates["date"])
    updates["updated_at"] = utcnow()

    session = db[SESSIONS].find_one_and_update(
        {"_id": oid, "user_id": user_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER
    )
    if not session:
        raise HTTPException(status_code=404, detail="学习记录不存在")

    return {"session": serialize(session)}


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """删除学习记录"""
    user_id = get_user_id(authorization)
    oid = to_object_id(session_id, "记录ID")

    result = db[SESSIONS].delete_one({"_id": oid, "user_id": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="学习记录不存在")

    logger.info("User %s deleted session %s", user_id, session_id)
    return {"success": True, "message": "学习记录已删除"}
