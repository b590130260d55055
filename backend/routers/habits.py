import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from database import get_db, HABITS, HABIT_COMPLETIONS
from models import HabitCreate, HabitUpdate, HabitCompletionToggle
from routers.auth import get_user_id
from routers.common import (
    utcnow, to_object_id, check_date, date_range_query, serialize, toggle_completion,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/habits", tags=["习惯"])


@router.get("")
async def list_habits(authorization: str = Header(...), db: Database = Depends(get_db)):
    """获取习惯列表"""
    user_id = get_user_id(authorization)
    habits = db[HABITS].find({"user_id": user_id}).sort("created_at", DESCENDING)
    return {"habits": [serialize(h) for h in habits]}


@router.post("", status_code=201)
async def create_habit(
    request: HabitCreate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    user_id = get_user_id(authorization)

    now = utcnow()
    habit = {
        "user_id": user_id,
        "name": request.name,
        "emoji": request.emoji,
        "goal": request.goal,
        "created_at": now,
        "updated_at": now,
    }
    result = db[HABITS].insert_one(habit)
    habit["_id"] = result.inserted_id

    return {"habit": serialize(habit)}


@router.get("/completions")
async def list_habit_completions(
    authorization: str = Header(...),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    db: Database = Depends(get_db)
):
    user_id = get_user_id(authorization)
    query = date_range_query(user_id, start_date, end_date)
    return {"completions": [serialize(c) for c in db[HABIT_COMPLETIONS].find(query)]}


@router.post("/completions")
async def toggle_habit_completion(
    request: HabitCompletionToggle,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """切换习惯打卡状态"""
    user_id = get_user_id(authorization)
    oid = to_object_id(request.habit_id, "习惯ID")
    if not db[HABITS].find_one({"_id": oid, "user_id": user_id}):
        raise HTTPException(status_code=404, detail="习惯不存在")

    completion, created = toggle_completion(
        db[HABIT_COMPLETIONS], user_id, "habit_id", request.habit_id, check_date(request.date)
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content=jsonable_encoder({"completion": serialize(completion)})
    )


@router.put("/{habit_id}")
async def update_habit(
    habit_id: str,
    request: HabitUpdate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    user_id = get_user_id(authorization)
    oid = to_object_id(habit_id, "习惯ID")

    updates = request.model_dump(exclude_none=True)
    updates["updated_at"] = utcnow()

    habit = db[HABITS].find_one_and_update(
        {"_id": oid, "user_id": user_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER
    )
    if not habit:
        raise HTTPException(status_code=404, detail="习惯不存在")

    return {"habit": serialize(habit)}


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: str,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """删除习惯及其打卡记录"""
    user_id = get_user_id(authorization)
    oid = to_object_id(habit_id, "习惯ID")

    result = db[HABITS].delete_one({"_id": oid, "user_id": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="习惯不存在")

    removed = db[HABIT_COMPLETIONS].delete_many({"user_id": user_id, "habit_id": habit_id})
    logger.info("User %s deleted habit %s with %d completions", user_id, habit_id, removed.deleted_count)
    return {"success": True, "message": "习惯已删除"}
