import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from analytics import format_date
from database import get_db, TASKS, TASK_COMPLETIONS
from models import TaskCreate, TaskUpdate, TaskCompletionToggle
from routers.auth import get_user_id
from routers.common import (
    utcnow, to_object_id, check_date, date_range_query, serialize, toggle_completion,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["任务"])


@router.get("")
async def list_tasks(authorization: str = Header(...), db: Database = Depends(get_db)):
    """获取任务列表，按创建时间降序"""
    user_id = get_user_id(authorization)
    tasks = db[TASKS].find({"user_id": user_id}).sort("created_at", DESCENDING)
    return {"tasks": [serialize(t) for t in tasks]}


@router.post("", status_code=201)
async def create_task(
    request: TaskCreate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """新增每日任务"""
    user_id = get_user_id(authorization)

    now = utcnow()
    task = {
        "user_id": user_id,
        "name": request.name,
        # 任务从这一天起计入完成率分母
        "created_date": check_date(request.created_date) if request.created_date else format_date(date.today()),
        "created_at": now,
        "updated_at": now,
    }
    result = db[TASKS].insert_one(task)
    task["_id"] = result.inserted_id

    return {"task": serialize(task)}


# 固定路径需在 /{task_id} 之前注册
@router.get("/completions")
async def list_task_completions(
    authorization: str = Header(...),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    db: Database = Depends(get_db)
):
    """获取任务完成记录"""
    user_id = get_user_id(authorization)
    query = date_range_query(user_id, start_date, end_date)
    return {"completions": [serialize(c) for c in db[TASK_COMPLETIONS].find(query)]}


@router.post("/completions")
async def toggle_task_completion(
    request: TaskCompletionToggle,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """切换任务某天的完成状态"""
    user_id = get_user_id(authorization)
    oid = to_object_id(request.task_id, "任务ID")
    if not db[TASKS].find_one({"_id": oid, "user_id": user_id}):
        raise HTTPException(status_code=404, detail="任务不存在")

    completion, created = toggle_completion(
        db[TASK_COMPLETIONS], user_id, "task_id", request.task_id, check_date(request.date)
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content=jsonable_encoder({"completion": serialize(completion)})
    )


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    request: TaskUpdate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """更新任务"""
    user_id = get_user_id(authorization)
    oid = to_object_id(task_id, "任务ID")

    updates = request.model_dump(exclude_none=True)
    updates["updated_at"] = utcnow()

    task = db[TASKS].find_one_and_update(
        {"_id": oid, "user_id": user_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER
    )
    if not task:
        raise HTTPException(status_code=404, detail="任务不存在")

    return {"task": serialize(task)}


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """删除任务及其所有完成记录"""
    user_id = get_user_id(authorization)
    oid = to_object_id(task_id, "任务ID")

    result = db[TASKS].delete_one({"_id": oid, "user_id": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="任务不存在")

    removed = db[TASK_COMPLETIONS].delete_many({"user_id": user_id, "task_id": task_id})
    logger.info("User %s deleted task %s with %d completions", user_id, task_id, removed.deleted_count)
    return {"success": True, "message": "任务已删除"}
