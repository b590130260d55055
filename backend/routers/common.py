from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from fastapi import HTTPException

from analytics import InvalidDateFormat, format_date


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"无效的{label}格式")
    return ObjectId(value)


def check_date(value: str) -> str:
    """校验请求中的日期字符串，返回规范化的 YYYY-MM-DD"""
    try:
        return format_date(value)
    except InvalidDateFormat as e:
        raise HTTPException(status_code=400, detail=str(e))


def date_range_query(user_id: str, start_date: Optional[str], end_date: Optional[str]) -> dict:
    """只有同时提供开始和结束日期时才按日期过滤"""
    query = {"user_id": user_id}
    if start_date and end_date:
        query["date"] = {"$gte": check_date(start_date), "$lte": check_date(end_date)}
    return query


def serialize(doc: dict) -> dict:
    """MongoDB文档转为JSON友好的字典"""
    data = {k: v for k, v in doc.items() if k not in ("_id", "user_id", "password_hash")}
    data["id"] = str(doc["_id"])
    return data


def toggle_completion(collection, user_id: str, field: str, item_id: str, date: str):
    """切换某天的完成状态；不存在则创建为已完成。返回 (文档, 是否新建)"""
    query = {"user_id": user_id, field: item_id, "date": date}
    existing = collection.find_one(query)

    if existing:
        completed = not existing.get("completed", False)
        collection.update_one(
            {"_id": existing["_id"]},
            {"$set": {"completed": completed, "updated_at": utcnow()}}
        )
        existing["completed"] = completed
        return existing, False

    now = utcnow()
    completion = {**query, "completed": True, "created_at": now, "updated_at": now}
    result = collection.insert_one(completion)
    completion["_id"] = result.inserted_id
    return completion, True
