import logging

from fastapi import APIRouter, Depends, HTTPException, Header
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database

from database import get_db, SUBJECTS
from models import SubjectCreate, SubjectUpdate
from routers.auth import get_user_id
from routers.common import utcnow, to_object_id, serialize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects", tags=["科目"])


@router.get("")
async def list_subjects(authorization: str = Header(...), db: Database = Depends(get_db)):
    """获取科目列表，按创建时间升序"""
    user_id = get_user_id(authorization)
    subjects = db[SUBJECTS].find({"user_id": user_id}).sort("created_at", ASCENDING)
    return {"subjects": [serialize(s) for s in subjects]}


@router.post("", status_code=201)
async def create_subject(
    request: SubjectCreate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """新增科目"""
    user_id = get_user_id(authorization)

    now = utcnow()
    subject = {
        "user_id": user_id,
        "name": request.name,
        "color": request.color,
        "created_at": now,
        "updated_at": now,
    }
    result = db[SUBJECTS].insert_one(subject)
    subject["_id"] = result.inserted_id

    return {"subject": serialize(subject)}


@router.put("/{subject_id}")
async def update_subject(
    subject_id: str,
    request: SubjectUpdate,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """更新科目"""
    user_id = get_user_id(authorization)
    oid = to_object_id(subject_id, "科目ID")

    updates = request.model_dump(exclude_none=True)
    updates["updated_at"] = utcnow()

    subject = db[SUBJECTS].find_one_and_update(
        {"_id": oid, "user_id": user_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER
    )
    if not subject:
        raise HTTPException(status_code=404, detail="科目不存在")

    return {"subject": serialize(subject)}


@router.delete("/{subject_id}")
async def delete_subject(
    subject_id: str,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """删除科目（历史学习记录保留，统计中归入 "(Deleted)"）"""
    user_id = get_user_id(authorization)
    oid = to_object_id(subject_id, "科目ID")

    result = db[SUBJECTS].delete_one({"_id": oid, "user_id": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="科目不存在")

    logger.info("User %s deleted subject %s", user_id, subject_id)
    return {"success": True, "message": "科目已删除"}
