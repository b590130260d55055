import logging
from datetime import timedelta

import bcrypt
from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException, Header
from jose import JWTError, jwt
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRE_DAYS, BCRYPT_ROUNDS
from database import get_db, USERS
from models import RegisterRequest, LoginRequest, UserUpdateRequest, UserOut, AuthResponse
from routers.common import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["认证"])


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_token(user_id: str) -> str:
    expire = utcnow() + timedelta(days=JWT_EXPIRE_DAYS)
    payload = {
        "user_id": user_id,
        "exp": expire
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> str:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Token无效或已过期")
    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token无效或已过期")
    return user_id


def get_user_id(authorization: str = Header(...)) -> str:
    """从Header获取用户ID"""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="无效的Authorization头")
    token = authorization[7:]
    return verify_token(token)


def to_user_out(user: dict) -> UserOut:
    return UserOut(
        id=str(user["_id"]),
        email=user["email"],
        name=user["name"],
        phone=user.get("phone"),
        created_at=user.get("created_at"),
    )


def find_user(db: Database, user_id: str) -> dict:
    user = None
    if ObjectId.is_valid(user_id):
        user = db[USERS].find_one({"_id": ObjectId(user_id)})
    if not user:
        raise HTTPException(status_code=404, detail="用户不存在")
    return user


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest, db: Database = Depends(get_db)):
    """注册新用户"""
    if db[USERS].find_one({"email": request.email}):
        raise HTTPException(status_code=400, detail="该邮箱已注册")

    now = utcnow()
    new_user = {
        "email": request.email,
        "password_hash": hash_password(request.password),
        "name": request.name,
        "phone": request.phone or None,
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = db[USERS].insert_one(new_user)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="该邮箱已注册")

    new_user["_id"] = result.inserted_id
    user_id = str(result.inserted_id)
    logger.info("Registered user %s", user_id)

    return AuthResponse(user=to_user_out(new_user), token=create_token(user_id))


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: Database = Depends(get_db)):
    """邮箱密码登录"""
    user = db[USERS].find_one({"email": request.email})
    if not user or not verify_password(request.password, user.get("password_hash", "")):
        logger.warning("Failed login for %s", request.email)
        raise HTTPException(status_code=401, detail="邮箱或密码错误")

    user_id = str(user["_id"])
    return AuthResponse(user=to_user_out(user), token=create_token(user_id))


@router.get("/me")
async def get_me(authorization: str = Header(...), db: Database = Depends(get_db)):
    """获取当前用户"""
    user_id = get_user_id(authorization)
    user = find_user(db, user_id)
    return {"user": to_user_out(user)}


@router.put("/update")
async def update_me(
    request: UserUpdateRequest,
    authorization: str = Header(...),
    db: Database = Depends(get_db)
):
    """更新用户信息"""
    user_id = get_user_id(authorization)
    user = find_user(db, user_id)

    updates = {}
    if request.name:
        updates["name"] = request.name
    if request.phone:
        updates["phone"] = request.phone
    if request.email and request.email != user["email"]:
        if db[USERS].find_one({"email": request.email}):
            raise HTTPException(status_code=400, detail="该邮箱已注册")
        updates["email"] = request.email
    if request.password:
        updates["password_hash"] = hash_password(request.password)

    if updates:
        updates["updated_at"] = utcnow()
        db[USERS].update_one({"_id": user["_id"]}, {"$set": updates})
        user = {**user, **updates}

    return {"user": to_user_out(user)}
