import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import MONGODB_URI, DATABASE_NAME

logger = logging.getLogger(__name__)

client = MongoClient(MONGODB_URI)
db = client[DATABASE_NAME]

# 集合名称
USERS = "users"
SESSIONS = "sessions"
SUBJECTS = "subjects"
TASKS = "tasks"
TASK_COMPLETIONS = "task_completions"
HABITS = "habits"
HABIT_COMPLETIONS = "habit_completions"


def get_db() -> Database:
    """请求级数据库依赖，测试中可通过 dependency_overrides 替换"""
    return db


def create_indexes(database: Database):
    """创建索引"""
    database[USERS].create_index("email", unique=True)
    database[SESSIONS].create_index([("user_id", ASCENDING), ("date", DESCENDING)])
    database[SUBJECTS].create_index("user_id")
    database[TASKS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database[HABITS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database[TASK_COMPLETIONS].create_index(
        [("user_id", ASCENDING), ("task_id", ASCENDING), ("date", ASCENDING)],
        unique=True,
    )
    database[TASK_COMPLETIONS].create_index([("user_id", ASCENDING), ("date", ASCENDING)])
    database[HABIT_COMPLETIONS].create_index(
        [("user_id", ASCENDING), ("habit_id", ASCENDING), ("date", ASCENDING)],
        unique=True,
    )
    database[HABIT_COMPLETIONS].create_index([("user_id", ASCENDING), ("date", ASCENDING)])
    logger.info("MongoDB indexes ensured on %s", database.name)
