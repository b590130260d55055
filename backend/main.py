import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analytics import StatsError
from config import API_PREFIX, CORS_ORIGINS, LOG_LEVEL
from database import client, get_db, create_indexes
from routers import (
    auth_router, sessions_router, subjects_router, tasks_router, habits_router, stats_router,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_indexes(get_db())
    yield
    client.close()


app = FastAPI(
    lifespan=lifespan,
    title="学习追踪 API",
    description="学习记录、习惯打卡、每日任务与统计的后端服务",
    version="1.0.0"
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StatsError)
async def stats_error_handler(request: Request, exc: StatsError):
    logger.warning("Rejected stats input on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "服务器内部错误"})


# 注册路由（统计路由需在各资源路由之前）
app.include_router(stats_router, prefix=API_PREFIX)
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(sessions_router, prefix=API_PREFIX)
app.include_router(subjects_router, prefix=API_PREFIX)
app.include_router(tasks_router, prefix=API_PREFIX)
app.include_router(habits_router, prefix=API_PREFIX)


@app.get("/")
async def root():
    return {"message": "学习追踪 API 服务运行中", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
