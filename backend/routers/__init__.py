# Routers package
from .auth import router as auth_router
from .sessions import router as sessions_router
from .subjects import router as subjects_router
from .tasks import router as tasks_router
from .habits import router as habits_router
from .stats import router as stats_router
