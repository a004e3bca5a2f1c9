"""
Main API router for v1 endpoints
"""
import time

from fastapi import APIRouter

from app.api.v1.endpoints import admin, auth, boards, columns, tasks

api_router = APIRouter(prefix="/v1")


@api_router.get("/")
async def api_root():
    """API v1 root endpoint"""
    return {
        "success": True,
        "data": {
            "message": "Kanban Taskboard API v1",
            "endpoints": {
                "auth": "/api/v1/auth",
                "boards": "/api/v1/boards",
                "columns": "/api/v1/columns",
                "tasks": "/api/v1/tasks",
                "admin": "/api/v1/admin"
            }
        },
        "timestamp": time.time()
    }


# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(boards.router, prefix="/boards", tags=["Boards"])
api_router.include_router(columns.router, prefix="/columns", tags=["Columns"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
