import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dojo.api.v1.attendance.router import router as attendance_router
from dojo.api.v1.auth.router import router as auth_router
from dojo.api.v1.belt_tests.router import router as belt_tests_router
from dojo.api.v1.dashboard.router import router as dashboard_router
from dojo.api.v1.fees.router import router as fees_router
from dojo.api.v1.reports.router import router as reports_router
from dojo.api.v1.students.router import router as students_router
from dojo.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=f"{settings.school_name} Backend")

    # CORS: allow the frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(students_router)
    app.include_router(attendance_router)
    app.include_router(fees_router)
    app.include_router(belt_tests_router)
    app.include_router(dashboard_router)
    app.include_router(reports_router)

    return app


app = create_app()
