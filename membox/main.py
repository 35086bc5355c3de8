from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from .config import Settings
from .db import init_db, make_engine, make_session_factory
from .logic import ValidationError
from .reminders import start_scheduler
from . import auth, customers, reminders, reports, transactions

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    engine = make_engine(settings.database_url)
    session_factory = make_session_factory(engine)
    init_db(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = start_scheduler(settings, session_factory)
        try:
            yield
        finally:
            if scheduler:
                scheduler.shutdown(wait=False)

    app = FastAPI(title="MemBox", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse({"detail": str(exc)}, status_code=400)

    @app.get("/health")
    def health():
        return JSONResponse({"ok": True})

    app.include_router(auth.router)
    app.include_router(auth.admin_router)
    app.include_router(customers.router)
    app.include_router(transactions.router)
    app.include_router(reports.router)
    app.include_router(reminders.router)

    logger.info("MemBox ready (due date strategy: %s)", settings.due_date_strategy)
    return app


app = create_app()
