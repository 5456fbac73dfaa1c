"""JSON API serving usage reports to a display layer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query

from .db import Database
from .loader import UsageLoader


def create_dashboard_app(db: Database | None = None, loader_factory=UsageLoader) -> FastAPI:
    db = db or Database()

    @asynccontextmanager
    async def lifespan(app):
        await db.init()
        yield
        await db.close()

    app = FastAPI(title="TokenMeter", lifespan=lifespan)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "tokenmeter"}

    @app.get("/api/today")
    async def api_today(records: bool = Query(False)):
        report = await loader_factory().get_today_usage()
        await db.log_today(report)
        exclude = None if records else {"records"}
        return report.model_dump(mode="json", by_alias=True, exclude=exclude)

    @app.get("/api/session")
    async def api_session(workspace: str | None = Query(None)):
        report = await loader_factory(workspace_path=workspace).get_current_session_usage()
        await db.log_session(report)
        return report.model_dump(mode="json", by_alias=True)

    @app.get("/api/history")
    async def api_history(limit: int = Query(50, ge=1, le=500), kind: str | None = Query(None)):
        entries = await db.get_recent(limit, kind)
        return [e.model_dump(mode="json", by_alias=True) for e in entries]

    return app
