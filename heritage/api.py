import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .db import get_engine

logger = logging.getLogger("heritage-scraper")

app = FastAPI(title="Open Heritage 3D Read API", version=__version__)

# The dashboard runs on its own port and reads this API from the browser host
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"])


@app.get("/health")
def health():
    return {"ok": True, "version": __version__}


@app.get("/api/projects")
def projects():
    from .store import list_projects

    engine = get_engine()
    try:
        return list_projects(engine)
    except SQLAlchemyError as exc:
        logger.error("Error executing query: %s", exc)
        raise HTTPException(status_code=500, detail="Database query failed") from exc


@app.get("/api/status")
def status():
    from .scraper_observability import latest_status
    from .store import get_stats

    engine = get_engine()
    try:
        stats = get_stats(engine)
        runs = latest_status(engine)
    except SQLAlchemyError as exc:
        logger.error("Error executing query: %s", exc)
        raise HTTPException(status_code=500, detail="Database query failed") from exc
    return {"ok": True, "stats": stats, "runs": runs}
