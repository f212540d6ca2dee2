"""
HTTP layer for Project CCI.

Provides a lightweight FastAPI server to browse the course catalog, serve
catalogued files and trigger catalog rebuilds.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel

from cci.core.logging_setup import configure_logging
from cci.core.media_types import content_type_for
from cci.infrastructure.catalog_store import Course
from cci.services import (
    CatalogError,
    CourseNotFoundError,
    RescanInProgressError,
    RootNotFoundError,
    ServicesContainer,
    create_services,
)

logger = logging.getLogger(__name__)


class ScanRequest(BaseModel):
    root_path: str


class CourseResponse(BaseModel):
    id: int
    name: str
    path: str
    created_at: str


def _to_course_response(course: Course) -> CourseResponse:
    """Convert Course to API response model."""
    return CourseResponse(
        id=course.id,
        name=course.name,
        path=course.path,
        created_at=course.created_at.isoformat(),
    )


def create_app(services: ServicesContainer | None = None) -> FastAPI:
    """
    FastAPI application factory (config sourced from .env).

    Args:
        services: Pre-built services to serve. If None, services are created
                  from configuration and logging is configured from it.
    """
    if services is None:
        services = create_services()
        configure_logging(services.config.logging)

    store = services.store
    catalog_service = services.catalog_service
    scan_orchestrator = services.scan_orchestrator

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        close = getattr(store, "close", None)
        if close:
            close()

    app = FastAPI(
        title="Course Catalog Indexer",
        version="0.1.0",
        description="HTTP interface for browsing and rebuilding the course catalog.",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/courses", response_model=list[CourseResponse])
    async def list_courses():
        try:
            return [_to_course_response(c) for c in catalog_service.list_courses()]
        except Exception as exc:
            logger.error(f"Error in /courses: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

    @app.get("/courses/{course_id}", response_model=CourseResponse)
    async def get_course(course_id: int):
        try:
            return _to_course_response(catalog_service.get_course(course_id))
        except CourseNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except Exception as exc:
            logger.error(f"Error in /courses/{course_id}: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

    @app.get("/courses/{course_id}/items")
    async def course_items(course_id: int):
        try:
            nodes = catalog_service.load_tree(course_id)
            return [node.to_dict() for node in nodes]
        except CourseNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except Exception as exc:
            logger.error(f"Error in /courses/{course_id}/items: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

    @app.post("/courses/scan")
    async def scan(req: ScanRequest):
        try:
            result = await asyncio.to_thread(scan_orchestrator.rescan, req.root_path)
            return result.__dict__
        except RootNotFoundError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except RescanInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        except CatalogError as exc:
            logger.error(f"Error in /courses/scan: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(exc))
        except Exception as exc:
            logger.error(f"Error in /courses/scan: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

    @app.get("/files")
    async def serve_file(path: str = Query(..., description="Catalogued file path")):
        # Only paths recorded as file items are served
        try:
            item = catalog_service.find_file(path)
        except Exception as exc:
            logger.error(f"Error in /files: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

        if item is None:
            raise HTTPException(status_code=404, detail="File not found in catalog")
        file_path = Path(item.path)
        if not file_path.is_file():
            raise HTTPException(status_code=404, detail="File no longer exists")

        return FileResponse(
            file_path,
            media_type=content_type_for(file_path),
            filename=item.name,
            content_disposition_type="inline",
        )

    @app.get("/status")
    async def status():
        try:
            stats = catalog_service.get_stats()
            return {
                **stats,
                "db_path": str(getattr(store, "db_path", "")),
                "scan_in_progress": scan_orchestrator.is_running(),
            }
        except Exception as exc:
            logger.error(f"Error in /status: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

    return app
