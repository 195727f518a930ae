"""FastAPI application exposing repository registration and analysis."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError
from ..engine import Engine
from ..models import AnalysisReport
from ..reporting import write_markdown_report
from ..stores import HistoryStore, RepoNotFoundError, RepoRef, RepoRegistry
from ..stores.history import DEFAULT_HISTORY_LIMIT


class RepoRequest(BaseModel):
    path: str
    name: Optional[str] = None


class RepoResponse(BaseModel):
    id: str
    name: str
    path: str
    added_at: str


class AnalysisRequest(BaseModel):
    overrides: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    write_report: bool = True


class HealthResponse(BaseModel):
    status: str


def _repo_response(ref: RepoRef) -> RepoResponse:
    return RepoResponse(id=ref.id, name=ref.name, path=ref.path, added_at=ref.added_at)


def create_app(
    engine_factory: Callable[[RepoRegistry], Engine] | None = None,
    registry: RepoRegistry | None = None,
    history: HistoryStore | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing vibelint operations."""

    repos = registry if registry is not None else RepoRegistry()
    store = history if history is not None else HistoryStore()
    factory = engine_factory or (lambda reg: Engine(registry=reg))

    app = FastAPI(title="vibelint", version="0.1.0")

    async def get_engine() -> Engine:
        # Fresh engine per request; runs share nothing.
        return factory(repos)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/api/repos", response_model=List[RepoResponse])
    async def list_repos() -> List[RepoResponse]:
        return [_repo_response(ref) for ref in repos.list()]

    @app.post("/api/repos", response_model=RepoResponse, status_code=201)
    async def add_repo(payload: RepoRequest) -> RepoResponse:
        ref = repos.add(Path(payload.path), name=payload.name)
        return _repo_response(ref)

    @app.delete("/api/repos/{repo_id}", status_code=204)
    async def remove_repo(repo_id: str) -> Response:
        repos.remove(repo_id)
        return Response(status_code=204)

    @app.post("/api/repos/{repo_id}/analysis")
    async def run_analysis(
        repo_id: str,
        payload: Optional[AnalysisRequest] = None,
        engine: Engine = Depends(get_engine),
    ) -> Dict[str, Any]:
        request = payload or AnalysisRequest()
        ref = repos.get(repo_id)

        def _run() -> AnalysisReport:
            report = engine.run(ref.id, request.overrides or None)
            if request.write_report:
                write_markdown_report(report)
            store.record(report)
            return report

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run)
        return report.to_dict()

    @app.get("/api/repos/{repo_id}/analysis/latest")
    async def latest_analysis(repo_id: str) -> Dict[str, Any]:
        ref = repos.get(repo_id)
        latest = store.latest(ref.id)
        if latest is None:
            raise HTTPException(status_code=404, detail="No analysis found")
        return latest

    @app.get("/api/repos/{repo_id}/analysis/history")
    async def analysis_history(repo_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> Dict[str, Any]:
        ref = repos.get(repo_id)
        return {
            "analyses": store.history(ref.id, limit=limit),
            "metrics": store.metrics(ref.id, limit=limit),
        }

    @app.exception_handler(RepoNotFoundError)
    async def repo_not_found_handler(_: Any, exc: RepoNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        # Covers RepoMissingError and registering a path that does not exist.
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
