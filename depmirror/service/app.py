"""FastAPI application entrypoint for depmirror service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

try:  # pragma: no cover - optional dependency
    from fastapi import Depends, FastAPI
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel

    _FASTAPI_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - service mode optional
    FastAPI = None  # type: ignore[assignment]
    Depends = None  # type: ignore[assignment]
    JSONResponse = None  # type: ignore[assignment]
    BaseModel = object  # type: ignore[assignment]
    _FASTAPI_AVAILABLE = False

from ..config import ConfigError
from ..errors import AnalysisError, ErrorKind
from ..pipeline import ProjectAnalyzer


class AnalyzeRequest(BaseModel):
    path: str
    write: bool = False


class MappingRequest(BaseModel):
    path: str
    files: Optional[List[str]] = None


class MappingResponse(BaseModel):
    total_files: int
    namespace: Optional[str] = None
    mappings: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


def _default_analyzer() -> ProjectAnalyzer:
    return ProjectAnalyzer()


async def _run_blocking(func: Callable[[], Any]) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    analyzer_factory: Callable[[], ProjectAnalyzer] = _default_analyzer,
) -> FastAPI:
    """Create the FastAPI application exposing depmirror operations."""

    if not _FASTAPI_AVAILABLE:  # pragma: no cover - validated via unit tests
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install depmirror[service]`."
        )

    app = FastAPI(title="depmirror", version="0.1.0")

    async def get_analyzer() -> ProjectAnalyzer:
        # A fresh analyzer per request keeps identifier registries independent.
        return analyzer_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        analyzer: ProjectAnalyzer = Depends(get_analyzer),
    ) -> Dict[str, Any]:
        if payload.write:
            outcome = await _run_blocking(lambda: analyzer.run_analysis(payload.path))
            return outcome.data.to_dict()
        data = await _run_blocking(lambda: analyzer.analyze(payload.path))
        return data.to_dict()

    @app.post("/mapping", response_model=MappingResponse)
    async def mapping(
        payload: MappingRequest,
        analyzer: ProjectAnalyzer = Depends(get_analyzer),
    ) -> MappingResponse:
        if payload.files:
            mapped = await _run_blocking(lambda: analyzer.map_files(payload.path, payload.files or []))
            return MappingResponse(
                total_files=len(mapped),
                mappings=[
                    {"source_file": source, "document_file": document}
                    for source, document in mapped.items()
                ],
            )
        table = await _run_blocking(lambda: analyzer.generate_project_mapping_table(payload.path))
        return MappingResponse(**table)

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(
        _: Any, exc: AnalysisError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        status = 404 if exc.kind is ErrorKind.INVALID_PROJECT_ROOT else 400
        return JSONResponse(
            status_code=status,
            content={"detail": str(exc), "kind": exc.kind.value},
        )

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    if not _FASTAPI_AVAILABLE:
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install depmirror[service]`."
        )

    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install uvicorn`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
