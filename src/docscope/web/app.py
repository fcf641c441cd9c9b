"""FastAPI application exposing the DocScope engine."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from docscope.ai.assistant import LANGUAGES, ChatAssistant
from docscope.compare.differ import ComparisonReport
from docscope.config import AppConfig
from docscope.errors import (
    AssistantError,
    AssistantUnavailable,
    DocScopeError,
    DocumentNotFound,
    InvalidRequest,
    ReindexConflict,
)
from docscope.service import DocScopeService

LOGGER = logging.getLogger(__name__)

_STATUS_CODES = {
    InvalidRequest: 400,
    DocumentNotFound: 404,
    ReindexConflict: 409,
    AssistantError: 502,
    AssistantUnavailable: 503,
}

router = APIRouter(prefix="/api")


class SearchPayload(BaseModel):
    query: str


class ComparePayload(BaseModel):
    document_id_1: str
    document_id_2: str


class CompareTextPayload(BaseModel):
    text_a: str
    text_b: str
    label_a: str = "Document 1"
    label_b: str = "Document 2"


class SettingsPayload(BaseModel):
    folders: Union[str, List[str]]
    exclude_patterns: Optional[Union[str, List[str]]] = None


class TranslatePayload(BaseModel):
    document_id: str
    target_language: str


class SummarizePayload(BaseModel):
    document_id: str
    length: str = "medium"


def get_service(request: Request) -> DocScopeService:
    return request.app.state.service


def _comparison_payload(report: ComparisonReport) -> Dict[str, Any]:
    stats = report.stats
    return {
        "label_a": report.label_a,
        "label_b": report.label_b,
        "identical": report.identical,
        "stats": {
            "added_lines": stats.added_lines,
            "removed_lines": stats.removed_lines,
            "unchanged_lines": stats.unchanged_lines,
            "total_lines": stats.total_lines,
            "changed_lines": stats.changed_lines,
            "added_words": stats.added_words,
            "removed_words": stats.removed_words,
            "similarity_percent": stats.similarity_percent,
        },
        "report": report.html,
    }


@router.get("/health")
async def health(service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    stats = service.stats()
    return {
        "status": "ok",
        "documents": stats.total_documents,
        "is_indexing": stats.is_indexing,
        "is_watching": stats.is_watching,
    }


@router.get("/stats")
async def get_stats(service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    return asdict(service.stats())


@router.get("/documents")
async def list_documents(service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    return {"documents": service.list_documents()}


@router.get("/documents/{doc_id}")
async def get_document(doc_id: str, service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    document = service.get_document(doc_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {doc_id}")
    return {"document": document}


@router.post("/search")
async def search_documents(
    payload: SearchPayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    return {"results": service.search(payload.query)}


@router.get("/duplicates")
async def find_duplicates(service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    return {"duplicates": service.find_duplicates()}


@router.post("/compare")
async def compare_documents(
    payload: ComparePayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    report = service.compare_documents(payload.document_id_1, payload.document_id_2)
    return _comparison_payload(report)


@router.post("/compare/text")
async def compare_text(
    payload: CompareTextPayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    report = service.compare(payload.text_a, payload.text_b, payload.label_a, payload.label_b)
    return _comparison_payload(report)


@router.post("/compare/ai")
async def compare_with_ai(
    payload: ComparePayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    analysis = await service.ai_compare(payload.document_id_1, payload.document_id_2)
    return {"success": True, "comparison": analysis}


@router.post("/reindex")
async def reindex(service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    report = await service.reindex()
    return {
        "success": True,
        "inserted": report.inserted,
        "updated": report.updated,
        "skipped": report.skipped,
        "failed": report.failed,
        "documents": len(service.index),
    }


@router.get("/settings")
async def get_settings(service: DocScopeService = Depends(get_service)) -> Dict[str, Any]:
    return {"folders": service.folders, "exclude_patterns": service.exclusions}


@router.post("/settings")
async def update_settings(
    payload: SettingsPayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    report = await service.reindex(payload.folders, payload.exclude_patterns)
    return {
        "success": True,
        "message": "Settings saved and documents re-indexed",
        "folders": service.folders,
        "exclude_patterns": service.exclusions,
        "inserted": report.inserted,
        "documents": len(service.index),
    }


@router.get("/languages")
async def get_languages() -> Dict[str, Any]:
    return {"languages": LANGUAGES}


@router.post("/translate")
async def translate_document(
    payload: TranslatePayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    translation = await service.translate(payload.document_id, payload.target_language)
    return {
        "success": True,
        "document_id": payload.document_id,
        "target_language": payload.target_language,
        "translation": translation,
    }


@router.post("/summarize")
async def summarize_document(
    payload: SummarizePayload, service: DocScopeService = Depends(get_service)
) -> Dict[str, Any]:
    summary = await service.summarize(payload.document_id, payload.length)
    return {"success": True, "document_id": payload.document_id, "summary": summary}


async def _handle_docscope_error(request: Request, exc: DocScopeError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _STATUS_CODES.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        LOGGER.error("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def _build_service(config: AppConfig) -> DocScopeService:
    assistant = None
    if config.openai_api_key:
        assistant = ChatAssistant.from_config(config)
    else:
        LOGGER.info("OPENAI_API_KEY not set, AI features disabled")
    return DocScopeService(config, assistant=assistant)


def create_app(config: AppConfig | None = None, service: DocScopeService | None = None) -> FastAPI:
    """Build the web application around a single service instance."""
    config = config or (service.config if service is not None else AppConfig.from_env())
    service = service or _build_service(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        try:
            await service.initialize(watch_enabled=config.watch)
        except InvalidRequest as exc:
            LOGGER.error("Failed to initialize document indexing: %s", exc)
        yield
        await service.stop_watching()

    app = FastAPI(title="DocScope", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service
    app.add_exception_handler(DocScopeError, _handle_docscope_error)
    app.include_router(router)
    return app
