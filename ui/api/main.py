"""FastAPI layer that exposes ingest, search and chat operations."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from fastapi import FastAPI, File, Query as FastAPIQuery, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from application.use_cases.ingest_documents import detect_kind, ingest_document
from application.use_cases.search import search_documents
from domain.errors import DocChatError, GenerationFailed, GenerationFailureKind, InvalidConfig, NotFound
from infrastructure.config import Container, build_default_container
from ui.logging_utils import setup_logging

logger = logging.getLogger(__name__)

_GENERATION_STATUS = {
    GenerationFailureKind.QUOTA_EXCEEDED: 429,
    GenerationFailureKind.PERMISSION_DENIED: 403,
    GenerationFailureKind.MODEL_NOT_FOUND: 502,
    GenerationFailureKind.UNKNOWN: 502,
}


class IngestResponse(BaseModel):
    success: bool = True
    document_id: str
    chunk_count: int


class UrlIngestRequest(BaseModel):
    url: str


class DocumentSummary(BaseModel):
    id: str
    filename: str
    file_type: str
    file_size: int
    created_at: datetime


class SearchHit(BaseModel):
    chunk_id: str
    document_id: str
    filename: str
    chunk_index: int
    similarity: float
    content: str


class SearchResponse(BaseModel):
    query: str
    results: list[SearchHit]


class ChatRequest(BaseModel):
    message: str
    conversation_id: str | None = None
    use_grounding: bool = True
    use_rag: bool = True


class RagSourcePayload(BaseModel):
    filename: str
    preview: str
    similarity: float
    chunk_index: int


class ChatResponse(BaseModel):
    success: bool = True
    content: str
    conversation_id: str
    sources: dict[str, list[RagSourcePayload]] = {}


class ConversationSummary(BaseModel):
    id: str
    title: str | None
    updated_at: datetime


class HistoryItem(BaseModel):
    role: str
    content: str


class DeleteResponse(BaseModel):
    success: bool = True


class StrategyRequest(BaseModel):
    knowledge_base: str


class StrategyResponse(BaseModel):
    success: bool = True
    strategy: str


class ContentRequest(BaseModel):
    strategy: str
    knowledge_base: str


class ContentResponse(BaseModel):
    success: bool = True
    posts: list[str]


def status_for(error: DocChatError) -> int:
    if isinstance(error, InvalidConfig):
        return 400
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, GenerationFailed):
        return _GENERATION_STATUS[error.kind]
    return 500


def create_app(container: Container | None = None) -> FastAPI:
    """Build the API; without an explicit container one is wired from the environment at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging()
        if getattr(app.state, "container", None) is None:
            app.state.container = build_default_container()
        yield

    app = FastAPI(title="DocChat API", lifespan=lifespan)
    app.state.container = container

    def services(request: Request) -> Container:
        return request.app.state.container

    @app.exception_handler(DocChatError)
    async def domain_error_handler(request: Request, exc: DocChatError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        message = exc.user_message if isinstance(exc, GenerationFailed) else str(exc)
        return JSONResponse(status_code=status, content={"success": False, "error": message})

    @app.post("/documents", response_model=IngestResponse)
    def upload_document(request: Request, file: UploadFile = File(...)) -> IngestResponse:
        filename = file.filename or "upload.txt"
        content = file.file.read()
        result = ingest_document(
            filename,
            detect_kind(filename),
            content,
            extractors=services(request).extractors,
            document_store=services(request).document_store,
        )
        return IngestResponse(document_id=result.document_id, chunk_count=result.chunk_count)

    @app.post("/documents/url", response_model=IngestResponse)
    def ingest_url(request: Request, payload: UrlIngestRequest) -> IngestResponse:
        result = ingest_document(
            payload.url,
            "url",
            payload.url,
            extractors=services(request).extractors,
            document_store=services(request).document_store,
        )
        return IngestResponse(document_id=result.document_id, chunk_count=result.chunk_count)

    @app.get("/documents", response_model=list[DocumentSummary])
    def list_documents(request: Request) -> list[DocumentSummary]:
        return [
            DocumentSummary(
                id=doc.id,
                filename=doc.filename,
                file_type=doc.file_type,
                file_size=doc.file_size,
                created_at=doc.created_at,
            )
            for doc in services(request).document_store.list()
        ]

    @app.delete("/documents/{document_id}", response_model=DeleteResponse)
    def delete_document(request: Request, document_id: str) -> DeleteResponse:
        services(request).document_store.delete(document_id)
        return DeleteResponse()

    @app.get("/search", response_model=SearchResponse)
    def search_endpoint(
        request: Request,
        q: str = FastAPIQuery(..., description="User query"),
        limit: int | None = FastAPIQuery(None, description="Maximum number of chunks"),
        min_similarity: float | None = FastAPIQuery(None, description="Similarity threshold"),
    ) -> SearchResponse:
        c = services(request)
        results = search_documents(
            q,
            embedder=c.embedder,
            vector_index=c.vector_index,
            chunk_repository=c.chunk_repository,
            document_repository=c.document_repository,
            limit=limit if limit is not None else c.config.search_limit,
            min_similarity=min_similarity if min_similarity is not None else c.config.search_min_similarity,
        )
        hits = [
            SearchHit(
                chunk_id=result.chunk_id,
                document_id=result.document_id,
                filename=result.filename,
                chunk_index=result.chunk_index,
                similarity=result.similarity,
                content=result.content,
            )
            for result in results
        ]
        return SearchResponse(query=q, results=hits)

    @app.post("/chat", response_model=ChatResponse)
    def chat_endpoint(request: Request, payload: ChatRequest) -> ChatResponse:
        reply = services(request).orchestrator.send_message(
            payload.message,
            payload.conversation_id,
            use_grounding=payload.use_grounding,
            use_rag=payload.use_rag,
        )
        sources = {
            key: [
                RagSourcePayload(
                    filename=source.filename,
                    preview=source.preview,
                    similarity=source.similarity,
                    chunk_index=source.chunk_index,
                )
                for source in items
            ]
            for key, items in reply.sources.items()
        }
        return ChatResponse(content=reply.content, conversation_id=reply.conversation_id, sources=sources)

    @app.get("/conversations", response_model=list[ConversationSummary])
    def list_conversations(request: Request) -> list[ConversationSummary]:
        return [
            ConversationSummary(id=conv.id, title=conv.title, updated_at=conv.updated_at)
            for conv in services(request).conversation_store.list()
        ]

    @app.get("/conversations/{conversation_id}/messages", response_model=list[HistoryItem])
    def conversation_history(request: Request, conversation_id: str) -> list[HistoryItem]:
        return [
            HistoryItem(role=item["role"], content=item["content"])
            for item in services(request).conversation_store.history(conversation_id)
        ]

    @app.delete("/conversations/{conversation_id}", response_model=DeleteResponse)
    def delete_conversation(request: Request, conversation_id: str) -> DeleteResponse:
        services(request).conversation_store.delete(conversation_id)
        return DeleteResponse()

    @app.post("/agents/strategy", response_model=StrategyResponse)
    def strategy_endpoint(request: Request, payload: StrategyRequest) -> StrategyResponse:
        return StrategyResponse(strategy=services(request).strategy_agent.run(payload.knowledge_base))

    @app.post("/agents/content", response_model=ContentResponse)
    def content_endpoint(request: Request, payload: ContentRequest) -> ContentResponse:
        posts = services(request).content_agent.run(payload.strategy, payload.knowledge_base)
        return ContentResponse(posts=posts)

    return app


app = create_app()


__all__ = ["app", "create_app", "status_for"]
