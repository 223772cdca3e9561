"""Configuration and dependency wiring for the DocChat application."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal

from domain.errors import InvalidConfig
from domain.interfaces import EmbeddingModel, TextExtractor, TextGenerator, VectorIndex
from application.prompts import templates_for
from application.services.batch_embedder import BatchEmbedder
from application.services.chat_orchestrator import ChatOrchestrator
from application.services.context_assembler import ContextAssembler
from application.services.conversation_store import ConversationStore
from application.services.document_store import DocumentStore
from application.services.marketing_agents import ContentAgent, StrategyAgent, agent_prompts_for
from infrastructure.embedding.gemini_embedder import GeminiEmbeddingModel
from infrastructure.embedding.mean_word_hash_embedder import MeanWordHashEmbedder
from infrastructure.generation.gemini_generator import GeminiConfig, GeminiGenerator
from infrastructure.generation.ollama_generator import OllamaConfig, OllamaGenerator
from infrastructure.repositories.sqlite_chunk_repository import SqliteChunkRepository
from infrastructure.repositories.sqlite_conversation_repository import SqliteConversationRepository
from infrastructure.repositories.sqlite_database import SqliteDatabase, connect_store
from infrastructure.repositories.sqlite_document_repository import SqliteDocumentRepository
from infrastructure.repositories.sqlite_message_repository import SqliteMessageRepository
from infrastructure.splitting.sentence_window_splitter import SentenceWindowSplitter
from infrastructure.storage.sqlite_vector_index import SqliteVectorIndex
from infrastructure.text_extraction.html_extractor import HtmlExtractor
from infrastructure.text_extraction.pdf_extractor import PdfExtractor
from infrastructure.text_extraction.plain_text_extractor import PlainTextExtractor
from infrastructure.text_extraction.url_extractor import UrlExtractor

logger = logging.getLogger(__name__)

EmbedderName = Literal["gemini", "sentence-transformers", "hash"]
GeneratorName = Literal["auto", "gemini", "ollama"]
VectorIndexName = Literal["exact", "hnsw"]


@dataclass(slots=True)
class AppConfig:
    """Application settings; ``from_env`` reads ``DOCCHAT_*`` variables."""

    db_path: str = "docchat.db"
    chunk_size: int = 1000
    chunk_overlap: int = 200
    embedder: EmbedderName = "hash"
    embedding_model: str = "text-embedding-004"
    sentence_transformers_model: str = "sentence-transformers/all-mpnet-base-v2"
    embedding_dimension: int = 768
    embed_batch_size: int = 5
    embed_concurrency: int = 5
    vector_index: VectorIndexName = "exact"
    chat_top_k: int = 3
    chat_min_similarity: float = 0.6
    search_limit: int = 5
    search_min_similarity: float = 0.7
    generator: GeneratorName = "auto"
    generation_model: str = "gemini-2.0-flash"
    ollama_model: str = "llama3.1"
    ollama_url: str = "http://localhost:11434"
    temperature: float = 0.7
    max_output_tokens: int = 2048
    grounding_enabled: bool = True
    prompt_language: str = "en"
    google_api_key: str | None = field(default=None, repr=False)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        api_key = env.get("GOOGLE_API_KEY") or env.get("GEMINI_API_KEY") or None
        defaults = cls()
        return cls(
            db_path=env.get("DOCCHAT_DB_PATH", defaults.db_path),
            chunk_size=_env_int(env, "DOCCHAT_CHUNK_SIZE", defaults.chunk_size),
            chunk_overlap=_env_int(env, "DOCCHAT_CHUNK_OVERLAP", defaults.chunk_overlap),
            embedder=env.get("DOCCHAT_EMBEDDER", "gemini" if api_key else "hash"),  # type: ignore[arg-type]
            embedding_model=env.get("DOCCHAT_EMBEDDING_MODEL", defaults.embedding_model),
            sentence_transformers_model=env.get(
                "DOCCHAT_SENTENCE_TRANSFORMERS_MODEL", defaults.sentence_transformers_model
            ),
            embedding_dimension=_env_int(env, "DOCCHAT_EMBEDDING_DIMENSION", defaults.embedding_dimension),
            embed_batch_size=_env_int(env, "DOCCHAT_EMBED_BATCH_SIZE", defaults.embed_batch_size),
            embed_concurrency=_env_int(env, "DOCCHAT_EMBED_CONCURRENCY", defaults.embed_concurrency),
            vector_index=env.get("DOCCHAT_VECTOR_INDEX", defaults.vector_index),  # type: ignore[arg-type]
            chat_top_k=_env_int(env, "DOCCHAT_CHAT_TOP_K", defaults.chat_top_k),
            chat_min_similarity=_env_float(env, "DOCCHAT_CHAT_MIN_SIMILARITY", defaults.chat_min_similarity),
            search_limit=_env_int(env, "DOCCHAT_SEARCH_LIMIT", defaults.search_limit),
            search_min_similarity=_env_float(env, "DOCCHAT_SEARCH_MIN_SIMILARITY", defaults.search_min_similarity),
            generator=env.get("DOCCHAT_GENERATOR", defaults.generator),  # type: ignore[arg-type]
            generation_model=env.get("DOCCHAT_GENERATION_MODEL", defaults.generation_model),
            ollama_model=env.get("DOCCHAT_OLLAMA_MODEL", defaults.ollama_model),
            ollama_url=env.get("OLLAMA_URL", defaults.ollama_url),
            temperature=_env_float(env, "DOCCHAT_TEMPERATURE", defaults.temperature),
            max_output_tokens=_env_int(env, "DOCCHAT_MAX_OUTPUT_TOKENS", defaults.max_output_tokens),
            grounding_enabled=_env_bool(env, "DOCCHAT_GROUNDING", defaults.grounding_enabled),
            prompt_language=env.get("DOCCHAT_PROMPT_LANGUAGE", defaults.prompt_language),
            google_api_key=api_key,
        )


def _env_int(env: dict[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidConfig(f"{name} must be an integer, got {raw!r}.") from exc


def _env_float(env: dict[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidConfig(f"{name} must be a number, got {raw!r}.") from exc


def _env_bool(env: dict[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Container:
    """Bundle of the wired services and their infrastructure."""

    config: AppConfig
    database: SqliteDatabase
    document_repository: SqliteDocumentRepository
    chunk_repository: SqliteChunkRepository
    vector_index: VectorIndex
    embedder: BatchEmbedder
    generator: TextGenerator
    extractors: dict[str, TextExtractor]
    document_store: DocumentStore
    conversation_store: ConversationStore
    assembler: ContextAssembler
    orchestrator: ChatOrchestrator
    strategy_agent: StrategyAgent
    content_agent: ContentAgent


def _hash_embedder(config: AppConfig) -> EmbeddingModel:
    return MeanWordHashEmbedder(dimension=config.embedding_dimension)


def _gemini_embedder(config: AppConfig) -> EmbeddingModel:
    if not config.google_api_key:
        raise InvalidConfig("The gemini embedder requires GOOGLE_API_KEY or GEMINI_API_KEY.")
    return GeminiEmbeddingModel(
        config.google_api_key,
        model=config.embedding_model,
        dimension=config.embedding_dimension,
    )


def _sentence_transformers_embedder(config: AppConfig) -> EmbeddingModel:
    from infrastructure.embedding.sentence_transformers_embedder import SentenceTransformersEmbedder  # noqa: PLC0415

    return SentenceTransformersEmbedder(
        config.sentence_transformers_model,
        expected_dimension=config.embedding_dimension,
    )


_EMBEDDER_FACTORIES: dict[str, Callable[[AppConfig], EmbeddingModel]] = {
    "hash": _hash_embedder,
    "gemini": _gemini_embedder,
    "sentence-transformers": _sentence_transformers_embedder,
}


def build_embedding_model(config: AppConfig) -> EmbeddingModel:
    try:
        factory = _EMBEDDER_FACTORIES[config.embedder]
    except KeyError as exc:
        raise InvalidConfig(f"Unknown embedder '{config.embedder}'") from exc
    return factory(config)


def resolve_generator(config: AppConfig) -> TextGenerator:
    """Pick the generation backend once at startup.

    ``auto`` selects Gemini when an API key is configured and a local
    Ollama server otherwise.
    """
    choice = config.generator
    if choice == "auto":
        choice = "gemini" if config.google_api_key else "ollama"
    if choice == "gemini":
        if not config.google_api_key:
            raise InvalidConfig("The gemini generator requires GOOGLE_API_KEY or GEMINI_API_KEY.")
        logger.info("Using Gemini generator %s", config.generation_model)
        return GeminiGenerator(
            GeminiConfig(
                api_key=config.google_api_key,
                model=config.generation_model,
                temperature=config.temperature,
                max_output_tokens=config.max_output_tokens,
                grounding_enabled=config.grounding_enabled,
            )
        )
    if choice == "ollama":
        logger.info("Using Ollama generator %s at %s", config.ollama_model, config.ollama_url)
        return OllamaGenerator(
            OllamaConfig(
                model=config.ollama_model,
                url=config.ollama_url,
                temperature=config.temperature,
                max_output_tokens=config.max_output_tokens,
            )
        )
    raise InvalidConfig(f"Unknown generator '{config.generator}'")


def build_vector_index(config: AppConfig, database: SqliteDatabase) -> VectorIndex:
    exact = SqliteVectorIndex(database, dimension=config.embedding_dimension)
    if config.vector_index == "exact":
        return exact
    if config.vector_index == "hnsw":
        from infrastructure.storage.hnsw_vector_index import HnswVectorIndex  # noqa: PLC0415

        return HnswVectorIndex(exact)
    raise InvalidConfig(f"Unknown vector index '{config.vector_index}'")


def default_extractors() -> dict[str, TextExtractor]:
    html = HtmlExtractor()
    return {
        "txt": PlainTextExtractor(),
        "pdf": PdfExtractor(),
        "html": html,
        "url": UrlExtractor(html),
    }


def build_default_container(
    config: AppConfig | None = None,
    *,
    embedding_model: EmbeddingModel | None = None,
    generator: TextGenerator | None = None,
) -> Container:
    """Instantiate the default stack; ``embedding_model`` and ``generator`` override the configured backends."""

    cfg = config or AppConfig.from_env()
    database = connect_store(Path(cfg.db_path))
    document_repository = SqliteDocumentRepository(database)
    chunk_repository = SqliteChunkRepository(database)
    conversation_repository = SqliteConversationRepository(database)
    message_repository = SqliteMessageRepository(database)
    vector_index = build_vector_index(cfg, database)

    model = embedding_model or build_embedding_model(cfg)
    if model.dimension != vector_index.dimension:
        raise InvalidConfig(
            f"Embedding model {model.model_id} has dimension {model.dimension}, "
            f"the vector index expects {vector_index.dimension}."
        )
    embedder = BatchEmbedder(model, batch_size=cfg.embed_batch_size, max_concurrency=cfg.embed_concurrency)
    resolved_generator = generator or resolve_generator(cfg)

    document_store = DocumentStore(
        splitter=SentenceWindowSplitter(cfg.chunk_size, cfg.chunk_overlap),
        embedder=embedder,
        documents=document_repository,
        chunks=chunk_repository,
        vector_index=vector_index,
        transactions=database,
    )
    conversation_store = ConversationStore(
        conversations=conversation_repository,
        messages=message_repository,
        transactions=database,
    )
    assembler = ContextAssembler(
        conversations=conversation_store,
        embedder=embedder,
        vector_index=vector_index,
        chunk_repository=chunk_repository,
        document_repository=document_repository,
        supports_tools=resolved_generator.supports_tools,
        templates=templates_for(cfg.prompt_language),
        rag_top_k=cfg.chat_top_k,
        rag_min_similarity=cfg.chat_min_similarity,
    )
    orchestrator = ChatOrchestrator(
        conversations=conversation_store,
        assembler=assembler,
        generator=resolved_generator,
    )

    agent_prompts = agent_prompts_for(cfg.prompt_language)

    return Container(
        config=cfg,
        database=database,
        document_repository=document_repository,
        chunk_repository=chunk_repository,
        vector_index=vector_index,
        embedder=embedder,
        generator=resolved_generator,
        extractors=default_extractors(),
        document_store=document_store,
        conversation_store=conversation_store,
        assembler=assembler,
        orchestrator=orchestrator,
        strategy_agent=StrategyAgent(resolved_generator, agent_prompts),
        content_agent=ContentAgent(resolved_generator, agent_prompts),
    )


__all__ = [
    "AppConfig",
    "Container",
    "build_default_container",
    "build_embedding_model",
    "build_vector_index",
    "default_extractors",
    "resolve_generator",
]
