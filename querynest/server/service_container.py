"""
Service container for dependency injection and lifecycle management.

Builds every service once at startup, hands them to the routes and closes
them again in reverse order on shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import asyncpg

from ..config.settings import Settings
from ..ingestion import IngestionPipeline
from ..llm import GeminiClient
from ..rag import OrchestratorConfig, RAGOrchestrator
from ..search import DocumentIndexService, ElasticsearchClient
from ..storage.database import ConversationService, MessageService, apply_schema
from ..utils.logging import log_event


@dataclass
class ServiceConfig:
    """
    Configuration for all core services.

    Kept separate from Settings so tests can build a container without
    touching the environment.
    """

    database_url: str
    settings: Settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceConfig":
        return cls(database_url=settings.database_url, settings=settings)


class ServiceInitializationError(Exception):
    """Raised when service initialization fails."""


class ServiceContainer:
    """
    Container for core services.

    Manages the lifecycle of:
    - PostgreSQL pool and the conversation/message services
    - Elasticsearch search client and document index service
    - Gemini client
    - RAG orchestrator and ingestion pipeline

    The database is required; startup fails without it. A missing or
    unreachable Elasticsearch only disables retrieval, and chat turns then
    answer with the search-failure reply.

    Usage:
        async with ServiceContainer(config) as container:
            turn = await container.orchestrator.handle_user_message(...)
    """

    def __init__(self, config: ServiceConfig):
        self.config = config
        self._initialized = False

        self.db_pool: Optional[asyncpg.Pool] = None
        self.conversation_service: Optional[ConversationService] = None
        self.message_service: Optional[MessageService] = None

        self.search_client: Optional[ElasticsearchClient] = None
        self.index_service: Optional[DocumentIndexService] = None
        self.model_client: Optional[GeminiClient] = None

        self.orchestrator: Optional[RAGOrchestrator] = None
        self.ingestion_pipeline: Optional[IngestionPipeline] = None

    @property
    def settings(self) -> Settings:
        return self.config.settings

    async def initialize(self) -> None:
        """
        Initialize all services in dependency order.

        Raises:
            ServiceInitializationError: If a required service fails
        """
        if self._initialized:
            log_event("service_container_already_initialized", level=logging.WARNING)
            return

        try:
            log_event(
                "service_container_init_start",
                {
                    "database_url": self._mask_db_password(self.config.database_url),
                    "elastic_url": self.settings.elastic_url,
                    "llm_model": self.settings.llm_model,
                },
            )

            # Phase 1: external connections
            await self._init_database()
            await self._init_search()
            await self._init_model_client()

            # Phase 2: storage services
            self._init_conversation_services()

            # Phase 3: high-level services
            self._init_orchestrator()
            self._init_ingestion()

            self._initialized = True

            log_event(
                "service_container_initialized",
                {
                    "services": [
                        "database",
                        "conversation",
                        "message",
                        "search",
                        "index",
                        "model",
                        "orchestrator",
                        "ingestion",
                    ],
                    "status": "ready",
                },
            )

        except Exception as e:
            log_event(
                "service_container_init_failed",
                {"error": str(e), "error_type": type(e).__name__},
                level=logging.ERROR,
            )
            await self.cleanup()
            if isinstance(e, ServiceInitializationError):
                raise
            raise ServiceInitializationError(
                f"Failed to initialize services: {str(e)}"
            ) from e

    async def cleanup(self) -> None:
        """Cleanup all services in reverse initialization order."""
        log_event("service_container_cleanup_start")

        for name, client in (
            ("model_client", self.model_client),
            ("search_client", self.search_client),
        ):
            if client is None:
                continue
            try:
                await client.cleanup()
                log_event(f"{name}_cleaned_up")
            except Exception as e:
                log_event(
                    f"{name}_cleanup_error",
                    {"error": str(e)},
                    level=logging.WARNING,
                )

        if self.db_pool:
            try:
                await self.db_pool.close()
                log_event("database_pool_cleaned_up")
            except Exception as e:
                log_event(
                    "database_cleanup_error",
                    {"error": str(e)},
                    level=logging.WARNING,
                )

        self.db_pool = None
        self._initialized = False
        log_event("service_container_cleanup_complete")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()
        return False

    # Private initialization methods

    async def _init_database(self) -> None:
        """Create the asyncpg pool and apply the schema."""
        try:
            self.db_pool = await asyncpg.create_pool(
                self.config.database_url,
                min_size=self.settings.db_pool_min_size,
                max_size=self.settings.db_pool_max_size,
                max_inactive_connection_lifetime=300.0,
                command_timeout=60.0,
                server_settings={
                    "application_name": "querynest",
                    "jit": "off",
                    "timezone": "UTC",
                },
            )

            async with self.db_pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")

            if self.settings.apply_schema:
                await apply_schema(self.db_pool)

            log_event(
                "database_initialized",
                {
                    "url": self._mask_db_password(self.config.database_url),
                    "pool_min_size": self.settings.db_pool_min_size,
                    "pool_max_size": self.settings.db_pool_max_size,
                    "schema_applied": self.settings.apply_schema,
                    "postgres_version": version.split(",")[0] if version else "unknown",
                },
            )

        except asyncpg.InvalidCatalogNameError:
            raise ServiceInitializationError(
                "Database does not exist. Create it or check QUERYNEST_DATABASE_URL."
            ) from None
        except asyncpg.InvalidPasswordError:
            raise ServiceInitializationError(
                "Invalid database credentials. Check QUERYNEST_DATABASE_URL."
            ) from None
        except Exception as e:
            raise ServiceInitializationError(
                f"Failed to initialize database pool: {str(e)}"
            ) from e

    async def _init_search(self) -> None:
        settings = self.settings
        self.search_client = ElasticsearchClient(
            url=settings.elastic_url,
            index=settings.elastic_index,
            api_key=settings.elastic_api_key,
            username=settings.elastic_username,
            password=settings.elastic_password,
            timeout_seconds=settings.elastic_timeout_seconds,
        )
        await self.search_client.initialize()
        self.index_service = DocumentIndexService(self.search_client)

        if not self.search_client.is_configured:
            log_event(
                "search_not_configured",
                {"elastic_url": settings.elastic_url},
                level=logging.WARNING,
            )
            return

        result = await self.index_service.ensure_index()
        if result.is_failure():
            log_event(
                "index_ensure_failed",
                {"index": settings.elastic_index, "error": str(result.error)},
                level=logging.WARNING,
            )

    async def _init_model_client(self) -> None:
        settings = self.settings
        self.model_client = GeminiClient(
            api_key=settings.google_api_key,
            model=settings.llm_model,
            base_url=settings.google_base_url,
            timeout_seconds=settings.llm_timeout_seconds,
        )
        await self.model_client.initialize()

        if not settings.google_api_key:
            log_event(
                "model_not_configured",
                {"model": settings.llm_model},
                level=logging.WARNING,
            )

    def _init_conversation_services(self) -> None:
        if not self.db_pool:
            raise ServiceInitializationError("Database pool not initialized")
        self.conversation_service = ConversationService(self.db_pool)
        self.message_service = MessageService(self.db_pool)

    def _init_orchestrator(self) -> None:
        settings = self.settings
        config = OrchestratorConfig(
            default_max_results=settings.search_default_max_results,
            max_results_limit=settings.search_max_results_limit,
            tool_max_bytes=settings.tool_max_bytes,
            hits_sample_size=settings.tool_hits_sample_size,
        )
        self.orchestrator = RAGOrchestrator(
            message_service=self.message_service,
            search_client=self.search_client,
            model_client=self.model_client,
            config=config,
        )

    def _init_ingestion(self) -> None:
        self.ingestion_pipeline = IngestionPipeline(self.index_service)

    @staticmethod
    def _mask_db_password(url: str) -> str:
        try:
            parsed = urlparse(url)
            if parsed.password:
                return url.replace(f":{parsed.password}@", ":****@")
        except ValueError:
            pass
        return url
