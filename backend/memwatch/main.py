"""
Process entrypoint: builds the Kubernetes and database collaborators, wires
them into the FastAPI app and serves it with uvicorn.

Any failure before the server starts is fatal.
"""
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.engine import Engine

from memwatch import __version__
from memwatch.core.config import Settings, settings
from memwatch.core.exceptions import MemwatchError, MethodNotAllowed
from memwatch.core.logging import api_logger, logger
from memwatch.db.models import Base
from memwatch.db.session import create_db_engine, make_session_factory
from memwatch.routers import health, memory
from memwatch.services.cluster_client import create_cluster_client
from memwatch.services.collection_task import CollectionTask
from memwatch.services.config_reader import ConfigReader
from memwatch.services.persistence import PersistenceWriter
from memwatch.services.sampler import NodeAvailabilitySampler


def _method_not_allowed_response() -> PlainTextResponse:
    return PlainTextResponse("Method not allowed", status_code=405, headers={"Allow": "GET"})

def create_app(
    config_reader: ConfigReader,
    sampler: NodeAvailabilitySampler,
    collection_task: Optional[CollectionTask] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, version=__version__)

    app.state.config_reader = config_reader
    app.state.sampler = sampler
    app.state.collection_task = collection_task
    app.state.engine = engine

    app.include_router(memory.router)
    app.include_router(health.router)

    @app.exception_handler(MethodNotAllowed)
    async def method_not_allowed_handler(request: Request, exc: MethodNotAllowed):
        return _method_not_allowed_response()

    # Methods no route declares are rejected by the router itself
    @app.exception_handler(405)
    async def router_method_not_allowed_handler(request: Request, exc):
        api_logger.warning(f"Invalid request method on {request.url.path}: {request.method}")
        return _method_not_allowed_response()

    @app.on_event("startup")
    async def startup_event():
        if app.state.collection_task is not None:
            await app.state.collection_task.start()
            logger.info("Background node memory collection started")
        else:
            logger.info("Collection disabled, serving snapshots only")

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.collection_task is not None:
            await app.state.collection_task.stop()
        if app.state.engine is not None:
            app.state.engine.dispose()

    return app


def bootstrap(cfg: Settings = settings) -> FastAPI:
    """
    Build every collaborator and the app.

    Raises:
        MemwatchError: if the Kubernetes clients or the initial config read fail
        SQLAlchemyError: if the database cannot be reached in collect mode
    """
    logger.info(f"[bold green]Starting {cfg.PROJECT_NAME}[/bold green]")
    logger.info(f"Debug mode: {cfg.DEBUG}")
    logger.info(f"  [cyan]ConfigMap:[/cyan] {cfg.POD_NAMESPACE}/{cfg.CONFIGMAP_NAME}")
    logger.info(f"  [cyan]Row shape:[/cyan] {cfg.ROW_SHAPE}")

    cluster_client = create_cluster_client(cfg)
    config_reader = ConfigReader(
        cluster_client.core_api,
        namespace=cfg.POD_NAMESPACE,
        name=cfg.CONFIGMAP_NAME,
        request_timeout=cfg.KUBE_REQUEST_TIMEOUT,
    )
    sampler = NodeAvailabilitySampler(cluster_client)

    operating_config = config_reader.read()
    logger.info(f"Operating config loaded: {operating_config!r}")

    engine = None
    collection_task = None
    if operating_config.collects:
        engine = create_db_engine(operating_config)
        if cfg.CREATE_TABLES:
            Base.metadata.create_all(bind=engine)
        writer = PersistenceWriter(make_session_factory(engine), row_shape=cfg.ROW_SHAPE)
        collection_task = CollectionTask(config_reader, sampler, writer, operating_config)

    return create_app(config_reader, sampler, collection_task=collection_task, engine=engine)


def run():
    try:
        app = bootstrap()
    except MemwatchError as e:
        logger.critical(f"Startup failed: {e}")
        sys.exit(1)
    except Exception:
        logger.exception("Startup failed")
        sys.exit(1)

    logger.info(
        f"Starting HTTP server on {settings.HTTP_HOST}:{settings.HTTP_PORT} "
        f"({'collect-and-serve' if app.state.collection_task else 'passive-serve'})"
    )
    uvicorn.run(app, host=settings.HTTP_HOST, port=settings.HTTP_PORT)


if __name__ == "__main__":
    run()
