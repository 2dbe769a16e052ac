from typing import Optional

from fastapi import Request
from sqlalchemy.engine import Engine

from memwatch.services.collection_task import CollectionTask
from memwatch.services.config_reader import ConfigReader
from memwatch.services.sampler import NodeAvailabilitySampler


# Collaborators are built once at startup and stored on app.state
def get_config_reader(request: Request) -> ConfigReader:
    return request.app.state.config_reader


def get_sampler(request: Request) -> NodeAvailabilitySampler:
    return request.app.state.sampler


def get_collection_task(request: Request) -> Optional[CollectionTask]:
    return getattr(request.app.state, "collection_task", None)


def get_engine(request: Request) -> Optional[Engine]:
    return getattr(request.app.state, "engine", None)
