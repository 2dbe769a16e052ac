from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from memwatch.api.deps import get_config_reader, get_sampler
from memwatch.core.exceptions import ConfigFetchError, MethodNotAllowed, UpstreamListError
from memwatch.core.logging import api_logger
from memwatch.services.config_reader import ConfigReader
from memwatch.services.mem_info import format_mem_info
from memwatch.services.sampler import NodeAvailabilitySampler

router = APIRouter(tags=["memory"])


def _client_address(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return f"{request.client.host}:{request.client.port}"


# Sync handler, runs in the threadpool
@router.get("/get_mem", response_class=PlainTextResponse)
def get_memory(
    request: Request,
    sampler: NodeAvailabilitySampler = Depends(get_sampler),
    config_reader: ConfigReader = Depends(get_config_reader),
):
    """Current available memory per node in MB, then reserved MB, underscore-joined."""
    client_ip = _client_address(request)
    api_logger.info(f"Received memory request from {client_ip}")

    try:
        samples = sampler.sample()
    except UpstreamListError as e:
        api_logger.error(f"Error getting memory metrics for client {client_ip}: {e}")
        return PlainTextResponse(f"Error getting memory metrics: {e}", status_code=500)

    try:
        cfg = config_reader.read()
    except ConfigFetchError as e:
        api_logger.error(f"Error loading config for client {client_ip}: {e}")
        return PlainTextResponse(f"Error loading config: {e}", status_code=500)

    response = format_mem_info(samples, cfg.reserve_mem_bytes)
    api_logger.info(f"Sending memory info to client {client_ip}: {response}")
    return PlainTextResponse(response)


@router.api_route(
    "/get_mem",
    methods=["POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def reject_memory_method(request: Request):
    api_logger.warning(
        f"Invalid request method from {_client_address(request)}: {request.method}"
    )
    raise MethodNotAllowed(request.method)
