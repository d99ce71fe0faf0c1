"""
Provider API: FastAPI endpoints over the resource handlers.

Exposes the provider's functionality via a REST API for:
- Schema inspection
- Resource create / read / update / delete / import
- Data source lookups

Handler failures come back as ``{"code": ..., "message": ...}`` with 404
when the remote object is missing, 504 when convergence timed out, and 400
otherwise.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ValidationError

from streamnative_provider.provider.config import ProviderConfig
from streamnative_provider.provider.registry import Provider
from streamnative_provider.resources.base import ProviderError, ResourceHandler

logger = logging.getLogger(__name__)


# --- Request/Response Models ---

class ImportRequest(BaseModel):
    id: str


# --- Error mapping ---

def _http_error(exc: ProviderError) -> HTTPException:
    if exc.not_found or exc.code.startswith("ERROR_UNKNOWN_"):
        status = 404
    elif exc.timed_out:
        status = 504
    else:
        status = 400
    logger.warning("%s failed with %d: %s", exc.code, status, exc.message)
    return HTTPException(status, {"code": exc.code, "message": exc.message})


def _with_wait_flag(model: BaseModel, wait_for_completion: Optional[bool]) -> BaseModel:
    """Override ``wait_for_completion`` on models that carry it."""
    if wait_for_completion is None or "wait_for_completion" not in type(model).model_fields:
        return model
    return model.model_copy(update={"wait_for_completion": wait_for_completion})


def _validate(model: type, body: dict) -> BaseModel:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise HTTPException(
            422, exc.errors(include_url=False, include_context=False, include_input=False)
        ) from exc


# --- Application Factory ---

def create_app(provider: Optional[Provider] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="StreamNative Provider API",
        description="Declarative provisioning for the StreamNative cloud control plane",
        version="0.1.0",
    )

    if provider is None:
        provider = Provider.configure(ProviderConfig.from_env())
    app.state.provider = provider

    def _handler(resource_type: str) -> ResourceHandler:
        try:
            return provider.resource(resource_type)
        except ProviderError as exc:
            raise _http_error(exc) from exc

    def _current_state(handler: ResourceHandler, organization: str, name: str) -> BaseModel:
        try:
            state = handler.read(organization, name)
        except ProviderError as exc:
            raise _http_error(exc) from exc
        if state is None:
            raise HTTPException(404, {
                "code": f"ERROR_READ_{handler.CODE}",
                "message": f"{organization}/{name} not found",
            })
        return state

    # === SCHEMA ===

    @app.get("/provider/schema")
    def get_schema():
        """Configuration and state schemas of every resource and data source."""
        return Provider.schema()

    # === RESOURCES ===

    @app.post("/resources/{resource_type}")
    def create_resource(resource_type: str, body: dict):
        """Create a resource and wait for it to converge."""
        handler = _handler(resource_type)
        config = _validate(handler.CONFIG, body)
        try:
            state = handler.create(config)
        except ProviderError as exc:
            raise _http_error(exc) from exc
        return state.model_dump(mode="json")

    @app.post("/resources/{resource_type}/import")
    def import_resource(resource_type: str, req: ImportRequest):
        """Adopt an existing remote object by ``<organization>/<name>``."""
        handler = _handler(resource_type)
        try:
            state = handler.import_state(req.id)
        except ProviderError as exc:
            raise _http_error(exc) from exc
        return state.model_dump(mode="json")

    @app.get("/resources/{resource_type}/{organization}/{name}")
    def read_resource(resource_type: str, organization: str, name: str):
        handler = _handler(resource_type)
        return _current_state(handler, organization, name).model_dump(mode="json")

    @app.put("/resources/{resource_type}/{organization}/{name}")
    def update_resource(
        resource_type: str,
        organization: str,
        name: str,
        body: dict,
        wait_for_completion: Optional[bool] = None,
    ):
        """Apply a new configuration to an existing resource."""
        handler = _handler(resource_type)
        config = _with_wait_flag(_validate(handler.CONFIG, body), wait_for_completion)
        state = _current_state(handler, organization, name)
        try:
            updated = handler.update(state, config)
        except ProviderError as exc:
            raise _http_error(exc) from exc
        return updated.model_dump(mode="json")

    @app.delete("/resources/{resource_type}/{organization}/{name}")
    def delete_resource(
        resource_type: str,
        organization: str,
        name: str,
        wait_for_completion: Optional[bool] = None,
    ):
        """Delete a resource; ``wait_for_completion=false`` skips the absence poll where supported."""
        handler = _handler(resource_type)
        state = _with_wait_flag(_current_state(handler, organization, name), wait_for_completion)
        try:
            handler.delete(state)
        except ProviderError as exc:
            raise _http_error(exc) from exc
        return {"deleted": f"{organization}/{name}"}

    # === DATA SOURCES ===

    @app.get("/data-sources/{source_type}/{organization}")
    def read_organization_scoped(source_type: str, organization: str):
        """Lookups addressed by organization alone, e.g. the organization itself."""
        return read_data_source(source_type, organization, None)

    @app.get("/data-sources/{source_type}/{organization}/{name}")
    def read_data_source(source_type: str, organization: str, name: Optional[str]):
        try:
            source = provider.data_source(source_type)
            data = source.read(organization, name)
        except ProviderError as exc:
            raise _http_error(exc) from exc
        return data.model_dump(mode="json")

    return app
