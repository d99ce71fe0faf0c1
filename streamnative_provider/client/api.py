"""
Cloud API client: typed CRUD against the Kubernetes-style cloud API server.

Objects are addressed as
``/apis/cloud.streamnative.io/v1alpha1/namespaces/{organization}/{plural}/{name}``
(cluster-scoped kinds drop the namespace segment). Error responses carry a
Kubernetes ``Status`` body which is mapped onto the ApiError hierarchy.
"""

import logging
from typing import Any, List, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import ValidationError

from streamnative_provider.client.errors import (
    ApiError,
    ApiUnavailableError,
    ConflictError,
    NotFoundError,
)
from streamnative_provider.models.meta import API_VERSION, CloudObject

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=CloudObject)

CREATE_FIELD_MANAGER = "terraform-create"
UPDATE_FIELD_MANAGER = "terraform-update"


class CloudApi(Protocol):
    """The operations resource handlers and the poller depend on."""

    def get(self, kind: Type[T], namespace: Optional[str], name: str) -> T: ...

    def list(self, kind: Type[T], namespace: Optional[str]) -> List[T]: ...

    def create(self, obj: T, field_manager: str = CREATE_FIELD_MANAGER) -> T: ...

    def update(self, obj: T, field_manager: str = UPDATE_FIELD_MANAGER) -> T: ...

    def delete(
        self,
        kind: Type[CloudObject],
        namespace: Optional[str],
        name: str,
        propagation_policy: Optional[str] = None,
    ) -> None: ...


def object_path(kind: Type[CloudObject], namespace: Optional[str], name: str = "") -> str:
    base = f"/apis/{API_VERSION}"
    if kind.NAMESPACED:
        if not namespace:
            raise ValueError(f"{kind.KIND} is namespaced; an organization is required")
        path = f"{base}/namespaces/{namespace}/{kind.PLURAL}"
    else:
        path = f"{base}/{kind.PLURAL}"
    if name:
        path = f"{path}/{name}"
    return path


class CloudClient:
    """
    HTTP implementation of CloudApi.

    The underlying httpx.Client is injectable so tests can route requests
    through httpx.MockTransport.
    """

    def __init__(
        self,
        api_server: str,
        auth: Optional[httpx.Auth] = None,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_server = api_server.rstrip("/")
        self._http = http_client or httpx.Client(
            base_url=self.api_server,
            auth=auth,
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def get(self, kind: Type[T], namespace: Optional[str], name: str) -> T:
        path = object_path(kind, namespace, name)
        return _decode(kind, self._request("GET", path), "GET", path)

    def list(self, kind: Type[T], namespace: Optional[str]) -> List[T]:
        path = object_path(kind, namespace)
        data = self._request("GET", path)
        return [_decode(kind, item, "GET", path) for item in data.get("items", [])]

    def create(self, obj: T, field_manager: str = CREATE_FIELD_MANAGER) -> T:
        kind = type(obj)
        logger.info("Creating %s %s", kind.KIND, _describe(obj))
        path = object_path(kind, obj.metadata.namespace)
        data = self._request(
            "POST",
            path,
            json=obj.to_wire(),
            params={"fieldManager": field_manager},
        )
        return _decode(kind, data, "POST", path)

    def update(self, obj: T, field_manager: str = UPDATE_FIELD_MANAGER) -> T:
        kind = type(obj)
        logger.info("Updating %s %s", kind.KIND, _describe(obj))
        path = object_path(kind, obj.metadata.namespace, obj.metadata.name)
        data = self._request(
            "PUT",
            path,
            json=obj.to_wire(),
            params={"fieldManager": field_manager},
        )
        return _decode(kind, data, "PUT", path)

    def delete(
        self,
        kind: Type[CloudObject],
        namespace: Optional[str],
        name: str,
        propagation_policy: Optional[str] = None,
    ) -> None:
        logger.info("Deleting %s %s/%s", kind.KIND, namespace, name)
        body = None
        if propagation_policy:
            body = {
                "kind": "DeleteOptions",
                "apiVersion": "v1",
                "propagationPolicy": propagation_policy,
            }
        self._request("DELETE", object_path(kind, namespace, name), json=body)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        if kwargs.get("json") is None:
            kwargs.pop("json", None)
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiUnavailableError(
                f"{method} {path}: {exc}"
            ) from exc

        if response.is_success:
            if not response.content:
                return {}
            try:
                data = response.json()
            except ValueError as exc:
                raise ApiError(
                    f"{method} {path}: response body is not JSON",
                    status_code=response.status_code,
                    reason="InvalidResponse",
                ) from exc
            if not isinstance(data, dict):
                raise ApiError(
                    f"{method} {path}: expected a JSON object, got {type(data).__name__}",
                    status_code=response.status_code,
                    reason="InvalidResponse",
                )
            return data
        raise _error_from_response(method, path, response)


def _decode(kind: Type[T], data: Any, method: str, path: str) -> T:
    try:
        return kind.model_validate(data)
    except ValidationError as exc:
        raise ApiError(
            f"{method} {path}: malformed {kind.KIND}: {exc.error_count()} validation error(s)",
            reason="InvalidResponse",
        ) from exc


def _error_from_response(method: str, path: str, response: httpx.Response) -> ApiError:
    message = response.text or response.reason_phrase
    reason = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("kind") == "Status":
        message = body.get("message") or message
        reason = body.get("reason")

    message = f"{method} {path}: {message}"
    if response.status_code == 404 or reason == "NotFound":
        return NotFoundError(message, reason=reason or "NotFound")
    if response.status_code == 409:
        return ConflictError(message, reason=reason or "AlreadyExists")
    return ApiError(message, status_code=response.status_code, reason=reason)


def _describe(obj: CloudObject) -> str:
    if obj.metadata.namespace:
        return f"{obj.metadata.namespace}/{obj.metadata.name or '<generated>'}"
    return obj.metadata.name
