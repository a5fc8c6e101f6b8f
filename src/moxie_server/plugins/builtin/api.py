"""Generic REST API plugin.

Turns declaratively configured HTTP endpoints into tools, so a REST
service can be connected without writing a plugin:

    {
        "services": [
            {
                "id": "weather",
                "name": "Weather API",
                "base_url": "https://api.weather.example",
                "auth_type": "api_key",
                "auth_header": "X-API-Key",
                "auth_env": "WEATHER_API_KEY",
                "endpoints": [
                    {
                        "name": "current",
                        "path": "/v1/current/{city}",
                        "description": "Get current weather for a city",
                        "params": {
                            "city": {"type": "string", "required": true, "location": "path"}
                        }
                    }
                ]
            }
        ]
    }

Each endpoint becomes a tool named "<service id>_<endpoint name>", e.g.
"weather_current".
"""

import json
import logging
import os
import time
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field, ValidationError

from moxie_server.plugins.base import Plugin, PluginContext
from moxie_server.plugins.errors import (
    ConfigError,
    ExecutionFailedError,
    InvalidParametersError,
    ToolNotFoundError,
)
from moxie_server.plugins.manifest import (
    ConfigFieldBuilder,
    ConfigFieldType,
    PluginCategory,
    PluginManifest,
)
from moxie_server.plugins.types import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)


class AuthType(str, Enum):
    """How a service expects its credential."""

    NONE = "none"
    API_KEY = "api_key"
    BEARER = "bearer"
    BASIC = "basic"
    QUERY_PARAM = "query_param"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class ParamDef(BaseModel):
    """Definition of one endpoint parameter."""

    type: str = "string"
    required: bool = False
    description: str = ""
    default: Any = None
    location: str = Field(default="query", pattern="^(query|path|header|body)$")


class EndpointDef(BaseModel):
    """Definition of one API endpoint."""

    name: str
    method: HttpMethod = HttpMethod.GET
    path: str
    description: str = ""
    params: dict[str, ParamDef] = Field(default_factory=dict)
    response_type: str | None = None
    requires_confirmation: bool = False


class ServiceDef(BaseModel):
    """Definition of a REST service and its endpoints."""

    id: str
    name: str
    base_url: str
    auth_type: AuthType = AuthType.NONE
    auth_header: str | None = None
    auth_param: str | None = None
    auth_env: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_secs: float = 30
    endpoints: list[EndpointDef] = Field(default_factory=list)


class ApiPluginConfig(BaseModel):
    services: list[ServiceDef] = Field(default_factory=list)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


class ApiPlugin(Plugin):
    """Plugin exposing configured REST endpoints as tools."""

    ID = "moxie.api"

    def __init__(
        self,
        config: ApiPluginConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            config: Service definitions (replaced by on_init if the registry
                    passes a configuration)
            transport: Optional httpx transport, mainly for tests
        """
        self.config = config or ApiPluginConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def manifest(self) -> PluginManifest:
        return (
            PluginManifest(
                self.ID,
                "Custom API",
                "Connect any REST API through configuration - no code required",
            )
            .with_version(1, 0, 0)
            .with_author("Moxie AI")
            .with_category(PluginCategory.CLOUD)
            .with_keywords(["api", "rest", "http", "integration", "custom"])
            .with_config_field(
                ConfigFieldBuilder("services", ConfigFieldType.STRING_ARRAY)
                .label("API Services")
                .description("Configured API services")
                .build()
            )
        )

    def tools(self) -> list[ToolDefinition]:
        return [
            self._endpoint_to_tool(service, endpoint)
            for service in self.config.services
            for endpoint in service.endpoints
        ]

    @property
    def service_count(self) -> int:
        return len(self.config.services)

    @property
    def endpoint_count(self) -> int:
        return sum(len(service.endpoints) for service in self.config.services)

    async def on_init(self, ctx: PluginContext) -> None:
        """Load service definitions and open the HTTP client.

        Raises:
            ConfigError: If the service definitions are invalid
        """
        if ctx.config:
            try:
                self.config = ApiPluginConfig.model_validate(ctx.config)
            except ValidationError as e:
                raise ConfigError(str(e)) from e

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(60.0), transport=self._transport
        )
        logger.info(
            f"API plugin initialized with {self.service_count} service(s), "
            f"{self.endpoint_count} endpoint(s)"
        )

    async def on_shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.debug("API plugin HTTP client closed")

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        found = self._find_endpoint(tool_name)
        if found is None:
            raise ToolNotFoundError(tool_name)
        service, endpoint = found

        for name, param in endpoint.params.items():
            if param.required and arguments.get(name) is None:
                raise InvalidParametersError(f"{name} is required")

        return await self._call(service, endpoint, arguments)

    def _find_endpoint(self, tool_name: str) -> tuple[ServiceDef, EndpointDef] | None:
        for service in self.config.services:
            for endpoint in service.endpoints:
                if f"{service.id}_{endpoint.name}" == tool_name:
                    return service, endpoint
        return None

    def _endpoint_to_tool(
        self, service: ServiceDef, endpoint: EndpointDef
    ) -> ToolDefinition:
        if endpoint.description:
            description = f"{service.name}: {endpoint.description}"
        else:
            description = f"{service.name}: {endpoint.method.value} {endpoint.path}"

        properties: dict[str, Any] = {}
        required: list[str] = []
        for name, param in endpoint.params.items():
            prop: dict[str, Any] = {"type": param.type}
            if param.description:
                prop["description"] = param.description
            if param.default is not None:
                prop["default"] = param.default
            properties[name] = prop
            if param.required:
                required.append(name)

        tool = ToolDefinition(
            name=f"{service.id}_{endpoint.name}",
            description=description,
            parameters={"type": "object", "properties": properties, "required": required},
            plugin_id=self.ID,
        )
        return tool.with_confirmation() if endpoint.requires_confirmation else tool

    def _build_request(
        self, service: ServiceDef, endpoint: EndpointDef, arguments: dict[str, Any]
    ) -> tuple[httpx.Request, httpx.BasicAuth | None]:
        path = endpoint.path
        query: list[tuple[str, str]] = []
        headers: dict[str, str] = dict(service.headers)
        body: dict[str, Any] = {}

        for name, value in arguments.items():
            param = endpoint.params.get(name)
            location = param.location if param else "query"
            if location == "path":
                path = path.replace(f"{{{name}}}", quote(_as_text(value), safe=""))
            elif location == "query":
                query.append((name, _as_text(value)))
            elif location == "header":
                headers[name] = _as_text(value)
            else:
                body[name] = value

        credential = os.environ.get(service.auth_env) if service.auth_env else None
        auth: httpx.BasicAuth | None = None
        if credential:
            if service.auth_type is AuthType.API_KEY and service.auth_header:
                headers[service.auth_header] = credential
            elif service.auth_type is AuthType.BEARER:
                headers["Authorization"] = f"Bearer {credential}"
            elif service.auth_type is AuthType.BASIC and ":" in credential:
                username, password = credential.split(":", 1)
                auth = httpx.BasicAuth(username, password)
            elif service.auth_type is AuthType.QUERY_PARAM and service.auth_param:
                query.append((service.auth_param, credential))

        send_body = bool(body) and endpoint.method in (
            HttpMethod.POST,
            HttpMethod.PUT,
            HttpMethod.PATCH,
        )
        request = httpx.Request(
            endpoint.method.value,
            service.base_url.rstrip("/") + path,
            params=query or None,
            headers=headers,
            json=body if send_body else None,
            extensions={"timeout": httpx.Timeout(service.timeout_secs).as_dict()},
        )
        return request, auth

    async def _call(
        self, service: ServiceDef, endpoint: EndpointDef, arguments: dict[str, Any]
    ) -> ToolResult:
        if self._client is None:
            raise ExecutionFailedError("HTTP client not initialized")

        request, auth = self._build_request(service, endpoint, arguments)
        logger.debug(f"Calling {request.method} {request.url}")

        start = time.perf_counter()
        try:
            response = await self._client.send(request, auth=auth)
        except httpx.HTTPError as e:
            raise ExecutionFailedError(f"Request failed: {e}") from e
        duration_ms = int((time.perf_counter() - start) * 1000)

        try:
            data: Any = response.json()
        except ValueError:
            data = response.text

        if response.is_success:
            return ToolResult.ok(
                {"status": response.status_code, "data": data}
            ).with_duration(duration_ms)

        return ToolResult.failure(
            f"API returned error {response.status_code}: "
            f"{json.dumps(data, indent=2, ensure_ascii=False)}"
        )
