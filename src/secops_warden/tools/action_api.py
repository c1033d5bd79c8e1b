"""Action adapter: invoke disposition endpoints on the internal management API."""

from __future__ import annotations

import json
import logging

import httpx
from pydantic import BaseModel

from secops_warden.templating import parse_params, substitute
from secops_warden.tools.executor import ToolDefinition, ToolOutput

logger = logging.getLogger(__name__)

API_KEY_HEADER = "sw-api-key"


class EndpointSpec(BaseModel):
    """An action endpoint: HTTP method, path, and JSON body template."""

    method: str = "POST"
    path: str
    body: str = ""


class ActionAPITool:
    """Substitute parameters into a named endpoint's request and send it.

    Args:
        endpoints: Endpoint ID to :class:`EndpointSpec`.
        base_url: Management API root, e.g. ``http://localhost:8080``.
        api_key: Static credential sent as the ``sw-api-key`` header.
        client: Shared HTTP client; one is created when omitted.
    """

    name = "sheikah_api"

    def __init__(
        self,
        endpoints: dict[str, EndpointSpec],
        base_url: str,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._endpoints = dict(endpoints)
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = client is None
        self._client: httpx.AsyncClient | None = client or httpx.AsyncClient(timeout=timeout)

    @property
    def closed(self) -> bool:
        return self._client is None

    def endpoint_ids(self) -> list[str]:
        return sorted(self._endpoints)

    def description(self) -> str:
        ids = ", ".join(self.endpoint_ids())
        return (
            "Call the internal Sheikah API to apply a disposition.\n"
            f"- api: endpoint ID (one of: {ids})\n"
            "- params: parameter substitution, format key1=value1,key2=value2\n"
            "\n"
            "Example: api=confirm_risk, params=content=xxx,host=xxx,risk=xxx"
        )

    def to_tool(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description(),
            parameters={
                "type": "object",
                "properties": {
                    "api": {"type": "string", "description": "Endpoint ID."},
                    "params": {
                        "type": "string",
                        "description": "Parameters, format: key1=value1,key2=value2",
                    },
                },
                "required": ["api"],
            },
            handler=self.execute,
            category="secops",
        )

    async def execute(self, api: str = "", params: str = "") -> ToolOutput:
        """Send the request for endpoint *api* and return the response body."""
        if not api:
            return ToolOutput.error("api is required")

        spec = self._endpoints.get(api)
        if spec is None:
            return ToolOutput.error(f"api not found: {api}")

        if self._client is None:
            return ToolOutput.error("sheikah_api tool is closed")

        values = parse_params(params)
        body = substitute(spec.body, values) if spec.body else ""
        url = self._base_url + substitute(spec.path, values)

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers[API_KEY_HEADER] = self._api_key

        try:
            resp = await self._client.request(
                spec.method.upper(),
                url,
                content=body.encode() if body else None,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("Sheikah API request %s failed: %s", api, exc)
            return ToolOutput.error(f"request failed: {exc}")

        if resp.status_code >= 400:
            return ToolOutput.error(
                f"API returned error: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
            )

        logger.info("Sheikah API %s %s -> %d", spec.method.upper(), url, resp.status_code)
        return ToolOutput.ok(_pretty_json(resp.text), status_code=resp.status_code)

    async def aclose(self) -> None:
        """Release the HTTP client. Later calls return an error result."""
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            await client.aclose()


def _pretty_json(body: str) -> str:
    try:
        return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
    except ValueError:
        return body
