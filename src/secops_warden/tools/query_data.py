"""Query adapter: run named SQL templates against the ClickHouse HTTP interface."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from secops_warden.errors import QueryError
from secops_warden.templating import render
from secops_warden.tools.executor import ToolDefinition, ToolOutput

logger = logging.getLogger(__name__)

MAX_ROWS = 10


class QueryDataTool:
    """Resolve a named SQL template (or raw SQL), run it, and format the rows.

    Args:
        queries: Template ID to SQL template.
        base_url: ClickHouse HTTP endpoint, e.g. ``http://localhost:8123``.
        username: Optional ClickHouse user.
        password: Optional ClickHouse password.
        client: Shared HTTP client; one is created when omitted.
    """

    name = "query_data"

    def __init__(
        self,
        queries: dict[str, str],
        base_url: str,
        username: str = "",
        password: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._queries = dict(queries)
        self._base_url = base_url
        self._username = username
        self._password = password
        self._owns_client = client is None
        self._client: httpx.AsyncClient | None = client or httpx.AsyncClient(timeout=timeout)

    @property
    def closed(self) -> bool:
        return self._client is None

    def template_ids(self) -> list[str]:
        return sorted(self._queries)

    def description(self) -> str:
        ids = ", ".join(self.template_ids())
        return (
            "Query security data from ClickHouse.\n"
            f"- sql_id: SQL template ID (one of: {ids})\n"
            "- params: parameter substitution, format key1=value1,key2=value2\n"
            "- raw_sql: optional SQL to run directly (takes precedence over sql_id)"
        )

    def to_tool(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description(),
            parameters={
                "type": "object",
                "properties": {
                    "sql_id": {"type": "string", "description": "SQL template ID."},
                    "params": {
                        "type": "string",
                        "description": "Parameters, format: key1=value1,key2=value2",
                    },
                    "raw_sql": {
                        "type": "string",
                        "description": "Optional SQL to run directly.",
                    },
                },
            },
            handler=self.execute,
            category="secops",
        )

    async def execute(self, sql_id: str = "", params: str = "", raw_sql: str = "") -> ToolOutput:
        """Run a query and return its rows as text."""
        if raw_sql:
            sql = raw_sql
        elif sql_id:
            template = self._queries.get(sql_id)
            if template is None:
                available = ", ".join(self.template_ids())
                return ToolOutput.error(f"sql_id not found: {sql_id}. Available: {available}")
            sql = render(template, params)
        else:
            return ToolOutput.error("sql_id or raw_sql is required")

        if self._client is None:
            return ToolOutput.error("query_data tool is closed")

        try:
            resp = await self._post(self._client, sql)
        except httpx.HTTPError as exc:
            logger.warning("ClickHouse request failed: %s", exc)
            return ToolOutput.error(f"request failed: {exc}")

        if resp.status_code >= 400:
            return ToolOutput.error(
                f"ClickHouse error {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )

        return ToolOutput.ok(format_rows(resp.text), status_code=resp.status_code)

    async def query(self, sql: str) -> list[list[Any]]:
        """Run *sql* and return the raw rows.

        Raises:
            QueryError: On transport failure, HTTP error status, or a body
                that is not a tabular JSON result.
        """
        if self._client is None:
            raise QueryError("query_data tool is closed")
        try:
            resp = await self._post(self._client, sql)
        except httpx.HTTPError as exc:
            raise QueryError(f"request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise QueryError(
                f"ClickHouse error {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )

        rows = _extract_rows(resp.text)
        if rows is None:
            raise QueryError("response is not a tabular JSON result", status_code=resp.status_code)
        return rows

    async def aclose(self) -> None:
        """Release the HTTP client. Later calls return an error result."""
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            await client.aclose()

    async def _post(self, client: httpx.AsyncClient, sql: str) -> httpx.Response:
        form = {"query": sql}
        if self._username:
            form["user"] = self._username
        if self._password:
            form["password"] = self._password
        return await client.post(
            self._base_url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )


def format_rows(body: str) -> str:
    """Render a ClickHouse JSON result as tab-separated text.

    Bodies that are not a JSON object with a ``data`` list of rows are
    returned verbatim.
    """
    payload = _load_json(body)
    rows = _extract_rows(body, payload)
    if rows is None:
        return body
    if not rows:
        return "Query returned no rows"

    lines = [f"{len(rows)} rows:", ""]
    columns = _column_names(payload.get("meta"))
    if columns:
        lines.append("\t".join(columns))
    for row in rows[:MAX_ROWS]:
        lines.append("\t".join(_format_cell(value) for value in row))

    text = "\n".join(lines) + "\n"
    if len(rows) > MAX_ROWS:
        text += f"\n... {len(rows) - MAX_ROWS} more rows"
    return text


def _load_json(body: str) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return None


def _extract_rows(body: str, payload: Any = None) -> list[list[Any]] | None:
    if payload is None:
        payload = _load_json(body)
    if not isinstance(payload, dict):
        return None
    rows = payload.get("data")
    if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
        return None
    return rows


def _column_names(meta: Any) -> list[str]:
    if not isinstance(meta, list):
        return []
    return [str(col.get("name", "")) for col in meta if isinstance(col, dict)]


def _format_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict | list):
        return json.dumps(value, ensure_ascii=False)
    return str(value)
