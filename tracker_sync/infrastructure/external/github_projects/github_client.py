"""
Cliente mínimo de la API GraphQL de GitHub para Projects (v2).

Requisitos cubiertos:
- requests
- una página por llamada, paginación por cursor (endCursor)
- parseo de los valores de campo (texto / single-select / fecha)
- un solo intento por request: sin reintentos ni backoff
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import requests
from loguru import logger

from tracker_sync.application.interfaces.sync_ports import ItemPage
from tracker_sync.domain.entities.project_item import (
    FieldKind,
    FieldValue,
    IssueContent,
    SourceItem,
)
from tracker_sync.shared.exceptions.sync import GitHubApiError
from tracker_sync.shared.utils.datetime_utils import parse_iso_datetime


PROJECT_ITEMS_QUERY = """
query ($org: String!, $projectNumber: Int!, $pageSize: Int!, $cursor: String) {
  organization(login: $org) {
    projectV2(number: $projectNumber) {
      items(first: $pageSize, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          fieldValues(first: 20) {
            nodes {
              ... on ProjectV2ItemFieldTextValue {
                text
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                name
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldDateValue {
                date
                field { ... on ProjectV2FieldCommon { name } }
              }
            }
          }
          content {
            ... on Issue {
              title
              number
              url
              createdAt
              assignees(first: 10) {
                nodes { login }
              }
            }
          }
        }
      }
    }
  }
}
"""


@dataclass(frozen=True)
class GitHubCredentials:
    token: str
    organization: str


def parse_field_value(node: dict[str, Any]) -> Optional[FieldValue]:
    """
    Convierte un nodo de fieldValues a FieldValue.

    Precedencia si el nodo trae más de un payload: texto, single-select, fecha.
    Nodos sin nombre de campo o de tipos no consultados (iteración, número,
    etc. llegan como {}) se descartan.
    """
    field_name = ((node or {}).get("field") or {}).get("name")
    if not field_name:
        return None

    if node.get("text") is not None:
        return FieldValue(field_name=field_name, kind=FieldKind.TEXT, value=str(node["text"]))
    if node.get("name") is not None:
        return FieldValue(field_name=field_name, kind=FieldKind.SINGLE_SELECT, value=str(node["name"]))
    if node.get("date") is not None:
        raw = str(node["date"])
        try:
            value: Any = date.fromisoformat(raw[:10])
        except ValueError:
            value = raw
        return FieldValue(field_name=field_name, kind=FieldKind.DATE, value=value)
    return None


def parse_content(content: Optional[dict[str, Any]]) -> Optional[IssueContent]:
    """Content de tipo Issue; borradores y PRs llegan como {} y dan None."""
    if not content or content.get("number") is None:
        return None

    assignees_conn = content.get("assignees")
    assignees: Optional[tuple[str, ...]] = None
    if assignees_conn is not None:
        assignees = tuple(
            n["login"] for n in (assignees_conn.get("nodes") or []) if n and n.get("login")
        )

    return IssueContent(
        number=int(content["number"]),
        title=content.get("title"),
        url=content.get("url"),
        created_at=parse_iso_datetime(content.get("createdAt")),
        assignees=assignees,
    )


def parse_item(node: dict[str, Any]) -> SourceItem:
    field_nodes = ((node.get("fieldValues") or {}).get("nodes")) or []
    values = tuple(fv for fv in (parse_field_value(n) for n in field_nodes) if fv is not None)
    return SourceItem(
        item_id=str(node.get("id") or ""),
        field_values=values,
        content=parse_content(node.get("content")),
    )


class GitHubProjectsClient:
    """
    Cliente HTTP de GitHub GraphQL. Implementa ItemPageFetcher.

    Importante:
    - No decide defaults de campos: eso se resuelve en field_mappings.
    - Cualquier error (HTTP, transporte, GraphQL, proyecto inexistente)
      se levanta como GitHubApiError.
    """

    def __init__(
        self,
        credentials: GitHubCredentials,
        *,
        session: Optional[requests.Session] = None,
        graphql_url: str = "https://api.github.com/graphql",
        page_size: int = 100,
        timeout_s: int = 30,
    ) -> None:
        self._creds = credentials
        self._graphql_url = graphql_url
        self._page_size = page_size
        self._timeout_s = timeout_s
        self._session = session or requests.Session()

    def fetch_page(self, project_number: int, cursor: Optional[str]) -> ItemPage:
        """Obtiene una página de items del proyecto a partir de cursor."""
        data = self._request_graphql(
            PROJECT_ITEMS_QUERY,
            {
                "org": self._creds.organization,
                "projectNumber": project_number,
                "pageSize": self._page_size,
                "cursor": cursor,
            },
        )

        organization = data.get("organization")
        project = (organization or {}).get("projectV2")
        if project is None:
            raise GitHubApiError(
                f"Proyecto {project_number} no encontrado en la organización '{self._creds.organization}'"
            )

        items_conn = project.get("items") or {}
        items = [parse_item(n) for n in (items_conn.get("nodes") or []) if n]

        page_info = items_conn.get("pageInfo") or {}
        next_cursor = page_info.get("endCursor") if page_info.get("hasNextPage") else None
        logger.debug(
            f"Proyecto {project_number}: página con {len(items)} items (next_cursor={next_cursor})"
        )
        return ItemPage(items=items, next_cursor=next_cursor)

    def _request_graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._creds.token}",
            "Content-Type": "application/json",
        }

        try:
            resp = self._session.post(
                self._graphql_url,
                json={"query": query, "variables": variables},
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise GitHubApiError(f"GitHub GraphQL no respondio: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise GitHubApiError(
                f"GitHub GraphQL falló {resp.status_code}: {resp.text}",
                status=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise GitHubApiError(
                "GitHub GraphQL devolvio un cuerpo que no es JSON",
                status=resp.status_code,
            ) from e

        if payload.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in payload["errors"])
            raise GitHubApiError(
                f"GitHub GraphQL devolvio errores: {messages}",
                status=resp.status_code,
                errors=payload["errors"],
            )

        return payload.get("data") or {}
