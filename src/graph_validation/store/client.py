"""SPARQL store client.

The service never talks to the triplestore directly; every component receives a
``StoreClient`` and issues plain SPARQL through it. Two channels exist:

- ``query``/``update`` run under the caller's own authority.
- ``query_sudo``/``update_sudo`` send the ``mu-auth-sudo`` header so the
  authorization layer lets bookkeeping writes (validations, errors) through
  regardless of who triggered the run.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from graph_validation.config import SUDO_HEADER, ServiceConfig
from graph_validation.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SPARQL_RESULTS_JSON = "application/sparql-results+json"


class StoreClient(Protocol):
    """Capability the core consumes from the backing store."""

    async def query(self, statement: str) -> Dict[str, Any]:
        """Run a SELECT/ASK query and return the SPARQL JSON result."""
        ...

    async def update(self, statement: str) -> None:
        """Run a SPARQL update."""
        ...

    async def query_sudo(self, statement: str) -> Dict[str, Any]:
        """Run a query with privileged access."""
        ...

    async def update_sudo(self, statement: str) -> None:
        """Run an update with privileged access."""
        ...


class SparqlStoreClient:
    """``StoreClient`` backed by a SPARQL 1.1 protocol endpoint over HTTP."""

    def __init__(
        self,
        config: ServiceConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = config.sparql_endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.request_timeout,
            headers={"Accept": SPARQL_RESULTS_JSON},
        )

    async def query(self, statement: str) -> Dict[str, Any]:
        return await self._query(statement, sudo=False)

    async def update(self, statement: str) -> None:
        await self._update(statement, sudo=False)

    async def query_sudo(self, statement: str) -> Dict[str, Any]:
        return await self._query(statement, sudo=True)

    async def update_sudo(self, statement: str) -> None:
        await self._update(statement, sudo=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _query(self, statement: str, *, sudo: bool) -> Dict[str, Any]:
        response = await self._post({"query": statement}, sudo=sudo)
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(
                f"Store returned a non-JSON query result from {self.endpoint}",
                status_code=response.status_code,
            ) from e

    async def _update(self, statement: str, *, sudo: bool) -> None:
        await self._post({"update": statement}, sudo=sudo)

    async def _post(self, form: Dict[str, str], *, sudo: bool) -> httpx.Response:
        headers = {"Accept": SPARQL_RESULTS_JSON}
        if sudo:
            headers[SUDO_HEADER] = "true"
        logger.debug("SPARQL %s (sudo=%s):\n%s", next(iter(form)), sudo, next(iter(form.values())))
        try:
            response = await self._client.post(self.endpoint, data=form, headers=headers)
        except httpx.HTTPError as e:
            raise PersistenceError(f"Store request to {self.endpoint} failed: {e}") from e
        if response.status_code >= 400:
            raise PersistenceError(
                f"Store rejected request ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )
        return response


__all__ = ["StoreClient", "SparqlStoreClient"]
