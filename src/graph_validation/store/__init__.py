"""Store boundary: the SPARQL client consumed by the core."""

from .client import SparqlStoreClient, StoreClient

__all__ = ["StoreClient", "SparqlStoreClient"]
