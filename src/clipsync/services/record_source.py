"""Record source reading the clip catalog from a Fauna collection."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx
from faunadb import query as q
from faunadb.client import FaunaClient
from faunadb.errors import FaunaError, InternalError, UnavailableError

from ..models.resource import ResourceRecord
from ..utils.retry import retry_api_call, NetworkError, RetryableError, TemporaryServiceError

logger = logging.getLogger(__name__)


class SourceUnavailable(Exception):
    """Raised when the record store cannot be reached or authenticated."""
    pass


class RecordSource(ABC):
    """Read access to the catalog of resource records."""

    @abstractmethod
    def fetch_all_records(self) -> List[ResourceRecord]:
        """Return every current record, in store order.

        Raises:
            SourceUnavailable: If the store cannot be reached or authenticated
        """


class FaunaRecordSource(RecordSource):
    """Reads every document of a Fauna collection as a resource record."""

    def __init__(
        self,
        secret: str,
        collection: str,
        domain: Optional[str] = None,
        page_size: int = 100,
        client: Optional[FaunaClient] = None,
    ):
        """Initialize the record source.

        Args:
            secret: Fauna access key
            collection: Name of the collection holding the records
            domain: Fauna endpoint host, driver default when None
            page_size: Documents per page request
            client: Preconfigured client, mostly for tests
        """
        if not secret:
            raise ValueError("Fauna secret is required")
        if not collection:
            raise ValueError("Fauna collection name is required")

        self.collection = collection
        self.page_size = page_size

        if client is not None:
            self.client = client
        elif domain:
            self.client = FaunaClient(secret=secret, domain=domain)
        else:
            self.client = FaunaClient(secret=secret)

    def fetch_all_records(self) -> List[ResourceRecord]:
        logger.info(f"Fetching records from collection '{self.collection}'")

        records: List[ResourceRecord] = []
        cursor = None
        pages = 0
        try:
            while True:
                documents, cursor = self._fetch_page(cursor)
                pages += 1
                for document in documents:
                    record = self._parse_document(document)
                    if record:
                        records.append(record)
                if not cursor:
                    break
        except RetryableError as e:
            raise SourceUnavailable(f"Record store unreachable: {e}")
        except FaunaError as e:
            raise SourceUnavailable(f"Record store rejected the query: {e}")

        logger.debug(f"Read {len(records)} record(s) in {pages} page(s)")
        return records

    @retry_api_call(max_retries=3, base_delay=2.0)
    def _fetch_page(self, cursor: Any) -> Tuple[List[Dict], Any]:
        """Fetch one page of documents and the cursor of the next page."""
        try:
            result = self.client.query(
                q.map_(
                    lambda ref: q.get(ref),
                    q.paginate(
                        q.documents(q.collection(self.collection)),
                        size=self.page_size,
                        after=cursor,
                    ),
                )
            )
        except (UnavailableError, InternalError) as e:
            raise TemporaryServiceError(f"Fauna unavailable: {e}")
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}")

        return result.get("data", []), result.get("after")

    def _parse_document(self, document: Dict) -> Optional[ResourceRecord]:
        ref = document.get("ref")
        ref_id = ref.id() if hasattr(ref, "id") else str(ref)
        try:
            return ResourceRecord.from_document(ref_id, document.get("data") or {})
        except ValueError as e:
            logger.warning(f"Ignoring record: {e}")
            return None
