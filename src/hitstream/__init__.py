"""
hitstream - Stream large result sets out of a search cluster, one match at a time.

Quick Start
-----------
    from hitstream import SearchClient, SearchRequest

    with SearchClient() as client:
        request = SearchRequest(index="logs", query={"term": {"level": "error"}})
        for match in client.session(request, page_size=500):
            print(match.id, match.source)

Configuration
-------------
Set these environment variables (or use a .env file):

    HITSTREAM_URL          - Cluster URL (default http://localhost:9200)
    HITSTREAM_API_KEY      - Encoded API key
    HITSTREAM_USERNAME     - Basic auth / token grant user
    HITSTREAM_PASSWORD     - Basic auth / token grant password
    HITSTREAM_PAGE_SIZE    - Matches per batch (default 10)
    HITSTREAM_SCROLL_TTL   - Scroll context time-to-live (default 1m)

Strategies
----------
    cursor    - Scroll contexts: consistent snapshot, released on close (default)
    offset    - from/size paging: stateless, limited by max_result_window
    sort_key  - search_after paging: stateless, unlimited depth

    session = client.session(request, strategy="sort_key")

Collection View
---------------
    logs = SearchIndex(client, "logs", ModelDeserializer(LogLine))
    for line in logs.stream():
        ...
    df = logs.to_dataframe()

Exceptions
----------
    TransportError       - Network failure or rejected request
    AuthenticationError  - Invalid credentials
    OffsetLimitExceeded  - Offset paging went past max_result_window
    CursorExpiredError   - Scroll context expired between batches
    RateLimitError       - Too many requests (see retry_after)
    DecodeError          - A match could not be turned into an element
"""

__version__ = "0.1.0"

from hitstream.batch import Batch, Match
from hitstream.client import SearchClient
from hitstream.config import SearchSettings
from hitstream.deserialize import Deserializer, DictDeserializer, ModelDeserializer
from hitstream.exceptions import (
    HitstreamError,
    TransportError,
    AuthenticationError,
    RateLimitError,
    QueryRejectedError,
    OffsetLimitExceeded,
    CursorExpiredError,
    DecodeError,
    CleanupFailure,
)
from hitstream.fetchers import (
    BatchFetcher,
    CursorFetcher,
    FetchStrategy,
    OffsetFetcher,
    SortKeyFetcher,
    create_fetcher,
)
from hitstream.index import SearchIndex
from hitstream.request import SearchRequest
from hitstream.sequence import LazySearchSequence
from hitstream.session import SearchSession

__all__ = [
    "SearchClient",
    "SearchSettings",
    "SearchRequest",
    "SearchSession",
    "SearchIndex",
    "LazySearchSequence",
    "Batch",
    "Match",
    "BatchFetcher",
    "OffsetFetcher",
    "CursorFetcher",
    "SortKeyFetcher",
    "FetchStrategy",
    "create_fetcher",
    "Deserializer",
    "DictDeserializer",
    "ModelDeserializer",
    "HitstreamError",
    "TransportError",
    "AuthenticationError",
    "RateLimitError",
    "QueryRejectedError",
    "OffsetLimitExceeded",
    "CursorExpiredError",
    "DecodeError",
    "CleanupFailure",
    "__version__",
]
