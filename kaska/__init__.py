"""
Kaska - a minimal publish/subscribe message broker.

Producers append opaque byte records to named topics held in memory by a
single broker process. Consumers keep their own per-topic read offsets and
poll the broker for everything appended since their last read.

- Append-only in-memory topic logs behind one process-wide lock
- Snapshot polling by (topic, offset), no long-poll
- Client-side subscriptions and offset tracking
- gRPC transport under the well-known service name ``KaskaSrv``
"""

__version__ = "0.1.0"

from kaska.client import KaskaClient, Record
from kaska.protocol import TopicOffset

__all__ = [
    "KaskaClient",
    "Record",
    "TopicOffset",
]
