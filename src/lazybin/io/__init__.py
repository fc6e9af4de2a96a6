"""I/O layer for lazybin - lazy stream primitives and binary value sources."""

# Re-export these for import convenience
from .base import (
    ByteStream, BinaryValue, BinaryStore, RefCount, SharedResource,
    UNBOUNDED, CHUNK_SIZE, SPOOL_MAX, DEFAULT_ENCODING,
    skip_stream, stream_available, iter_chunks, drain,
)
from .window import BoundedWindowStream
from .concat import ConcatStream
from .local import BytesValue, FileValue, CachedValue, SpoolStore, DEFAULT_STORE, open_local_value
from .http_sync import HTTPValue, open_http_value


def open_value(source):
    """Factory function to create the appropriate binary value for `source`."""
    if isinstance(source, (bytes, bytearray, memoryview)) or hasattr(source, 'read'):
        return open_local_value(source)

    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return open_http_value(source_str)
    else:
        return open_local_value(source)
