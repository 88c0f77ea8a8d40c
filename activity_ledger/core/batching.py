from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[tuple[T, ...]]:
    """Yield consecutive immutable chunks of at most ``size`` items.

    Usage:
        for batch in chunked(activities, settings.ingest_batch_size):
            await write(batch)
    """
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield tuple(items[start : start + size])
