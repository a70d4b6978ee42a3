"""
Concurrency-bounded batch embedding.

A fixed pool of worker threads pulls indices from a shared cursor and
writes each vector into its pre-sized output slot, so the result order
always matches the input order no matter which call finishes first.
The first failure stops the batch and is re-raised to the caller.
"""
import logging
import threading
from typing import List, Optional, Protocol

from apps.rag.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]:
        ...


class BoundedEmbedder:
    """Fan out single-text embedding calls under a concurrency cap."""

    def __init__(self, client: Embedder, concurrency_limit: int = DEFAULT_CONCURRENCY):
        if concurrency_limit <= 0:
            raise ValidationError("concurrency_limit must be a positive integer")
        self.client = client
        self.concurrency_limit = concurrency_limit

    def embed_many(
        self,
        texts: List[str],
        concurrency_limit: Optional[int] = None,
    ) -> List[List[float]]:
        """
        Embed every text, at most ``concurrency_limit`` calls at a time.

        Args:
            texts: Texts to embed
            concurrency_limit: Overrides the instance limit for this batch

        Returns:
            One vector per input text, in input order

        Raises:
            ValidationError: If the limit is not positive
            Exception: The first failure raised by the underlying client
        """
        limit = self.concurrency_limit if concurrency_limit is None else concurrency_limit
        if limit <= 0:
            raise ValidationError("concurrency_limit must be a positive integer")

        total = len(texts)
        if total == 0:
            return []

        workers = min(limit, total)
        results: List[Optional[List[float]]] = [None] * total
        lock = threading.Lock()
        state = {"cursor": 0, "error": None, "failed_index": None}

        def claim() -> Optional[int]:
            with lock:
                if state["error"] is not None or state["cursor"] >= total:
                    return None
                index = state["cursor"]
                state["cursor"] += 1
                return index

        def run():
            while True:
                index = claim()
                if index is None:
                    return
                try:
                    results[index] = self.client.embed(texts[index])
                except Exception as e:
                    with lock:
                        if state["error"] is None:
                            state["error"] = e
                            state["failed_index"] = index
                    return

        logger.info(f"Embedding {total} texts with {workers} workers")

        if workers == 1:
            run()
        else:
            threads = [
                threading.Thread(target=run, name=f"embedder-{n}", daemon=True)
                for n in range(workers)
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        if state["error"] is not None:
            logger.error(
                f"Failed to embed text {state['failed_index'] + 1}/{total}: {state['error']}"
            )
            raise state["error"]

        logger.info(f"Generated {total} embeddings")
        return results
