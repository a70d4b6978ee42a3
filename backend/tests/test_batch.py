"""
Tests for the concurrency-bounded batch embedder.
"""
import threading
import time

import pytest

from apps.indexing.batch import BoundedEmbedder
from apps.rag.errors import EmbeddingProviderError, ValidationError


class RecordingClient:
    """Embeds text as its length; tracks concurrency and call order."""

    def __init__(self, delays=None, fail_on=None):
        self.delays = delays or {}
        self.fail_on = fail_on
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def embed(self, text):
        with self._lock:
            self.calls.append(text)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delays.get(text, 0.01))
            if text == self.fail_on:
                raise EmbeddingProviderError("Embedding provider returned 500", status_code=500)
            return [float(len(text))]
        finally:
            with self._lock:
                self.active -= 1


class TestBoundedEmbedder:
    """Tests for BoundedEmbedder.embed_many."""

    def test_preserves_input_order(self):
        """Results follow input order even when the first call finishes last."""
        client = RecordingClient(delays={"a": 0.2})
        embedder = BoundedEmbedder(client, concurrency_limit=3)

        vectors = embedder.embed_many(["a", "bb", "ccc", "dddd"])

        assert vectors == [[1.0], [2.0], [3.0], [4.0]]

    def test_concurrency_is_bounded(self):
        """No more than the limit of calls should be in flight."""
        client = RecordingClient(delays={t: 0.03 for t in "abcdefgh"})
        embedder = BoundedEmbedder(client, concurrency_limit=2)

        vectors = embedder.embed_many(list("abcdefgh"))

        assert len(vectors) == 8
        assert client.max_active <= 2

    def test_limit_larger_than_batch(self):
        """Concurrency is clamped to the batch size."""
        client = RecordingClient(delays={"x": 0.05, "yy": 0.05})
        embedder = BoundedEmbedder(client, concurrency_limit=10)

        assert embedder.embed_many(["x", "yy"]) == [[1.0], [2.0]]
        assert client.max_active <= 2
        assert sorted(client.calls) == ["x", "yy"]

    def test_per_call_limit_override(self):
        client = RecordingClient(delays={t: 0.02 for t in "abcd"})
        embedder = BoundedEmbedder(client, concurrency_limit=4)

        embedder.embed_many(list("abcd"), concurrency_limit=1)

        assert client.max_active == 1

    def test_empty_input(self):
        """An empty batch returns an empty list without calling the client."""
        client = RecordingClient()

        assert BoundedEmbedder(client).embed_many([]) == []
        assert client.calls == []

    def test_first_failure_propagates(self):
        """A failing item fails the whole batch with the client's error."""
        client = RecordingClient(fail_on="bad")
        embedder = BoundedEmbedder(client, concurrency_limit=3)

        with pytest.raises(EmbeddingProviderError) as exc_info:
            embedder.embed_many(["ok", "bad", "fine"])

        assert exc_info.value.status_code == 500

    def test_failure_stops_new_calls(self):
        """After a failure no further items are started."""
        client = RecordingClient(fail_on="bad")
        embedder = BoundedEmbedder(client, concurrency_limit=1)

        with pytest.raises(EmbeddingProviderError):
            embedder.embed_many(["a", "bad", "c", "d"])

        assert client.calls == ["a", "bad"]

    @pytest.mark.parametrize("limit", [0, -1])
    def test_rejects_non_positive_limit(self, limit):
        with pytest.raises(ValidationError):
            BoundedEmbedder(RecordingClient(), concurrency_limit=limit)

    def test_rejects_non_positive_override(self):
        embedder = BoundedEmbedder(RecordingClient())

        with pytest.raises(ValidationError):
            embedder.embed_many(["a"], concurrency_limit=0)
