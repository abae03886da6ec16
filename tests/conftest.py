import io
import os
import sys
import zipfile

import pytest

# Add the project root to sys.path to resolve module imports correctly
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

HEADER = b"The First 1,000,000 Primes (from primes.utm.edu)".ljust(66) + b"\n"


class ScriptedRandom:
    """RandomSource that replays fixed values and records every requested range."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = []

    def randint(self, low, high):
        self.calls.append((low, high))
        value = self.values.pop(0)
        assert low <= value <= high, f"{value} outside [{low}, {high}]"
        return value


class RecordingProvider:
    """Corpus provider serving fixed content and remembering requested shards."""

    def __init__(self, content=b"", error=None):
        self.content = content
        self.error = error
        self.requested = []

    def __call__(self, shard, cancel=None):
        self.requested.append(shard)
        if self.error is not None:
            raise self.error
        return self.content


@pytest.fixture
def scripted_random():
    return ScriptedRandom


@pytest.fixture
def recording_provider():
    return RecordingProvider


@pytest.fixture
def corpus_header():
    return HEADER


@pytest.fixture
def make_zip():
    def _make_zip(content: bytes, name: str = "primes1.txt") -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(name, content)
        return buf.getvalue()
    return _make_zip
