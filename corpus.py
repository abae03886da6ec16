"""
Prime corpus providers for seed generation.

The corpus is the list of the first 50 million primes published as 50 zip
archives (primes1.zip .. primes50.zip), each holding a single text file.
Providers are callables `provider(shard, cancel=None) -> bytes` returning
the decompressed contents of that text file.
"""
import io
import logging
import os
import threading
import zipfile
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class CorpusFetchError(Exception):
    """Raised when a shard cannot be downloaded or unpacked."""


class CorpusFetchCancelled(CorpusFetchError):
    pass


def read_first_member(archive: bytes) -> bytes:
    """Returns the contents of the first file in a zip archive."""
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            members = [info for info in zf.infolist() if not info.is_dir()]
            if not members:
                raise CorpusFetchError("Archive contains no files")
            return zf.read(members[0])
    except zipfile.BadZipFile as e:
        raise CorpusFetchError(f"Invalid archive: {e}") from e


class RemotePrimeCorpus:
    """Downloads shards over HTTP."""

    def __init__(self, url_template: str, timeout: float = 30.0, client: Optional[httpx.Client] = None):
        self.url_template = url_template
        self.timeout = timeout
        self.client = client

    def url_for(self, shard: int) -> str:
        return self.url_template.format(shard=shard)

    def __call__(self, shard: int, cancel: Optional[threading.Event] = None) -> bytes:
        url = self.url_for(shard)
        logger.debug(f"Fetching prime corpus shard {shard} from {url}")

        if self.client is not None:
            archive = self._download(self.client, url, cancel)
        else:
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                archive = self._download(client, url, cancel)
        return read_first_member(archive)

    def _download(self, client: httpx.Client, url: str, cancel: Optional[threading.Event]) -> bytes:
        buf = io.BytesIO()
        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    if cancel is not None and cancel.is_set():
                        raise CorpusFetchCancelled(f"Download of {url} cancelled")
                    buf.write(chunk)
        except httpx.HTTPStatusError as e:
            raise CorpusFetchError(f"HTTP {e.response.status_code} fetching {url}") from e
        except httpx.HTTPError as e:
            raise CorpusFetchError(f"Error fetching {url}: {e}") from e
        return buf.getvalue()


class LocalPrimeCorpus:
    """Reads shards from a directory of previously downloaded archives."""

    def __init__(self, directory: str, filename_template: str = "primes{shard}.zip"):
        self.directory = directory
        self.filename_template = filename_template

    def path_for(self, shard: int) -> str:
        return os.path.join(self.directory, self.filename_template.format(shard=shard))

    def __call__(self, shard: int, cancel: Optional[threading.Event] = None) -> bytes:
        if cancel is not None and cancel.is_set():
            raise CorpusFetchCancelled(f"Read of shard {shard} cancelled")
        path = self.path_for(shard)
        logger.debug(f"Reading prime corpus shard {shard} from {path}")
        try:
            with open(path, "rb") as f:
                archive = f.read()
        except OSError as e:
            raise CorpusFetchError(f"Could not read {path}: {e}") from e
        return read_first_member(archive)


def default_corpus(settings) -> RemotePrimeCorpus | LocalPrimeCorpus:
    """Picks the local corpus when a directory is configured, the remote one otherwise."""
    if settings.CORPUS_DIRECTORY:
        return LocalPrimeCorpus(settings.CORPUS_DIRECTORY)
    return RemotePrimeCorpus(settings.CORPUS_URL_TEMPLATE, timeout=settings.HTTP_TIMEOUT)
