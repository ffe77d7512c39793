from __future__ import annotations

import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from essayhall.core.errors import ArchiveFetchError

DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0

# Never serve the archive from an intermediate cache; a redeployed file must be seen on next load.
_NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, max-age=0",
    "Pragma": "no-cache",
    "Accept": "text/csv, text/plain;q=0.9, */*;q=0.1",
}


def is_remote_source(source: str) -> bool:
    return urllib.parse.urlparse(source).scheme.lower() in {"http", "https"}


def fetch_archive_text(source: str, timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS) -> str:
    """Fetch the archive table as UTF-8 text from a local path or an http(s) URL."""
    if is_remote_source(source):
        return _fetch_remote(source, timeout)
    return _read_local(Path(source).expanduser())


def _fetch_remote(url: str, timeout: float) -> str:
    request = urllib.request.Request(url, headers=_NO_STORE_HEADERS, method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= int(status) < 300:
                raise ArchiveFetchError(f"Failed to load archive from {url}: HTTP {status}")
            payload = response.read()
    except urllib.error.HTTPError as exc:
        raise ArchiveFetchError(f"Failed to load archive from {url}: HTTP {exc.code}") from exc
    except (urllib.error.URLError, TimeoutError, ValueError) as exc:
        raise ArchiveFetchError(f"Failed to load archive from {url}: {exc}") from exc
    return payload.decode("utf-8-sig", errors="replace")


def _read_local(path: Path) -> str:
    if not path.exists() or not path.is_file():
        raise ArchiveFetchError(f"Archive file not found: {path}")
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise ArchiveFetchError(f"Failed to read archive file {path}: {exc}") from exc
