"""
Retriever — download a remote resource to a local path.

HTTP(S) goes through ``urllib.request`` (with an optional proxy); plain
FTP goes through ``ftplib`` so passive mode can be controlled per call.
When a proxy is configured every URL, FTP included, goes via the proxy.

Passive-mode retry: some FTP servers refuse active-mode data connections
but report it as "550 not found".  A not-found failure on an ``ftp://``
URL with passive mode off is retried exactly once in passive mode; the
flag is switched back off afterwards whatever the retry's outcome.
"""

from __future__ import annotations

import ftplib
import logging
import re
import urllib.error
import urllib.request
from pathlib import Path
from urllib.parse import unquote, urlparse

from appinst.core.config.settings import Settings
from appinst.core.engine.context import TransferMode
from appinst.core.errors import TransferError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192
_USER_AGENT = "appinst/0.1"
_FTP_REPLY_RE = re.compile(r"\b([1-5]\d\d)\b")


class Retriever:
    """Fetch URLs with the configured timeout and proxy."""

    def __init__(self, settings: Settings | None = None):
        settings = settings or Settings()
        self.timeout = settings.timeout
        self.proxy = settings.proxy

    def fetch(self, url: str, destination: Path, mode: TransferMode) -> None:
        """Download ``url`` to ``destination``.

        Args:
            url: Source URL (http, https or ftp).
            destination: Local file to write.  Left absent or partial on
                failure; the caller must not rely on cleanup.
            mode: Transfer mode; ``passive`` may be flipped on for one
                retry and is always left off afterwards in that case.

        Raises:
            TransferError: If the transfer fails.
        """
        logger.info("Fetching %s → %s", url, destination)
        try:
            self._transfer(url, destination, passive=mode.passive)
            return
        except TransferError as e:
            if not (e.not_found and _is_ftp(url) and not mode.passive):
                raise
            logger.warning("%s; retrying %s in passive mode", e, url)

        mode.passive = True
        try:
            self._transfer(url, destination, passive=mode.passive)
        finally:
            mode.passive = False

    def _transfer(self, url: str, destination: Path, *, passive: bool) -> None:
        """Perform one transfer attempt."""
        if _is_ftp(url) and not self.proxy:
            self._transfer_ftp(url, destination, passive=passive)
        else:
            self._transfer_urllib(url, destination)

    def _transfer_urllib(self, url: str, destination: Path) -> None:
        handlers = []
        if self.proxy:
            handlers.append(urllib.request.ProxyHandler({
                "http": self.proxy,
                "https": self.proxy,
                "ftp": self.proxy,
            }))
        opener = urllib.request.build_opener(*handlers)
        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})

        try:
            with opener.open(req, timeout=self.timeout) as resp:
                with open(destination, "wb") as f:
                    while True:
                        chunk = resp.read(_CHUNK_SIZE)
                        if not chunk:
                            break
                        f.write(chunk)
        except urllib.error.HTTPError as e:
            raise TransferError(
                f"Download of {url} failed: HTTP {e.code} {e.reason}",
                url=url, status=e.code,
            ) from e
        except urllib.error.URLError as e:
            raise TransferError(
                f"Download of {url} failed: {e.reason}",
                url=url, status=_ftp_status(str(e.reason)) if _is_ftp(url) else None,
            ) from e
        except OSError as e:
            raise TransferError(f"Download of {url} failed: {e}", url=url) from e

    def _transfer_ftp(self, url: str, destination: Path, *, passive: bool) -> None:
        parts = urlparse(url)
        user = unquote(parts.username) if parts.username else "anonymous"
        password = unquote(parts.password) if parts.password else "anonymous@"
        remote_path = unquote(parts.path)

        try:
            with ftplib.FTP(timeout=self.timeout) as ftp:
                ftp.connect(parts.hostname or "", parts.port or 21)
                ftp.login(user, password)
                ftp.set_pasv(passive)
                with open(destination, "wb") as f:
                    ftp.retrbinary(f"RETR {remote_path}", f.write, blocksize=_CHUNK_SIZE)
        except ftplib.Error as e:
            raise TransferError(
                f"Download of {url} failed: {e}",
                url=url, status=_ftp_status(str(e)),
            ) from e
        except OSError as e:
            raise TransferError(f"Download of {url} failed: {e}", url=url) from e


def _is_ftp(url: str) -> bool:
    return urlparse(url).scheme.lower() == "ftp"


def _ftp_status(message: str) -> int | None:
    """Extract the 3-digit FTP reply code from an error message, if any."""
    match = _FTP_REPLY_RE.search(message)
    return int(match.group(1)) if match else None
