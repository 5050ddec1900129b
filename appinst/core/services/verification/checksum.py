"""
Checksum files — locate and canonicalise digests.

Upstream checksum files come in many shapes:

    d41d8cd98f00b204e9800998ecf8427e  foo-1.0.tar.gz     GNU text mode
    d41d8cd98f00b204e9800998ecf8427e *foo-1.0.tar.gz     GNU binary mode
    MD5 (foo-1.0.tar.gz) = d41d8cd98f00b204e9800998ecf8427e   BSD
    d41d8cd98f00b204e9800998ecf8427e                     bare digest

``md5sum -c`` and friends only understand the GNU layout and check
EVERY line, so before verification the file is rewritten to hold
exactly one canonical ``"<digest>  <filename>"`` line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from appinst.core.models.descriptor import VerifyMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChecksumKind:
    """Parameters of one checksum method."""

    algorithm: str
    length: int        # hex digits
    extension: str     # local artifact is <distfile>.<extension>
    tool: str          # verifies a canonical checksum file with ``-c``

    def pattern(self) -> re.Pattern[str]:
        return digest_pattern(self.length)

    def is_valid(self, text: str) -> bool:
        return self.pattern().fullmatch(text.strip()) is not None


CHECKSUM_KINDS: dict[VerifyMethod, ChecksumKind] = {
    VerifyMethod.MD5: ChecksumKind("md5", 32, "md5", "md5sum"),
    VerifyMethod.SHA1: ChecksumKind("sha1", 40, "sha1", "sha1sum"),
    VerifyMethod.SHA256: ChecksumKind("sha256", 64, "sha256", "sha256sum"),
}


def digest_pattern(length: int) -> re.Pattern[str]:
    """Hex run of exactly ``length`` digits, not part of a longer run."""
    return re.compile(rf"(?<![0-9A-Fa-f])[0-9A-Fa-f]{{{length}}}(?![0-9A-Fa-f])")


def canonical_line(digest: str, filename: str) -> str:
    return f"{digest}  {filename}"


def _mentions(line: str, filename: str) -> bool:
    """Whether ``line`` names ``filename`` as a whole path component."""
    pattern = rf"(?:^|[\s*(/]){re.escape(filename)}(?:$|[\s)])"
    return re.search(pattern, line) is not None


def find_candidates(lines: list[str], filename: str, length: int) -> list[str]:
    """Digests from lines that name ``filename``.

    Falls back to a single bare digest when the file names no file at all
    (``foo.tar.gz.sha256`` containing only the hash).
    """
    pattern = digest_pattern(length)
    candidates = []
    for line in lines:
        match = pattern.search(line)
        if match and _mentions(line, filename):
            candidates.append(match.group(0))

    if not candidates:
        content = [line.strip() for line in lines if line.strip()]
        if len(content) == 1 and pattern.fullmatch(content[0]):
            candidates.append(content[0])

    return candidates


def normalize_checksum_file(path: Path, filename: str, kind: ChecksumKind) -> bool:
    """Rewrite ``path`` to a single canonical line for ``filename``.

    Returns:
        True if the file now holds a usable digest, False if it is
        missing or holds none.
    """
    if not path.is_file():
        return False

    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    candidates = find_candidates(lines, filename, kind.length)
    if not candidates:
        logger.warning("No %s checksum for %s found in %s", kind.algorithm, filename, path)
        return False

    canonical = canonical_line(candidates[0], filename)
    if [line.rstrip() for line in lines if line.strip()] != [canonical]:
        if len(candidates) > 1:
            logger.info("%d %s candidates for %s in %s; keeping the first",
                        len(candidates), kind.algorithm, filename, path)
        path.write_text(canonical + "\n", encoding="utf-8")
        logger.debug("Rewrote %s as: %s", path, canonical)

    return True


def write_checksum_file(path: Path, digest: str, filename: str) -> None:
    path.write_text(canonical_line(digest.strip(), filename) + "\n", encoding="utf-8")
