"""
Verification service — integrity checks for distribution files.
"""

from appinst.core.services.verification.checksum import (  # noqa: F401
    CHECKSUM_KINDS,
    ChecksumKind,
    canonical_line,
    find_candidates,
    normalize_checksum_file,
)
from appinst.core.services.verification.verifier import Verifier  # noqa: F401
