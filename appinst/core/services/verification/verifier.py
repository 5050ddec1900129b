"""
Verifier — validate a distribution file before anything trusts it.

Checksum methods (md5, sha1, sha256):

    1. artifact <distfile>.<ext> missing and a vurl configured → fetch it
       (a failed fetch is logged, not fatal)
    2. normalise it to one canonical line
    3. still nothing usable → batch: fail; interactive: ask for the digest
    4. run ``<tool> -c``; a non-zero exit is always fatal

Signatures follow the same fetch/prompt path without normalisation and
are checked with ``gpg --verify``.  A verification failure is never
downgraded to a warning.
"""

from __future__ import annotations

import logging
import shlex
import shutil
from pathlib import Path

from appinst.adapters.base import CommandRunner, Terminal
from appinst.core.engine.context import Session
from appinst.core.errors import TransferError, VerificationError
from appinst.core.models.descriptor import VerifyMethod
from appinst.core.services.retrieval import Retriever
from appinst.core.services.verification.checksum import (
    CHECKSUM_KINDS,
    ChecksumKind,
    normalize_checksum_file,
    write_checksum_file,
)

logger = logging.getLogger(__name__)

SIGNATURE_EXTENSION = "sig"
SIGNATURE_TOOL = "gpg --verify"


def artifact_path(distfile: Path, extension: str) -> Path:
    """``foo-1.0.tar.gz`` → ``foo-1.0.tar.gz.<extension>``."""
    return distfile.with_name(f"{distfile.name}.{extension}")


class Verifier:
    """Run the integrity check configured for a distribution file."""

    def __init__(self, runner: CommandRunner, terminal: Terminal, retriever: Retriever):
        self._runner = runner
        self._terminal = terminal
        self._retriever = retriever

    def verify(
        self,
        distfile: Path,
        method: VerifyMethod,
        vurl: str | None,
        session: Session,
    ) -> None:
        """Verify ``distfile`` with ``method``.

        Raises:
            VerificationError: On mismatch, or when no verification
                artifact can be obtained in batch mode.
        """
        if method is VerifyMethod.NONE:
            logger.warning(
                "No verification configured for %s; integrity cannot be confirmed",
                distfile.name,
            )
            return
        if method is VerifyMethod.SIGNATURE:
            self._verify_signature(distfile, vurl, session)
            return
        self._verify_checksum(distfile, CHECKSUM_KINDS[method], vurl, session)

    # ── Checksums ───────────────────────────────────────────────

    def _verify_checksum(
        self,
        distfile: Path,
        kind: ChecksumKind,
        vurl: str | None,
        session: Session,
    ) -> None:
        artifact = artifact_path(distfile, kind.extension)

        if not artifact.exists() and vurl:
            self._fetch_artifact(vurl, artifact, session)

        try:
            usable = normalize_checksum_file(artifact, distfile.name, kind)
            if not usable:
                if session.batch:
                    raise VerificationError(
                        f"No {kind.algorithm} checksum available for {distfile.name} "
                        f"(expected {artifact}) and running in batch mode"
                    )
                digest = self._ask_digest(distfile.name, kind)
                write_checksum_file(artifact, digest, distfile.name)
        except OSError as e:
            raise VerificationError(f"Cannot use checksum file {artifact}: {e}") from e

        command = f"{kind.tool} -c {shlex.quote(artifact.name)}"
        result = self._runner.run(command, distfile.parent)
        if not result.ok:
            raise VerificationError(
                f"{kind.algorithm} verification of {distfile.name} failed "
                f"(exit {result.return_code}): {command}"
            )
        logger.info("%s checksum OK for %s", kind.algorithm, distfile.name)

    def _ask_digest(self, filename: str, kind: ChecksumKind) -> str:
        while True:
            answer = self._terminal.prompt(
                f"Enter the {kind.algorithm} checksum for {filename} (blank to abort): "
            ).strip()
            if not answer:
                raise VerificationError(f"No {kind.algorithm} checksum given for {filename}")
            if kind.is_valid(answer):
                return answer
            self._terminal.echo(
                f"Not a valid {kind.algorithm} checksum (expected {kind.length} hex digits)."
            )

    # ── Signatures ──────────────────────────────────────────────

    def _verify_signature(self, distfile: Path, vurl: str | None, session: Session) -> None:
        signature = artifact_path(distfile, SIGNATURE_EXTENSION)

        if not signature.exists() and vurl:
            self._fetch_artifact(vurl, signature, session)

        if not signature.exists():
            if session.batch:
                raise VerificationError(
                    f"No signature available for {distfile.name} "
                    f"(expected {signature}) and running in batch mode"
                )
            self._ask_signature(distfile.name, signature, session)

        command = (
            f"{SIGNATURE_TOOL} {shlex.quote(signature.name)} {shlex.quote(distfile.name)}"
        )
        result = self._runner.run(command, distfile.parent)
        if not result.ok:
            raise VerificationError(
                f"Signature verification of {distfile.name} failed "
                f"(exit {result.return_code}): {command}"
            )
        logger.info("Signature OK for %s", distfile.name)

    def _ask_signature(self, filename: str, signature: Path, session: Session) -> None:
        answer = self._terminal.prompt(
            f"Signature URL or file for {filename} (blank to abort): "
        ).strip()
        if not answer:
            raise VerificationError(f"No signature given for {filename}")

        if "://" in answer:
            try:
                self._retriever.fetch(answer, signature, session.transfer)
            except TransferError as e:
                raise VerificationError(f"Cannot obtain signature for {filename}: {e}") from e
            return

        source = Path(answer).expanduser()
        if not source.is_file():
            raise VerificationError(f"Signature file not found: {source}")
        try:
            shutil.copyfile(source, signature)
        except OSError as e:
            raise VerificationError(f"Cannot copy signature {source}: {e}") from e

    # ── Shared ──────────────────────────────────────────────────

    def _fetch_artifact(self, vurl: str, artifact: Path, session: Session) -> None:
        try:
            self._retriever.fetch(vurl, artifact, session.transfer)
        except TransferError as e:
            logger.warning("Could not fetch verification file: %s", e)
            # a partial download must not pass for a real artifact
            artifact.unlink(missing_ok=True)
