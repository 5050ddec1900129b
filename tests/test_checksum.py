"""
Tests for checksum file normalization.
"""

import pytest

from appinst.core.models import VerifyMethod
from appinst.core.services.verification import (
    CHECKSUM_KINDS,
    canonical_line,
    find_candidates,
    normalize_checksum_file,
)

MD5 = CHECKSUM_KINDS[VerifyMethod.MD5]
SHA256 = CHECKSUM_KINDS[VerifyMethod.SHA256]

D1 = "d41d8cd98f00b204e9800998ecf8427e"
D2 = "0cc175b9c0f1b6a831c399e269772661"
FILE = "foo-1.0.tar.gz"


class TestFindCandidates:
    def test_gnu_layout(self):
        assert find_candidates([f"{D1}  {FILE}"], FILE, 32) == [D1]

    def test_binary_marker(self):
        assert find_candidates([f"{D1} *{FILE}"], FILE, 32) == [D1]

    def test_bsd_layout(self):
        assert find_candidates([f"MD5 ({FILE}) = {D1}"], FILE, 32) == [D1]

    def test_other_files_ignored(self):
        lines = [f"{D2}  bar-2.0.tar.gz", f"{D1}  {FILE}"]
        assert find_candidates(lines, FILE, 32) == [D1]

    def test_filename_prefix_is_not_a_match(self):
        # foo-1.0.tar.gz must not match foo-1.0.tar.gz.sig
        assert find_candidates([f"{D2}  {FILE}.sig"], FILE, 32) == []

    def test_wrong_length_digest_ignored(self):
        sha = "a" * 64
        assert find_candidates([f"{sha}  {FILE}"], FILE, 32) == []

    def test_bare_digest(self):
        assert find_candidates(["", D1, ""], FILE, 32) == [D1]

    def test_bare_digest_only_when_alone(self):
        assert find_candidates([D1, D2], FILE, 32) == []

    def test_all_candidates_in_order(self):
        lines = [f"{D2}  {FILE}", f"{D1}  {FILE}"]
        assert find_candidates(lines, FILE, 32) == [D2, D1]


class TestNormalize:
    def test_missing_file(self, tmp_path):
        assert normalize_checksum_file(tmp_path / "x.md5", FILE, MD5) is False

    def test_multi_entry_rewritten_to_one_line(self, tmp_path):
        path = tmp_path / f"{FILE}.md5"
        path.write_text(f"# checksums\n{D2}  other.tar.gz\nMD5 ({FILE}) = {D1}\n")

        assert normalize_checksum_file(path, FILE, MD5) is True
        assert path.read_text() == canonical_line(D1, FILE) + "\n"

    def test_first_candidate_wins(self, tmp_path):
        path = tmp_path / f"{FILE}.md5"
        path.write_text(f"{D2}  {FILE}\n{D1}  {FILE}\n")
        normalize_checksum_file(path, FILE, MD5)
        assert path.read_text() == f"{D2}  {FILE}\n"

    def test_canonical_file_untouched(self, tmp_path, monkeypatch):
        path = tmp_path / f"{FILE}.md5"
        path.write_text(f"{D1}  {FILE}\n")

        def refuse(*args, **kwargs):
            raise AssertionError("canonical file rewritten")

        monkeypatch.setattr(type(path), "write_text", refuse)
        assert normalize_checksum_file(path, FILE, MD5) is True

    def test_no_digest_left_alone(self, tmp_path):
        path = tmp_path / f"{FILE}.sha256"
        path.write_text("<html>404 Not Found</html>\n")
        assert normalize_checksum_file(path, FILE, SHA256) is False
        assert path.read_text() == "<html>404 Not Found</html>\n"

    @pytest.mark.parametrize("kind", list(CHECKSUM_KINDS.values()))
    def test_is_valid(self, kind):
        assert kind.is_valid("a" * kind.length)
        assert kind.is_valid(" " + "F" * kind.length + "\n")
        assert not kind.is_valid("a" * (kind.length + 1))
        assert not kind.is_valid("g" * kind.length)
