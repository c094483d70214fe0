import pytest

from vcsync import layout
from vcsync.exceptions import PathViolationError


class TestTrackedPaths:
    def test_document_path(self) -> None:
        assert layout.document_path("spec.md") == "spec.md"

    def test_document_path_rejects_escape(self) -> None:
        with pytest.raises(PathViolationError):
            layout.document_path("../spec.md")

    def test_model_paths(self) -> None:
        assert layout.model_object_path("Account") == "objects/Account/object.json"
        assert layout.model_field_path("Account", "Industry") == (
            "objects/Account/fields/Industry.json"
        )

    def test_universal_content_paths(self) -> None:
        assert layout.universal_content_dir("requirements", "req-7") == "requirements/req-7"
        assert layout.universal_content_path("requirements", "req-7") == (
            "requirements/req-7/content.json"
        )
        assert layout.universal_metadata_path("requirements", "req-7") == (
            "requirements/req-7/metadata.json"
        )

    def test_identifiers_cannot_add_segments(self) -> None:
        assert layout.model_object_path("a/b") == "objects/a_b/object.json"

    @pytest.mark.parametrize("bad", ["", "  ", ".", ".."])
    def test_rejects_empty_or_dot_segments(self, bad: str) -> None:
        with pytest.raises(ValueError):
            layout.model_object_path(bad)


class TestContentHash:
    def test_str_and_bytes_agree(self) -> None:
        assert layout.content_hash("héllo") == layout.content_hash("héllo".encode())

    def test_differs_for_different_content(self) -> None:
        assert layout.content_hash("a") != layout.content_hash("b")

    def test_is_sha256_hex(self) -> None:
        digest = layout.content_hash(b"")

        assert len(digest) == 64
        assert digest.startswith("e3b0c442")
