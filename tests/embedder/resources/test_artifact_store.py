"""
Unit tests for artifact resolution.
"""

import pytest
from PIL import Image

from qrdoc_toolkit.embedder.resources import ArtifactError, ArtifactStore


class TestArtifactStore:

    def test_resolve_when_png_then_returns_verified_artifact(self, sample_image):
        artifact = ArtifactStore().resolve(str(sample_image))

        assert artifact.format == "PNG"
        assert (artifact.width, artifact.height) == (64, 64)
        assert artifact.data == sample_image.read_bytes()

    def test_resolve_when_jpeg_then_accepted(self, sample_jpeg):
        assert ArtifactStore().resolve(str(sample_jpeg)).format == "JPEG"

    def test_resolve_when_relative_ref_then_uses_base_path(self, sample_image):
        store = ArtifactStore(sample_image.parent)

        assert store.resolve(sample_image.name).ref == sample_image.name

    def test_resolve_when_resolved_twice_then_cached(self, sample_image):
        store = ArtifactStore()

        first = store.resolve(str(sample_image))
        sample_image.unlink()
        second = store.resolve(str(sample_image))

        assert first is second
        assert str(sample_image) in store

    def test_resolve_when_missing_then_raises(self, tmp_path):
        with pytest.raises(ArtifactError) as exc_info:
            ArtifactStore().resolve(str(tmp_path / "missing.png"))

        assert exc_info.value.reason == "Artifact file not found"
        assert exc_info.value.ref.endswith("missing.png")

    def test_resolve_when_not_an_image_then_raises(self, tmp_path):
        bogus = tmp_path / "bogus.png"
        bogus.write_bytes(b"plain text")

        with pytest.raises(ArtifactError, match="not a readable image"):
            ArtifactStore().resolve(str(bogus))

    def test_resolve_when_unsupported_format_then_raises(self, tmp_path):
        gif = tmp_path / "qr.gif"
        Image.new("L", (8, 8)).save(gif, format="GIF")

        with pytest.raises(ArtifactError, match="Unsupported artifact format GIF"):
            ArtifactStore().resolve(str(gif))

    def test_resolve_when_failure_then_not_cached(self, tmp_path):
        store = ArtifactStore()
        ref = str(tmp_path / "later.png")

        with pytest.raises(ArtifactError):
            store.resolve(ref)

        assert ref not in store
