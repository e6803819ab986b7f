"""
Media Service Tests

Signed URLs and deletion against the in-memory store.
"""
import pytest

from vidstream.exceptions import InvalidInputError, StorageBackendError
from vidstream.services.media_service import MediaService


@pytest.fixture
def service(fake_store):
    return MediaService(fake_store, "videos/", 3600, clock=lambda: 1700000000000)


class TestStreamUrl:
    """stream_url"""

    def test_signed_get(self, service, fake_store):
        url = service.stream_url("videos/a.mp4")

        assert url == "https://signed.example/media/videos/a.mp4?verb=get&ttl=3600"
        assert fake_store.signed[0]["verb"] == "get"

    def test_key_required(self, service):
        with pytest.raises(InvalidInputError) as exc_info:
            service.stream_url("")
        assert exc_info.value.message == "Video key is required"

    def test_backend_failure(self, service, fake_store):
        fake_store.fail_with = "boom"
        with pytest.raises(StorageBackendError) as exc_info:
            service.stream_url("videos/a.mp4")
        assert exc_info.value.message == "Failed to generate stream URL"


class TestUploadUrl:
    """upload_url"""

    def test_key_layout(self, service):
        ticket = service.upload_url("My Movie (2020).mp4")
        assert ticket.key == "videos/1700000000000-My_Movie__2020_.mp4"

    def test_binds_type_and_metadata(self, service, fake_store):
        service.upload_url("clip.webm", "video/webm")

        signed = fake_store.signed[0]
        assert signed["verb"] == "put"
        assert signed["content_type"] == "video/webm"
        assert signed["metadata"]["original-filename"] == "clip.webm"
        assert "upload-date" in signed["metadata"]

    def test_default_content_type(self, service, fake_store):
        service.upload_url("clip.mp4")
        assert fake_store.signed[0]["content_type"] == "video/mp4"

    def test_filename_required(self, service):
        with pytest.raises(InvalidInputError) as exc_info:
            service.upload_url(None)
        assert exc_info.value.message == "Filename is required"


class TestDelete:
    """delete"""

    def test_deletes_only_that_object(self, service, fake_store):
        fake_store.add("videos/a.mp4")
        fake_store.add("videos/a-poster.jpg")

        assert service.delete("videos/a.mp4") == "videos/a.mp4"
        assert list(fake_store.objects) == ["videos/a-poster.jpg"]

    def test_key_required(self, service):
        with pytest.raises(InvalidInputError):
            service.delete(None)

    def test_backend_failure(self, service, fake_store):
        fake_store.fail_with = "boom"
        with pytest.raises(StorageBackendError) as exc_info:
            service.delete("videos/a.mp4")
        assert exc_info.value.message == "Failed to delete video"
