import pytest
import requests

from upload_client import UploadClient, main


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class FakeSession:
    """Records requests and answers from a queue of file-info payloads."""

    def __init__(self, infos=()):
        self.posts = []
        self.infos = list(infos)

    def post(self, url, data=None, files=None, timeout=None):
        body = None
        if files:
            _, body, _ = files["fileChunk"]
        self.posts.append((url, dict(data), body))
        if url.endswith("/process-video"):
            return FakeResponse(text="Started processing")
        return FakeResponse(text="File chunk uploaded successfully")

    def get(self, url, timeout=None):
        payload = self.infos.pop(0) if len(self.infos) > 1 else self.infos[0]
        return FakeResponse(payload=payload)


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"a" * 10 + b"b" * 20 + b"c" * 30)
    return path


def test_upload_sends_sequential_chunks(video):
    session = FakeSession()
    client = UploadClient("http://svc:8001/", session=session, chunk_size=25)
    progress = []

    file_id = client.upload(str(video), file_id="xyz", progress=lambda *a: progress.append(a))

    assert file_id == "xyz"
    assert [len(body) for _, _, body in session.posts] == [25, 25, 10]
    assert b"".join(body for _, _, body in session.posts) == video.read_bytes()
    assert all(url == "http://svc:8001/upload" for url, _, _ in session.posts)
    assert all(data == {"fileId": "xyz", "fileName": "a.bin"} for _, data, _ in session.posts)
    assert progress[-1] == (3, 60, 60)


def test_upload_generates_file_id(video):
    session = FakeSession()
    file_id = UploadClient(session=session).upload(str(video))
    assert len(file_id) == 32
    assert session.posts[0][1]["fileId"] == file_id


def test_process_and_wait(video):
    running = {"xyz": {"file_name": "a.bin", "is_processed": False, "is_processing": True}}
    done = {"xyz": {"file_name": "a.bin", "is_processed": True, "is_processing": False}}
    session = FakeSession(infos=[running, running, done])
    client = UploadClient(session=session)

    assert client.process("xyz") == "Started processing"
    assert client.wait_until_processed("xyz", poll_interval=0) == done["xyz"]


def test_wait_times_out(video):
    running = {"xyz": {"file_name": "a.bin", "is_processed": False, "is_processing": True}}
    client = UploadClient(session=FakeSession(infos=[running]))
    assert client.wait_until_processed("xyz", poll_interval=0, timeout=0) is None


def test_main_rejects_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.mp4")]) == 1
    assert "File not found" in capsys.readouterr().out
