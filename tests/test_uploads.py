import asyncio
import hashlib
from urllib.parse import parse_qs

import httpx
import pytest

from tastebase.errors import InvalidImage, UploadError
from tastebase.main import app
from tastebase.services.images import AVATAR_FOLDER, ImageHost, get_image_host, sign_params

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeCloudinary:
    """Records upload requests and answers like the Cloudinary upload API."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"secure_url": "https://res.cloudinary.com/demo/x.png"}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        fields = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append((request, fields))
        return httpx.Response(self.status_code, json=self.payload)


def _host(fake, **kwargs):
    options = {"cloud_name": "demo", "upload_preset": "unsigned-preset", **kwargs}
    return ImageHost(transport=httpx.MockTransport(fake), **options)


@pytest.fixture
def fake():
    return FakeCloudinary()


@pytest.fixture
def upload_client(client, fake):
    app.dependency_overrides[get_image_host] = lambda: _host(fake, max_bytes=64)
    return client


def test_sign_params_sorts_keys():
    expected = hashlib.sha1(b"folder=Tastebase&timestamp=100secret").hexdigest()
    assert sign_params({"timestamp": "100", "folder": "Tastebase"}, "secret") == expected


def test_unsigned_upload_sends_preset(fake):
    url = asyncio.run(_host(fake).upload(PNG, "image/png", "Tastebase"))
    assert url == "https://res.cloudinary.com/demo/x.png"

    request, fields = fake.requests[0]
    assert str(request.url) == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert fields["upload_preset"] == "unsigned-preset"
    assert fields["folder"] == "Tastebase"
    assert fields["file"].startswith("data:image/png;base64,")


def test_signed_upload_when_credentials_set(fake):
    host = _host(fake, api_key="key", api_secret="secret")
    asyncio.run(host.upload(PNG, "image/png", AVATAR_FOLDER))

    _, fields = fake.requests[0]
    assert "upload_preset" not in fields
    assert fields["api_key"] == "key"
    params = {"folder": AVATAR_FOLDER, "timestamp": fields["timestamp"]}
    assert fields["signature"] == sign_params(params, "secret")


def test_validation_rejects_before_forwarding(fake):
    host = _host(fake, max_bytes=8)
    with pytest.raises(InvalidImage, match="must be an image"):
        asyncio.run(host.upload(PNG, "text/plain"))
    with pytest.raises(InvalidImage, match="No file"):
        asyncio.run(host.upload(b"", "image/png"))
    with pytest.raises(InvalidImage):
        asyncio.run(host.upload(PNG, "image/png"))
    assert fake.requests == []


def test_host_errors_become_upload_errors():
    with pytest.raises(UploadError):
        asyncio.run(_host(FakeCloudinary(status_code=401, payload={"error": "bad"})).upload(PNG, "image/png"))
    with pytest.raises(UploadError):
        asyncio.run(_host(FakeCloudinary(payload={})).upload(PNG, "image/png"))


def test_missing_configuration(fake):
    with pytest.raises(UploadError, match="cloud name"):
        asyncio.run(_host(fake, cloud_name="").upload(PNG, "image/png"))
    with pytest.raises(UploadError, match="preset"):
        asyncio.run(_host(fake, upload_preset="").upload(PNG, "image/png"))


def test_upload_image_route(upload_client, fake):
    res = upload_client.post(
        "/api/upload-image",
        files={"file": ("dish.png", PNG, "image/png")},
        data={"folder": "Tastebase/dishes"},
    )
    assert res.status_code == 200, res.text
    assert res.json() == {"url": "https://res.cloudinary.com/demo/x.png"}
    assert fake.requests[0][1]["folder"] == "Tastebase/dishes"


def test_upload_avatar_route_uses_avatar_folder(upload_client, fake):
    res = upload_client.post("/api/upload-avatar", files={"file": ("me.png", PNG, "image/png")})
    assert res.status_code == 200
    assert fake.requests[0][1]["folder"] == AVATAR_FOLDER


def test_upload_route_rejects_bad_files(upload_client, fake):
    not_image = upload_client.post("/api/upload-image", files={"file": ("a.txt", b"hello", "text/plain")})
    assert not_image.status_code == 400
    assert not_image.json()["detail"] == "File must be an image"

    too_big = upload_client.post("/api/upload-image", files={"file": ("big.png", PNG * 4, "image/png")})
    assert too_big.status_code == 400

    assert upload_client.post("/api/upload-image").status_code == 400
    assert fake.requests == []


def test_upload_route_reports_host_failure(client):
    app.dependency_overrides[get_image_host] = lambda: _host(FakeCloudinary(status_code=500))
    res = client.post("/api/upload-image", files={"file": ("dish.png", PNG, "image/png")})
    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to upload image to Cloudinary"
