from __future__ import annotations

import io
import os

import pytest
from werkzeug.http import parse_cookie

from api import create_app
from models import storage
from services import get_services
from services.media import MediaUploader, discard_local

API = "/api/v1/users"
PASSWORD = "secret123"


class FakeUploader(MediaUploader):
    """Records uploads and hands back predictable URLs."""

    def __init__(self):
        self.uploaded = []
        self.removed = []
        self.fail = False

    def upload(self, local_path):
        if not local_path:
            return None
        self.uploaded.append(os.path.basename(local_path))
        discard_local(local_path)
        if self.fail:
            return None
        return {"url": f"https://media.test/{os.path.basename(local_path)}"}

    def remove(self, url):
        if not url:
            return False
        self.removed.append(url)
        return True


@pytest.fixture
def media():
    return FakeUploader()


@pytest.fixture
def app(tmp_path, media):
    app = create_app(
        "testing",
        test_config={
            "DATABASE_URL": f"sqlite:///{tmp_path / 'auth.db'}",
            "UPLOAD_TMP_DIR": str(tmp_path / "uploads"),
        },
        media=media,
    )
    yield app
    storage.close()


@pytest.fixture
def client(app):
    # cookies are sent explicitly so every request states exactly what it presents
    return app.test_client(use_cookies=False)


@pytest.fixture
def services(app):
    with app.app_context():
        yield get_services()


@pytest.fixture
def make_user(services):
    def factory(username="alice", email=None, password=PASSWORD):
        return services.users.create(
            username=username,
            email=email or f"{username}@x.com",
            full_name=username.title(),
            password=password,
            avatar=f"https://media.test/{username}.png",
        )
    return factory


@pytest.fixture
def register(client):
    def do_register(username="alice", email=None, password=PASSWORD, avatar=True, cover=False):
        data = {
            "fullName": username.title(),
            "username": username,
            "email": email or f"{username}@x.com",
            "password": password,
        }
        if avatar:
            data["avatar"] = (io.BytesIO(b"\x89PNG avatar"), "avatar.png")
        if cover:
            data["coverImage"] = (io.BytesIO(b"\x89PNG cover"), "cover.png")
        return client.post(f"{API}/register", data=data, content_type="multipart/form-data")
    return do_register


@pytest.fixture
def login(client):
    def do_login(identifier="alice", password=PASSWORD):
        return client.post(f"{API}/login", json={"identifier": identifier, "password": password})
    return do_login


def response_cookies(response) -> dict:
    """Map cookie name -> (value, raw Set-Cookie header)."""
    cookies = {}
    for header in response.headers.getlist("Set-Cookie"):
        first = header.split(";", 1)[0]
        for name, value in parse_cookie(first).items():
            cookies[name] = (value, header)
    return cookies
