import os
import sys

# Ensure project root is on sys.path so tests can import the `hostpulse` package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


import pytest
from hostpulse import create_app
from hostpulse.config import TestConfig
from hostpulse.history import HistoryBuffer


@pytest.fixture
def history():
    return HistoryBuffer(capacity=10)


@pytest.fixture
def web_dir(tmp_path):
    web = tmp_path / "web"
    web.mkdir()
    (web / "index.html").write_text("<h1>hostpulse</h1>")
    return web


@pytest.fixture
def app(history, web_dir):
    class LocalTestConfig(TestConfig):
        WEB_DIR = str(web_dir)

    return create_app(LocalTestConfig, history=history)


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
