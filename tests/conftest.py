import io
import json
import threading
import time
import urllib.parse
import zipfile
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import blake3
import pytest

from tl_repo.collaborators import LocalizedDataHost, Notifier
from tl_repo.settings import TranslationSettings


def blake3_hex(data):
    return blake3.blake3(data).hexdigest()


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def do_HEAD(self):
        self._respond(send_body=False)

    def do_GET(self):
        self._respond(send_body=True)

    def _respond(self, send_body):
        repo = self.server.repo
        path = urllib.parse.unquote(self.path.split("?", 1)[0])
        range_header = self.headers.get("Range")
        repo.record(self.command, path, range_header)
        time.sleep(repo.delays.get(path, 0))

        data = repo.files.get(path)
        if data is None:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        if range_header and repo.accept_ranges and not repo.ignore_ranges:
            start_s, end_s = range_header.split("=", 1)[1].split("-", 1)
            start = int(start_s)
            time.sleep(repo.range_delay.get(start, 0))
            status = repo.range_status.get(start)
            if status is not None:
                self.send_response(status)
                self.send_header("Content-Length", "0")
                self.end_headers()
                return
            end = min(int(end_s), len(data) - 1)
            body = data[start:end + 1]
            self.send_response(206)
            self.send_header("Content-Range", f"bytes {start}-{end}/{len(data)}")
        else:
            body = data
            self.send_response(200)

        if repo.accept_ranges:
            self.send_header("Accept-Ranges", "bytes")
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if send_body:
            self.wfile.write(body)


class _QuietServer(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address):
        # Clients hang up mid-body when a transfer is cancelled
        pass


class RepoServer:
    """In-memory static file server with HEAD and single byte-range support

    `delays` maps a path to seconds slept before answering it. `range_delay`
    and `range_status` are keyed by the first byte of a ranged GET and delay
    or replace (with an empty reply of that status) the answer for that window.
    """

    def __init__(self):
        self.files = {}
        self.accept_ranges = True
        self.ignore_ranges = False
        self.delays = {}
        self.range_delay = {}
        self.range_status = {}
        self.requests = []
        self._lock = threading.Lock()
        self.httpd = _QuietServer(("127.0.0.1", 0), _Handler)
        self.httpd.repo = self
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    @property
    def base_url(self):
        return f"http://127.0.0.1:{self.httpd.server_address[1]}"

    def url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def add(self, path, data):
        self.files["/" + path.lstrip("/")] = data

    def add_json(self, path, obj):
        self.add(path, json.dumps(obj).encode("utf-8"))

    def remove(self, path):
        self.files.pop("/" + path.lstrip("/"), None)

    def record(self, method, path, range_header):
        with self._lock:
            self.requests.append((method, path, range_header))

    def requested(self, method=None):
        with self._lock:
            return [r for r in self.requests if method is None or r[0] == method]

    def start(self):
        self._thread.start()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()


@pytest.fixture
def http_server():
    server = RepoServer()
    server.start()
    yield server
    server.stop()


def build_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


class TranslationRepo:
    """Publishes a repository (per-file bodies, archive, manifest) on a RepoServer"""

    def __init__(self, server, name="repo", zip_dir="tl-main"):
        self.server = server
        self.name = name
        self.zip_dir = zip_dir
        self.contents = {}

    @property
    def base_url(self):
        return self.server.url(f"{self.name}/files")

    @property
    def index_url(self):
        return self.server.url(f"{self.name}/index.json")

    @property
    def zip_url(self):
        return self.server.url(f"{self.name}/archive.zip")

    def publish(self, contents, hash_overrides=None):
        hash_overrides = hash_overrides or {}
        for path in self.contents:
            self.server.remove(f"{self.name}/files/{path}")
        self.contents = dict(contents)

        for path, data in contents.items():
            self.server.add(f"{self.name}/files/{path}", data)
        self.server.add(
            f"{self.name}/archive.zip",
            build_zip({f"{self.zip_dir}/{path}": data for path, data in contents.items()}),
        )
        index = {
            "base_url": self.base_url,
            "zip_url": self.zip_url,
            "zip_dir": self.zip_dir,
            "files": [
                {"path": path, "hash": hash_overrides.get(path, blake3_hex(data)), "size": len(data)}
                for path, data in contents.items()
            ],
        }
        self.server.add_json(f"{self.name}/index.json", index)
        return index


@pytest.fixture
def translation_repo(http_server):
    return TranslationRepo(http_server)


class RecordingNotifier(Notifier):
    """Records every call; `answer=None` leaves confirmations unanswered"""

    def __init__(self, answer=None):
        self.answer = answer
        self.notifications = []
        self.questions = []
        self.progress_visible = []

    def show_notification(self, message):
        self.notifications.append(message)

    def ask_yes_no(self, title, message, callback):
        self.questions.append((title, message))
        if self.answer is not None:
            callback(self.answer)

    def set_progress_visible(self, visible):
        self.progress_visible.append(visible)


class RecordingDataHost(LocalizedDataHost):
    def __init__(self):
        self.cleared = 0
        self.reloaded = 0

    def clear(self):
        self.cleared += 1

    def reload(self):
        self.reloaded += 1


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def data_host():
    return RecordingDataHost()


@pytest.fixture
def settings(tmp_path, translation_repo):
    return TranslationSettings(
        config_path=tmp_path / "config.ini",
        translation_repo_index=translation_repo.index_url,
    )
