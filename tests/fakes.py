"""Test doubles for the pipeline collaborators."""

import subprocess
import time
from pathlib import Path

from space_saver.core.modules.models import StreamProbe, VideoItem
from space_saver.core.modules.processing.transcoding_engine import EncodeResult


def make_item(directory: Path, name: str, create: bool = True, content: bytes = b"original") -> VideoItem:
    path = directory / name
    if create:
        path.write_bytes(content)
    return VideoItem(item_id=name, path=path, container=path.suffix.lstrip('.'))


class FakeLibrary:
    """In-memory Library recording how it was paged."""

    def __init__(self, items):
        self.items = list(items)
        self.count_calls = 0
        self.page_calls = []
        self.refreshed = []

    def count(self, query):
        self.count_calls += 1
        return len(self.items)

    def list_page(self, query, offset, limit):
        self.page_calls.append((offset, limit))
        return self.items[offset:offset + limit]

    def refresh_metadata(self, item):
        self.refreshed.append(item)


class FakeProber:
    """Returns canned probes by file name; exceptions in the map are raised."""

    def __init__(self, probes, default=None):
        self.probes = probes
        self.default = default or StreamProbe(codec="hevc", height=1080)
        self.calls = []

    def probe(self, path, container=None, cancel=None):
        name = Path(path).name
        self.calls.append(name)
        result = self.probes.get(name, self.default)
        if isinstance(result, Exception):
            raise result
        return result


class FakeInvoker:
    """Writes a small converted file instead of running ffmpeg."""

    def __init__(self, fail_names=(), raise_names=(), content=b"converted", on_encode=None):
        self.fail_names = set(fail_names)
        self.raise_names = set(raise_names)
        self.content = content
        self.on_encode = on_encode
        self.calls = []

    def encode(self, input_file, output_file, config, cancel=None):
        name = Path(input_file).name
        self.calls.append(name)
        if self.on_encode:
            self.on_encode(name)
        if name in self.raise_names:
            raise RuntimeError(f"encoder crashed on {name}")
        if name in self.fail_names:
            return EncodeResult(ok=False, exit_code=1, stderr_text="Invalid data found")
        Path(output_file).write_bytes(self.content)
        return EncodeResult(ok=True, exit_code=0)


class FakeLocator:
    def __init__(self, encoder_path):
        self.encoder_path = encoder_path


class FakeProcess:
    """Stand-in for subprocess.Popen used as a context manager."""

    def __init__(self, cmd, returncode=0, stderr="", write_output=True, hang=False, stdout=None):
        self.cmd = cmd
        self._returncode = returncode
        self.returncode = None
        self.stdout_text = stdout
        self.stderr_text = stderr
        self.write_output = write_output
        self.hang = hang
        self.killed = False
        self.communicate_calls = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def communicate(self, timeout=None):
        self.communicate_calls += 1
        if self.hang and not self.killed:
            time.sleep(timeout or 0)
            raise subprocess.TimeoutExpired(cmd=self.cmd, timeout=timeout)
        if self.killed:
            self.returncode = -9
            return None, ""
        if self.write_output:
            Path(self.cmd[-1]).write_bytes(b"hevc output")
        self.returncode = self._returncode
        return self.stdout_text, self.stderr_text

    def kill(self):
        self.killed = True
