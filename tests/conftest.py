import os
import sys

import pytest


def _ensure_repo_on_path() -> None:
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if root not in sys.path:
        sys.path.append(root)


_ensure_repo_on_path()


class Steps:
    """Successive results for one script; the last one repeats."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def next(self):
        v = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return v


class FakePageDriver:
    """Scripted page driver.

    ``responses`` maps a script to its result: a plain value, a ``Steps``, a
    callable taking the driver (e.g. to answer per ``current_url``) or an
    exception instance to raise. Typing scripts are keyed as "type_message" /
    "type_note" and answer 'typed' unless overridden.
    """

    steps = Steps

    def __init__(self, responses=None, load_errors=None):
        self.responses = dict(responses or {})
        self.load_errors = dict(load_errors or {})
        self.loaded = []
        self.evaluated = []
        self.typed_messages = []
        self.typed_notes = []
        self.current_url = None

    async def load(self, url):
        self.loaded.append(url)
        self.current_url = url
        err = self.load_errors.get(url)
        if err is not None:
            raise err

    async def is_loading(self):
        return False

    async def evaluate(self, script):
        self.evaluated.append(script)
        key = script
        if script not in self.responses:
            if "editor.focus()" in script:
                self.typed_messages.append(script)
                key = "type_message"
            elif "area.focus()" in script:
                self.typed_notes.append(script)
                key = "type_note"
        default = "typed" if key in ("type_message", "type_note") else None
        value = self.responses.get(key, default)
        if isinstance(value, Steps):
            value = value.next()
        elif callable(value) and not isinstance(value, type):
            value = value(self)
        if isinstance(value, BaseException):
            raise value
        return value

    def count(self, script):
        return sum(1 for s in self.evaluated if s == script)


@pytest.fixture
def make_driver():
    return FakePageDriver


@pytest.fixture(autouse=True)
def _troubleshoot_logs_to_tmp(tmp_path, monkeypatch):
    monkeypatch.setenv("TROUBLESHOOT_LOG_DIR", str(tmp_path / "troubleshoot"))
