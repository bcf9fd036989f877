import json
import logging

import pytest

from autoleadgen import page_scripts as js
from autoleadgen.config import AutomationConfig, BrokerConfig, DiscoveryConfig
from autoleadgen.errors import AutomationTimeout, DriverDisconnected, ElementNotFoundError, InvalidURLError
from autoleadgen.events import ProgressBus
from autoleadgen.logging_setup import configure_logging
from autoleadgen.page_driver import LOGGED_IN, UNKNOWN, check_login, click
from autoleadgen.polling import PollPolicy, poll_attempts, wait_until
from autoleadgen.troubleshoot_log import log_json


@pytest.mark.asyncio
async def test_wait_until_returns_first_truthy_value():
    seen = []

    async def check():
        seen.append(1)
        return "ready" if len(seen) == 3 else None

    assert await wait_until(check, PollPolicy(timeout_s=5, interval_s=0)) == "ready"
    assert len(seen) == 3


@pytest.mark.asyncio
async def test_wait_until_times_out():
    async def never():
        return False

    with pytest.raises(AutomationTimeout) as ei:
        await wait_until(never, PollPolicy(timeout_s=0, interval_s=0), what="page load")
    assert ei.value.message == "Timed out waiting for page load"


@pytest.mark.asyncio
async def test_poll_attempts_is_bounded():
    calls = []

    async def check():
        calls.append(1)
        return None

    with pytest.raises(AutomationTimeout):
        await poll_attempts(check, 5, 0, what="Message dialog")
    assert len(calls) == 5


@pytest.mark.asyncio
async def test_check_login_statuses(make_driver):
    assert await check_login(make_driver({js.LOGIN_STATUS: "logged_in"})) == LOGGED_IN
    assert await check_login(make_driver({js.LOGIN_STATUS: "maybe"})) == UNKNOWN
    assert await check_login(make_driver({js.LOGIN_STATUS: RuntimeError("eval failed")})) == UNKNOWN
    with pytest.raises(DriverDisconnected):
        await check_login(make_driver({js.LOGIN_STATUS: DriverDisconnected("gone")}))


@pytest.mark.asyncio
async def test_click_requires_expected_status(make_driver):
    driver = make_driver({js.CLICK_SEND: "not_found"})
    with pytest.raises(ElementNotFoundError) as ei:
        await click(driver, js.CLICK_SEND, "Send button")
    assert ei.value.element == "Send button"


def test_js_escape():
    assert js.js_escape("it's a \"test\"\nline\r") == "it\\'s a \\\"test\\\"\\nline"
    assert "Don\\'t" in js.type_message("Don't")


@pytest.mark.asyncio
async def test_progress_bus_keeps_latest_events():
    bus = ProgressBus(maxsize=2)
    bus.emit("x", "dropped, nobody listening")
    q = bus.open()
    for i in range(3):
        bus.emit("x", f"m{i}", {"i": i})
    assert [q.get_nowait().message for _ in range(q.qsize())] == ["m1", "m2"]
    bus.close(q)
    assert bus.subscriber_count == 0


def test_log_json_appends_jsonl(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("TROUBLESHOOT_LOG_DIR", str(tmp_path))
    log_json("automation", "info", "sent", {"url": "linkedin.com/in/a"})
    files = list(tmp_path.glob("automation-*.jsonl"))
    assert len(files) == 1
    rec = json.loads(files[0].read_text().strip())
    assert rec["service"] == "automation" and rec["data"]["url"] == "linkedin.com/in/a"
    assert '"message": "sent"' in capsys.readouterr().out


def test_configure_logging_is_idempotent(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        configure_logging("DEBUG", str(tmp_path))
        count = len(root.handlers)
        configure_logging("DEBUG", str(tmp_path))
        assert len(root.handlers) == count
        assert (tmp_path / "autoleadgen.log").exists()
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)


def test_config_validation_and_overrides():
    with pytest.raises(ValueError):
        AutomationConfig(min_delay_s=10, max_delay_s=5)
    cfg = DiscoveryConfig.from_settings(target_count=7)
    assert cfg.target_count == 7
    assert not BrokerConfig(base_url="https://x", secret=None).is_configured


def test_error_payload():
    err = InvalidURLError("nope")
    assert err.to_dict()["category"] == "input"
    assert err.to_dict()["recovery"]
