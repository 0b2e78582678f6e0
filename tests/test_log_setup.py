import json
import logging

import pytest

from tokendispatch.core import log


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_get_namespaces_logger():
    assert log.get("area").name == "tokendispatch.area"
    assert log.get("tokendispatch.area").name == "tokendispatch.area"
    assert log.get("tokendispatch").name == "tokendispatch"


def test_setup_json_mode_writes_json_lines(capsys, restore_root):
    log.setup("DEBUG", json_mode=True, force=True)
    log.get("jsontest").info("hello %s", "world")
    line = capsys.readouterr().out.strip().splitlines()[-1]
    obj = json.loads(line)
    assert obj["msg"] == "hello world"
    assert obj["lvl"] == "INFO"
    assert obj["name"] == "tokendispatch.jsontest"


def test_setup_reads_log_level_env(monkeypatch, restore_root):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.setenv("LOG_JSON", "0")
    log.setup(force=True)
    assert restore_root.level == logging.ERROR


def test_setup_is_idempotent_without_force(restore_root):
    before = list(restore_root.handlers)
    log.setup("DEBUG")
    assert restore_root.handlers == before


def test_set_level_unknown_name_falls_back_to_info(restore_root):
    log.set_level("nonsense")
    assert restore_root.level == logging.INFO
    log.set_level("warning")
    assert restore_root.level == logging.WARNING
