# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

from app.events import DocumentImported, ElementsChanged, EventBus
from infra import settings
from infra.logging_setup import init_logging
from infra.paths import logs_dir, user_data_dir


def test_user_space_follows_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOVAAVA_HOME", str(tmp_path / "custom"))
    assert user_data_dir() == tmp_path / "custom"
    assert logs_dir().is_dir()


def test_settings_defaults_are_written_once() -> None:
    s = settings.load_settings()
    assert s["undo_depth"] == 50
    assert s["default_export_mode"] == "ava"
    assert settings.settings_file().exists()


def test_corrupt_settings_reset_to_defaults() -> None:
    settings.save_settings({"undo_depth": 5})
    assert settings.load_settings()["undo_depth"] == 5

    settings.settings_file().write_text("{not json", encoding="utf-8")
    assert settings.load_settings() == settings.defaults()


def test_recent_files_are_capped_and_deduplicated() -> None:
    for i in range(12):
        settings.add_recent_file(f"doc{i}.xml")
    s = settings.add_recent_file("doc5.xml")
    recent = s["recent_files"]
    assert len(recent) == settings.MAX_RECENT_FILES
    assert recent[0] == "doc5.xml"
    assert recent.count("doc5.xml") == 1


def test_event_bus_isolates_failing_handlers() -> None:
    bus = EventBus()
    received = []

    def broken(evt):
        raise RuntimeError("listener bug")

    def on_import(evt):
        received.append(evt)

    bus.subscribe(DocumentImported, broken)
    bus.subscribe(DocumentImported, on_import)
    bus.emit(DocumentImported(path="a.xml", element_count=2))
    bus.emit(ElementsChanged(reason="ignored"))
    assert [e.path for e in received] == ["a.xml"]

    bus.unsubscribe(DocumentImported, on_import)
    bus.emit(DocumentImported(path="b.xml", element_count=0))
    assert len(received) == 1


def test_init_logging_is_idempotent() -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        path = init_logging("test.log")
        count = len(root.handlers)
        assert init_logging("test.log") == path
        assert len(root.handlers) == count
        assert path.parent == logs_dir()
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()


def test_perf_span_logs_only_when_enabled(monkeypatch, caplog) -> None:
    from infra import perf

    monkeypatch.delenv(perf.PERF_ENV, raising=False)
    caplog.set_level(logging.INFO, logger=perf.PERF_LOGGER)
    with perf.span("quiet", threshold_ms=0):
        pass
    assert not caplog.records

    monkeypatch.setenv(perf.PERF_ENV, "1")
    with perf.span("loud", items=4, threshold_ms=0):
        pass
    assert "PERF loud" in caplog.text
    assert "4 items" in caplog.text
