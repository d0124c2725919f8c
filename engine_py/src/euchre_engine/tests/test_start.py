"""
Tests for the server launcher.
"""

import logging

from euchre_engine import start


def test_main_logs_and_runs_uvicorn(monkeypatch, caplog):
    calls = {}
    monkeypatch.setattr(start.uvicorn, 'run', lambda app, **kwargs: calls.update(app=app, **kwargs))
    monkeypatch.setenv('PORT', '9001')
    monkeypatch.delenv('HOST', raising=False)
    monkeypatch.delenv('RELOAD', raising=False)

    with caplog.at_level(logging.INFO, logger='euchre_engine.start'):
        start.main()

    assert calls['app'] == 'euchre_engine.main:app'
    assert calls['port'] == 9001
    assert calls['reload'] is False
    assert 'Euchre backend on 0.0.0.0:9001' in caplog.text
