#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests de l'API FastAPI et du point d'entrée CGI
"""

import pytest
from fastapi.testclient import TestClient

import dumprows_cgi
from app import app
from UTILS.page import CGI_HEADER


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("DUMPROWS_COMMAND", "cat")
    monkeypatch.delenv("DUMPROWS_API_TOKEN", raising=False)
    monkeypatch.delenv("DUMPROWS_LOG_FILE", raising=False)
    return TestClient(app)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "app": "DumpRows"}


def test_query_is_rendered(client):
    r = client.get("/?SELECT%201")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "X-Request-ID" in r.headers
    assert "<pre>SELECT 1;</pre>" in r.text


def test_rejected_query(client):
    r = client.get("/?DELETE%20FROM%20t")
    assert r.status_code == 400
    assert "Error: query string is not a valid SQL SELECT statement" in r.text


def test_api_key_guard(client, monkeypatch):
    monkeypatch.setenv("DUMPROWS_API_TOKEN", "s3cret")
    assert client.get("/?SELECT%201").status_code == 401
    r = client.get("/?SELECT%201", headers={"X-API-Key": "s3cret"})
    assert r.status_code == 200


def test_cgi_run(monkeypatch, capsys):
    monkeypatch.setenv("QUERY_STRING", "SELECT%201")
    monkeypatch.setenv("REMOTE_ADDR", "192.0.2.7")
    monkeypatch.delenv("DUMPROWS_LOG_FILE", raising=False)
    assert dumprows_cgi.main(["cat"]) == 0
    out = capsys.readouterr().out
    assert out.startswith(CGI_HEADER + "<!DOCTYPE html>")
    assert "<pre>SELECT 1;</pre>" in out


def test_cgi_error_exit_status(monkeypatch, capsys):
    monkeypatch.delenv("REMOTE_ADDR", raising=False)
    monkeypatch.delenv("DUMPROWS_LOG_FILE", raising=False)
    assert dumprows_cgi.main(["cat"]) == 1
    assert "Error: remote address could not be retrieved" in capsys.readouterr().out


def test_cgi_render_file(tmp_path, capsys):
    path = tmp_path / "out.html"
    path.write_text("<table><tr><th>a</th></tr><tr><td>1</td></tr></table>", encoding="utf-8")
    assert dumprows_cgi.main(["--render", str(path)]) == 0
    out = capsys.readouterr().out
    assert "<body><table><tr><th>a</th></tr><tr><td>1</td></tr></table></body>" in out
