#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests de bout en bout : document de résultats -> RenderPlan -> page, et pipeline requête complet
"""

from DB.utility_runner import UtilityError
from dumprows_orchestrator import format_results, render_document, run_query
from MAP_GENERATION.features import compute_extent
from MAP_GENERATION.results_map import TABLE_STYLE
from TABLE_SCAN.result_table import scan_geometry_column, split_rows

GEOM = '{"type":"Point","coordinates":[1.0,2.0]}'


def _two_rows(second_geom=GEOM):
    return (
        "<table border=\"1\">\n"
        "  <tr><th align=\"center\">id</th><th align=\"center\">geom</th></tr>\n"
        f"  <tr valign=\"top\"><td align=\"right\">1</td><td align=\"left\">{GEOM}</td></tr>\n"
        f"  <tr valign=\"top\"><td align=\"right\">2</td><td align=\"left\">{second_geom}</td></tr>\n"
        "</table>\n(2 rows)\n"
    )


def test_empty_document():
    plan = format_results("")
    assert plan.body_content == "<h1>No results.</h1>"
    assert plan.additional_head is None and plan.body_attribute is None


def test_non_markup_document():
    msg = "ORA-00942: table or view does not exist"
    plan = format_results(msg)
    assert plan.body_content == f"<pre>{msg}</pre>"
    assert plan.additional_head is None and plan.body_attribute is None


def test_markup_without_rows():
    doc = "<html>\n<BODY>\n  <p>no rows selected</p>\n</BODY>\n</html>"
    plan = format_results(doc)
    assert plan.body_content == "<p>no rows selected</p>"
    assert plan.additional_head is None and plan.body_attribute is None
    # sans <body> : tout le document, nettoyé
    assert format_results("<p>empty</p>\n").body_content == "<p>empty</p>"


def test_two_point_rows_produce_a_map():
    doc = _two_rows()
    col = scan_geometry_column(split_rows(doc))
    assert col.column_index == 2
    ext = compute_extent(col)
    assert (ext.min_lat, ext.min_lng, ext.max_lat, ext.max_lng) == (2.0, 1.0, 2.0, 1.0)

    plan = format_results(doc)
    assert plan.body_attribute == 'onload="init()"'
    assert "properties: { index: 1 }" in plan.additional_head
    assert "properties: { index: 2 }" in plan.additional_head
    assert "properties: { index: 3 }" not in plan.additional_head
    assert "[[2.000000, 1.000000], [2.000000, 1.000000]]" in plan.additional_head
    assert "(2 rows)" not in plan.body_content


def test_inconsistent_column_falls_back_to_table():
    plan = format_results(_two_rows("N/A"))
    assert plan.additional_head == f"<style>{TABLE_STYLE}</style>"
    assert plan.body_attribute is None
    assert plan.body_content.startswith("<table><tr><th")
    assert GEOM in plan.body_content
    assert "selectFeature" not in plan.body_content


def test_render_document_page():
    html = render_document(_two_rows())
    assert html.startswith('<!DOCTYPE html><html lang="en-US"><head><meta charset="UTF-8" /><title>results</title>')
    assert '<body onload="init()"><div id="tableDiv">' in html


# ------------------------ run_query ------------------------

def test_run_query_success(tmp_path):
    seen = []

    def fetch(query):
        seen.append(query)
        return _two_rows()

    log_path = tmp_path / "dumprows.log"
    res = run_query("SELECT%20id,%20geom%20FROM%20t", "192.0.2.7", fetch=fetch, log_path=str(log_path))
    assert res.ok and res.status_code == 200
    assert seen == ["SELECT id, geom FROM t;"]
    assert "<title>results</title>" in res.html
    assert "javascript:selectFeature(2)" in res.html
    assert "\t192.0.2.7\nSELECT id, geom FROM t;" in log_path.read_text(encoding="utf-8")


def test_run_query_missing_inputs():
    res = run_query("SELECT%201", None, fetch=lambda q: "")
    assert not res.ok
    assert res.error == "remote address could not be retrieved"
    assert "<title>error</title>" in res.html

    res = run_query(None, "192.0.2.7", fetch=lambda q: "")
    assert res.error == "query string could not be retrieved"


def test_run_query_rejected(tmp_path):
    log_path = tmp_path / "dumprows.log"
    res = run_query("DELETE%20FROM%20t", "192.0.2.7", fetch=lambda q: "", log_path=str(log_path))
    assert not res.ok and res.status_code == 400
    assert "<h1>Error: query string is not a valid SQL SELECT statement</h1>" in res.html
    assert "Error: query string is not a valid SQL SELECT statement\nDELETE%20FROM%20t" in log_path.read_text(
        encoding="utf-8"
    )


def test_run_query_source_failure():
    def fetch(query):
        raise UtilityError("database utility could not be executed")

    res = run_query("SELECT%201", "192.0.2.7", fetch=fetch)
    assert not res.ok and res.status_code == 502
    assert res.error == "database utility could not be executed"


def test_run_query_with_utility_command():
    res = run_query("SELECT%201", "192.0.2.7", command="cat")
    assert res.ok
    assert "<pre>SELECT 1;</pre>" in res.html


def test_run_query_bad_database_url(monkeypatch):
    """URL SQLAlchemy inutilisable : page d'erreur 502, pas d'exception."""
    monkeypatch.delenv("DUMPROWS_COMMAND", raising=False)
    res = run_query("SELECT%201", "192.0.2.7", database_url="nosuchdialect://x")
    assert not res.ok and res.status_code == 502
    assert res.error == "database utility could not be executed"
    assert "<h1>Error: database utility could not be executed</h1>" in res.html
