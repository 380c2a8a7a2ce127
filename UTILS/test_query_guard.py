#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests de la validation heuristique des requêtes SELECT
"""

import pytest

from UTILS.query_guard import QueryRejected, decode_query, prepare_query, text_search, validate_query


def test_text_search_skips_quoted_text():
    assert text_search("SELECT 'a;b' FROM t", ";") == 0
    assert text_search("SELECT 1;", ";") == 9
    assert text_search('SELECT "x" INTO y', "into") == 12
    assert text_search("SELECT 'unterminated", ";") == -1


def test_valid_queries():
    for q in [
        "SELECT 1",
        "select * from places",
        "SELECT * FROM places;",
        "SELECT 'a;b', \"into\" FROM t",
        "WITH a AS (SELECT 1) SELECT * FROM a",
    ]:
        assert validate_query(q) == len(q), q


def test_invalid_queries():
    for q in [
        "",
        "SELECT",
        "SELECT * FROM t; DROP TABLE t",
        "SELECT * INTO copy FROM t",
        "SELECT 'oops FROM t",
        "UPDATE t SET a = 1",
        "DELETE FROM t",
        "WITH a AS (DELETE FROM t RETURNING *) SELECT * FROM a",
        "WITH a AS (VALUES (1)) TABLE a",
    ]:
        assert validate_query(q) == 0, q


def test_decode_keeps_plus_sign():
    assert decode_query("SELECT%201%2B1") == "SELECT 1+1"
    assert decode_query("a+b") == "a+b"
    assert decode_query(None) == ""


def test_prepare_query_trims_and_terminates():
    assert prepare_query("%20%20SELECT%20*%20FROM%20t%20") == "SELECT * FROM t;"
    assert prepare_query("SELECT%201;") == "SELECT 1;"


def test_prepare_query_rejects():
    with pytest.raises(QueryRejected) as exc:
        prepare_query("DROP%20TABLE%20t")
    assert str(exc.value) == "query string is not a valid SQL SELECT statement"
