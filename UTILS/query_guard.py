# query_guard.py
# -*- coding: utf-8 -*-
"""
Décodage + validation heuristique de la chaîne de requête : doit ressembler à UNE seule
instruction SQL SELECT (éventuellement précédée d'un WITH). Ce n'est pas un parseur SQL.
"""

from urllib.parse import unquote

MIN_QUERY_LENGTH = len("SELECT *")


class QueryRejected(ValueError):
    pass


def decode_query(raw: str) -> str:
    # décodage %XX uniquement : '+' reste tel quel
    return unquote(raw or "")


def text_search(haystack: str, needle: str) -> int:
    """
    Première occurrence (insensible à la casse) de `needle` hors chaînes '...' / "...".
    Retourne l'index 1-based, 0 si absente, -1 si un guillemet n'est jamais refermé.
    """
    n = len(needle)
    hay = haystack
    needle_l = needle.lower()
    p, last = 0, len(hay) - n
    while p <= last:
        c = hay[p]
        if c in ("'", '"'):
            close = hay.find(c, p + 1)
            if close < 0:
                return -1
            p = close + 1
            continue
        if hay[p:p + n].lower() == needle_l:
            return p + 1
        p += 1
    return 0


def validate_query(s: str) -> int:
    """Longueur de `s` si la requête est acceptable, sinon 0."""
    n = len(s)
    if n < MIN_QUERY_LENGTH:
        return 0

    # point-virgule non cité : toléré seulement en dernière position
    i = text_search(s, ";")
    if i and i < n:
        return 0

    if s[:6].upper() == "SELECT":
        return 0 if text_search(s, "INTO") else n

    if s[:4].upper() != "WITH":
        return 0
    if text_search(s, "INSERT") or text_search(s, "UPDATE") or text_search(s, "DELETE"):
        return 0
    return n if text_search(s, "SELECT") > 0 else 0


def prepare_query(raw: str) -> str:
    """Décode, nettoie, valide et termine la requête par ';'. Lève QueryRejected sinon."""
    query = decode_query(raw).strip()
    if not validate_query(query):
        raise QueryRejected("query string is not a valid SQL SELECT statement")
    if not query.endswith(";"):
        query += ";"
    return query


__all__ = ["QueryRejected", "decode_query", "text_search", "validate_query", "prepare_query"]
