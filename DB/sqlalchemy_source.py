# sqlalchemy_source.py
# -*- coding: utf-8 -*-
"""
Source alternative du document de résultats : exécution directe via SQLAlchemy (sans utilitaire
externe), rendue au format « psql -H » pour passer par exactement le même pipeline.

Dépendances: sqlalchemy (+ pilote de la base visée, ex. psycopg2-binary pour PostGIS)
"""

from __future__ import annotations
import html
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from DB.utility_runner import UtilityError

log = logging.getLogger("dumprows.sqlalchemy")

_ENGINES: Dict[str, Engine] = {}


def get_engine(database_url: str) -> Engine:
    """Un engine partagé par URL (pool_pre_ping comme pour PostGIS/Supabase)."""
    eng = _ENGINES.get(database_url)
    if eng is None:
        eng = create_engine(database_url, pool_pre_ping=True)
        _ENGINES[database_url] = eng
    return eng


def _cell(value: Any) -> str:
    if value is None:
        return "&nbsp;"
    return html.escape(str(value), quote=False)


def format_psql_html(columns: Sequence[str], rows: List[Sequence[Any]]) -> str:
    """Tableau au format de `psql -H` (en-tête <th>, une ligne <tr valign="top"> par enregistrement)."""
    out = ['<table border="1">', "  <tr>"]
    for col in columns:
        out.append(f'    <th align="center">{html.escape(str(col), quote=False)}</th>')
    out.append("  </tr>")
    for row in rows:
        out.append('  <tr valign="top">')
        for value in row:
            align = "right" if isinstance(value, (int, float)) and not isinstance(value, bool) else "left"
            out.append(f'    <td align="{align}">{_cell(value)}</td>')
        out.append("  </tr>")
    out.append("</table>")
    n = len(rows)
    out.append(f"<p>({n} row{'' if n == 1 else 's'})<br />")
    out.append("</p>")
    return "\n".join(out) + "\n"


def fetch_result_document(database_url: str, query: str, engine: Optional[Engine] = None) -> str:
    """
    Exécute la requête (déjà validée) et retourne le document de résultats.
    Une erreur base de données est retournée en texte, comme un utilitaire l'afficherait
    (échappée : le message du pilote peut reprendre des fragments de la requête).
    Une URL invalide ou un pilote absent lève UtilityError.
    """
    try:
        eng = engine or get_engine(database_url)
    except (SQLAlchemyError, ImportError) as e:
        log.error(f"Engine SQLAlchemy indisponible ({database_url}): {e}")
        raise UtilityError("database utility could not be executed") from e
    try:
        with eng.connect() as con:
            # exec_driver_sql : pas d'interprétation des ":nom" contenus dans les littéraux
            res = con.exec_driver_sql(query.rstrip().rstrip(";"))
            columns = list(res.keys())
            rows = [tuple(r) for r in res.all()]
    except SQLAlchemyError as e:
        log.error(f"Requête en échec: {e}")
        return f"ERROR: {html.escape(str(getattr(e, 'orig', None) or e), quote=False)}\n"
    log.info("Requête exécutée: %d ligne(s), %d colonne(s)", len(rows), len(columns))
    return format_psql_html(columns, rows)


__all__ = ["get_engine", "format_psql_html", "fetch_result_document"]
