# dumprows_orchestrator.py
# -*- coding: utf-8 -*-
"""
Pipeline « requête SQL → page HTML (tableau ou tableau + carte) » :
1) Contrôle adresse distante / chaîne de requête
2) Décodage + validation (une seule instruction SELECT)
3) Exécution (utilitaire ligne de commande, ou SQLAlchemy)
4) Classement du document de résultats + détection colonne GeoJSON + rendu
5) (optionnel) Journal des requêtes
"""

import logging
import os
import re
from typing import Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from DB.sqlalchemy_source import fetch_result_document
from DB.utility_runner import DEFAULT_TIMEOUT_S, UtilityError, run_utility
from MAP_GENERATION.results_map import RenderPlan, render_results
from TABLE_SCAN.result_table import has_row_markers, scan_geometry_column, split_rows
from UTILS.page import render_error_page, render_page
from UTILS.query_guard import QueryRejected, prepare_query
from UTILS.request_log import log_request

load_dotenv()

log =logging.getLogger("dumprows.orchestrator")
if not log.handlers:
    logging.basicConfig(
        level=os.getenv("DUMPROWS_LOG_LEVEL", "INFO"),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

RESULTS_TITLE = "results"
ERROR_TITLE = "error"
NO_RESULTS_HTML = "<h1>No results.</h1>"
BODY_OPEN_RE = re.compile(r"<body>", re.IGNORECASE)
BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)

STR_REMOTE_ADDR = "remote address could not be retrieved"
STR_QUERY_STRING = "query string could not be retrieved"
STR_NO_SOURCE = "database utility could not be executed"


class QueryResponse(BaseModel):
    ok: bool
    title: str
    html: str
    error: Optional[str] = None
    status_code: int = 200


# ------------------------ Config ------------------------

def _setting(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default) or default


def _timeout() -> float:
    try:
        return float(_setting("DUMPROWS_TIMEOUT", str(DEFAULT_TIMEOUT_S)))
    except ValueError:
        log.warning("DUMPROWS_TIMEOUT invalide, valeur par défaut utilisée.")
        return DEFAULT_TIMEOUT_S


# ------------------------ Classement + rendu ------------------------

def _body_content(document: str) -> str:
    m = BODY_OPEN_RE.search(document)
    start = m.end() if m else 0
    m = BODY_CLOSE_RE.search(document, start)
    end = m.start() if m else len(document)
    return document[start:end].strip()


def format_results(document: str) -> RenderPlan:
    """
    Tous les utilitaires ne produisent pas le même HTML ; le dénominateur commun est <tr>.
    - vide : aucune ligne retournée (ex. sqlite3)
    - ne commence pas par '<' : message d'erreur de l'utilitaire
    - pas de <tr> : erreur ou aucune ligne (ex. SQL*Plus) -> contenu du <body> tel quel
    """
    if not document:
        return RenderPlan(body_content=NO_RESULTS_HTML)

    # Texte repris tel quel : la source doit échapper ce qu'elle y recopie
    # (cf. fetch_result_document pour les messages du pilote).
    if document[0] != "<":
        return RenderPlan(body_content=f"<pre>{document}</pre>")

    if not has_row_markers(document):
        return RenderPlan(body_content=_body_content(document))

    table = split_rows(document)
    column = scan_geometry_column(table)
    log.info(
        "Résultats: %d ligne(s) de données, colonne géométrie=%s",
        table.data_row_count, column.column_index if column else "aucune",
    )
    return render_results(table, column)


# ------------------------ Source du document ------------------------

def fetch_document(query: str, command: Optional[str] = None, database_url: Optional[str] = None) -> str:
    command = command or _setting("DUMPROWS_COMMAND")
    if command:
        return run_utility(command, query, timeout=_timeout())
    database_url = database_url or _setting("DUMPROWS_DATABASE_URL")
    if database_url:
        return fetch_result_document(database_url, query)
    log.error("Ni DUMPROWS_COMMAND ni DUMPROWS_DATABASE_URL n'est défini.")
    raise UtilityError(STR_NO_SOURCE)


# ------------------------ Pipeline ------------------------

def _finalize(remote_addr: Optional[str], query: Optional[str], error: Optional[str],
              html: Optional[str] = None, log_path: Optional[str] = None,
              status_code: int = 400) -> QueryResponse:
    log_path = log_path or _setting("DUMPROWS_LOG_FILE")
    if log_path:
        log_request(log_path, remote_addr, query, error)
    if error:
        log.error(f"❌ Requête refusée/en échec ({remote_addr}): {error}")
        return QueryResponse(ok=False, title=ERROR_TITLE, html=render_error_page(error), error=error,
                             status_code=status_code)
    return QueryResponse(ok=True, title=RESULTS_TITLE, html=html)


def run_query(
    query_string: Optional[str],
    remote_addr: Optional[str],
    command: Optional[str] = None,
    database_url: Optional[str] = None,
    log_path: Optional[str] = None,
    fetch: Optional[Callable[[str], str]] = None,
) -> QueryResponse:
    """
    Traite une requête de bout en bout et retourne toujours une page (résultats ou erreur).
    `fetch` permet d'injecter une autre source de document (tests, rendu hors ligne).
    """
    if not remote_addr:
        return _finalize(None, None, STR_REMOTE_ADDR, log_path=log_path)
    if query_string is None:
        return _finalize(remote_addr, None, STR_QUERY_STRING, log_path=log_path)

    try:
        query = prepare_query(query_string)
    except QueryRejected as e:
        return _finalize(remote_addr, query_string, str(e), log_path=log_path)

    log.info("▶️ Exécution de la requête (%s)…", remote_addr)
    try:
        if fetch is not None:
            document = fetch(query)
        else:
            document = fetch_document(query, command=command, database_url=database_url)
    except UtilityError as e:
        return _finalize(remote_addr, query, str(e), log_path=log_path, status_code=502)

    plan = format_results(document)
    return _finalize(remote_addr, query, None, html=render_page(RESULTS_TITLE, plan), log_path=log_path)


def render_document(document: str) -> str:
    """Rendu hors ligne d'une sortie d'utilitaire déjà capturée."""
    return render_page(RESULTS_TITLE, format_results(document))


__all__ = ["QueryResponse", "format_results", "fetch_document", "run_query", "render_document"]
