#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
dumprows_cgi.py - point d'entrée CGI (Database Utility Map-Producing Read-Only Web Service)

Usage (serveur web, variables CGI REMOTE_ADDR / QUERY_STRING) :
    dumprows_cgi.py [-l] "psql -H -d gis"
Rendu hors ligne d'une sortie déjà capturée :
    dumprows_cgi.py --render results.html
"""

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from dumprows_orchestrator import render_document, run_query
from UTILS.page import CGI_HEADER

DEFAULT_LOG_DIR = "/var/log"


def _default_log_path() -> str:
    return os.getenv("DUMPROWS_LOG_FILE") or str(Path(DEFAULT_LOG_DIR) / f"{Path(sys.argv[0]).stem}.log")


def main(argv=None) -> int:
    load_dotenv()
    ap = argparse.ArgumentParser(description="DUMPROWS (Database Utility Map-Producing Read-Only Web Service).")
    ap.add_argument("-l", "--log", action="store_true", help="écrit un message dans le journal des requêtes")
    ap.add_argument("--render", metavar="FILE", help="rend une sortie d'utilitaire existante (aucune exécution)")
    ap.add_argument("command", nargs=argparse.REMAINDER, help="ligne de commande de l'utilitaire base de données")
    args = ap.parse_args(argv)

    if args.render:
        document = Path(args.render).read_text(encoding="utf-8", errors="replace")
        sys.stdout.write(render_document(document))
        return 0

    command = " ".join(args.command) or os.getenv("DUMPROWS_COMMAND")
    res = run_query(
        os.getenv("QUERY_STRING"),
        os.getenv("REMOTE_ADDR"),
        command=command,
        log_path=_default_log_path() if args.log else None,
    )
    sys.stdout.write(CGI_HEADER + res.html)
    return 0 if res.ok else 1


if __name__ == "__main__":
    sys.exit(main())
