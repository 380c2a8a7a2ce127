# utility_runner.py
# -*- coding: utf-8 -*-
"""
Exécution d'un utilitaire ligne de commande (psql -H, sqlite3 -html, sqlplus...) :
la requête est écrite dans un fichier .sql temporaire servi en entrée standard, la sortie
(stdout + stderr) est redirigée vers un fichier .html temporaire puis relue telle quelle :
c'est le document de résultats.
"""

import logging
import subprocess
import tempfile
import time
from pathlib import Path

log = logging.getLogger("dumprows.utility")

DEFAULT_TIMEOUT_S = 120.0


class UtilityError(RuntimeError):
    pass


def _ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000.0


def run_utility(command: str, query: str, timeout: float = DEFAULT_TIMEOUT_S) -> str:
    """
    Lance `command` (ligne de commande shell configurée par l'exploitant) avec la requête en entrée.
    Retourne la sortie décodée en UTF-8. Les fichiers temporaires sont toujours supprimés.
    """
    if not command:
        raise UtilityError("database utility could not be executed")

    with tempfile.TemporaryDirectory(prefix="dumprows_") as tmp:
        sql_path = Path(tmp) / "query.sql"
        out_path = Path(tmp) / "results.html"
        try:
            sql_path.write_text(query, encoding="utf-8")
        except OSError as e:
            log.error(f"Écriture du fichier temporaire impossible: {e}")
            raise UtilityError("temporary file could not be written") from e

        t0 = time.perf_counter()
        try:
            with sql_path.open("rb") as stdin, out_path.open("wb") as stdout:
                proc = subprocess.run(
                    command,
                    shell=True,
                    stdin=stdin,
                    stdout=stdout,
                    stderr=subprocess.STDOUT,
                    timeout=timeout,
                )
        except (OSError, subprocess.SubprocessError) as e:
            log.error(f"Utilitaire en échec ({command}): {e}")
            raise UtilityError("database utility could not be executed") from e

        try:
            output = out_path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            log.error(f"Lecture du fichier temporaire impossible: {e}")
            raise UtilityError("temporary file could not be read") from e

    log.info("⏱️ Utilitaire terminé en %.1f ms (code=%d, %d caractères)", _ms(t0), proc.returncode, len(output))
    return output


__all__ = ["UtilityError", "run_utility", "DEFAULT_TIMEOUT_S"]
