# request_log.py
import logging
from pathlib import Path
from typing import Optional

log = logging.getLogger("dumprows.requests")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _get_file_logger(log_path: Path) -> logging.Logger:
    """Un logger fichier par chemin (append), sans propagation vers la console."""
    logger = logging.getLogger(f"dumprows.requests.{log_path}")
    if not logger.handlers:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter("\n%(asctime)s%(message)s", datefmt=TIMESTAMP_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def log_request(log_path: str, remote_addr: Optional[str], query: Optional[str], error: Optional[str]) -> bool:
    """
    Ajoute une entrée au journal des requêtes :
        <horodatage>\t<adresse distante>
        Error: <message>      (si erreur)
        <requête>             (si disponible)
    """
    if not log_path:
        return False
    msg = ""
    if remote_addr:
        msg += f"\t{remote_addr}"
    if error:
        msg += f"\nError: {error}"
    if query:
        msg += f"\n{query}"
    try:
        _get_file_logger(Path(log_path)).info(msg)
        return True
    except OSError as e:
        log.error(f"Journal des requêtes inaccessible ({log_path}): {e}")
        return False
