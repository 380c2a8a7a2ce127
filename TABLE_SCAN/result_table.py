# result_table.py
# -*- coding: utf-8 -*-
"""
Découpage lignes/cellules d'une sortie HTML d'utilitaire base de données + détection
d'une colonne géométrie GeoJSON cohérente.

Hypothèse assumée : la sortie des utilitaires (psql -H, sqlite3 -html, SQL*Plus MARKUP...)
est très régulière. On ne construit pas de DOM, on repère seulement les marqueurs
<tr> / </tr> / <td ...> / </td> (insensibles à la casse), dans l'ordre.

API publique:
    split_rows(document) -> Optional[ResultTable]
    scan_geometry_column(table) -> Optional[GeometryColumn]
"""

from __future__ import annotations
import logging
import re
from typing import List, NamedTuple, Optional

from pydantic import BaseModel

from GEOJSON.geojson_cell import GeometryValue, parse_geometry_cell

log = logging.getLogger("dumprows.table")

ROW_OPEN_RE = re.compile(r"<tr(?:\s[^>]*)?>", re.IGNORECASE)
ROW_CLOSE_RE = re.compile(r"</tr>", re.IGNORECASE)
CELL_OPEN_RE = re.compile(r"<td(?:\s[^>]*)?>", re.IGNORECASE)
CELL_CLOSE_RE = re.compile(r"</td>", re.IGNORECASE)


class Cell(NamedTuple):
    index: int   # 1-based dans la ligne
    begin: int   # après le '>' de <td ...>
    end: int     # position de </td>


class Row(NamedTuple):
    index: int   # 0 = ligne d'en-tête
    begin: int
    end: int     # après </tr>
    cells: List[Cell]


class ResultTable(NamedTuple):
    document: str
    begin: int   # premier <tr>
    end: int     # fin du dernier </tr>
    rows: List[Row]

    @property
    def data_row_count(self) -> int:
        return max(len(self.rows) - 1, 0)

    @property
    def text(self) -> str:
        return self.document[self.begin:self.end]


class GeometryColumn(BaseModel):
    column_index: int
    values: List[GeometryValue]


# ======================= Découpage =======================
def has_row_markers(document: str) -> bool:
    return ROW_OPEN_RE.search(document) is not None


def _split_cells(document: str, begin: int, end: int) -> List[Cell]:
    cells: List[Cell] = []
    pos = begin
    while True:
        m = CELL_OPEN_RE.search(document, pos, end)
        if not m:
            break
        content_begin = m.end()
        close = CELL_CLOSE_RE.search(document, content_begin, end)
        content_end = close.start() if close else end
        cells.append(Cell(len(cells) + 1, content_begin, content_end))
        pos = close.end() if close else end
    return cells


def split_rows(document: str) -> Optional[ResultTable]:
    """
    Chaque ligne va d'un <tr> au premier </tr> qui suit. None si aucun <tr> n'est présent.
    """
    first = ROW_OPEN_RE.search(document)
    if not first:
        return None

    rows: List[Row] = []
    pos = first.start()
    while True:
        opening = ROW_OPEN_RE.search(document, pos)
        if not opening:
            break
        closing = ROW_CLOSE_RE.search(document, opening.end())
        if not closing:
            break
        cells = _split_cells(document, opening.end(), closing.start())
        rows.append(Row(len(rows), opening.start(), closing.end(), cells))
        pos = closing.end()

    end = rows[-1].end if rows else first.end()
    return ResultTable(document, first.start(), end, rows)


# ======================= Colonne géométrie =======================
def scan_geometry_column(table: ResultTable) -> Optional[GeometryColumn]:
    """
    La première ligne de données verrouille la colonne (première cellule lisible comme géométrie,
    de gauche à droite). Toute ligne suivante dont la cellule à cet index n'est pas une géométrie
    (ou absente) invalide toute la colonne : on ne garde rien.
    """
    data_rows = table.rows[1:]
    if not data_rows:
        return None

    first_row = data_rows[0]
    column_index = 0
    values: List[GeometryValue] = []
    for cell in first_row.cells:
        value = parse_geometry_cell(table.document, cell.begin, cell.end)
        if value is not None:
            column_index = cell.index
            values.append(value)
            break
    if not column_index:
        return None
    log.debug("Colonne géométrie verrouillée: %d", column_index)

    for row in data_rows[1:]:
        if len(row.cells) < column_index:
            log.debug("Ligne %d: pas de cellule %d, colonne abandonnée", row.index, column_index)
            return None
        cell = row.cells[column_index - 1]
        value = parse_geometry_cell(table.document, cell.begin, cell.end)
        if value is None:
            log.debug("Ligne %d: cellule %d illisible, colonne abandonnée", row.index, column_index)
            return None
        values.append(value)

    return GeometryColumn(column_index=column_index, values=values)


__all__ = [
    "Cell", "Row", "ResultTable", "GeometryColumn",
    "has_row_markers", "split_rows", "scan_geometry_column",
]
