# geojson_cell.py
# -*- coding: utf-8 -*-
"""
Lecture d'une cellule <td> comme géométrie GeoJSON (Point / LineString / Polygon).

- Mini-grammaire stricte : { type : '<Type>' , coordinates : [...] } (dans cet ordre)
- Guillemets acceptés : ' " &apos; &quot; (même style à l'ouverture et à la fermeture)
- Calcul de l'emprise (min/max X/Y) pendant la lecture des coordonnées
- Texte normalisé prêt à être injecté tel quel dans le littéral JS de la carte

API publique:
    parse_geometry_cell(document, begin, end) -> Optional[GeometryValue]
"""

from __future__ import annotations
import math
import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

# ======================= Modèles =======================
class GeometryKind(str, Enum):
    POINT = "Point"
    LINESTRING = "LineString"
    POLYGON = "Polygon"


class GeometryValue(BaseModel):
    kind: GeometryKind
    min_x: float
    min_y: float
    max_x: float
    max_y: float
    normalized_text: str
    source_span: Tuple[int, int]   # offsets (begin, end) dans le document d'origine


# ======================= Constantes =======================
NAME_TYPE = "type"
NAME_COORDINATES = "coordinates"
GEOMETRY_TYPES = (GeometryKind.POINT, GeometryKind.LINESTRING, GeometryKind.POLYGON)
QUOTE_ENTITIES = ("&apos;", "&quot;")

# Sentinelles inversées (données en degrés)
SENTINEL_MIN_X, SENTINEL_MAX_X = 180.0, -180.0
SENTINEL_MIN_Y, SENTINEL_MAX_Y = 90.0, -90.0

_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


class ParsingState(Enum):
    BEGIN = "begin"
    NAME_TYPE = "name_type"
    COLON_TYPE = "colon_type"
    VALUE_TYPE = "value_type"
    COMMA = "comma"
    NAME_COORDS = "name_coords"
    COLON_COORDS = "colon_coords"
    VALUE_COORDS = "value_coords"
    END = "end"
    DONE = "done"


class _ParseContext:
    """État mutable d'une lecture (un seul appel de parse_geometry_cell)."""

    def __init__(self, text: str):
        self.text = text
        self.parts: List[str] = []
        self.kind: Optional[GeometryKind] = None
        self.bounds: Optional[Tuple[float, float, float, float]] = None


# ======================= Jetons =======================
def _parse_quote(text: str, pos: int) -> str:
    """Retourne le guillemet (ou l'entité) ouvrant à `pos`, ou "" s'il n'y en a pas."""
    c = text[pos:pos + 1]
    if c in ("'", '"'):
        return c
    ent = text[pos:pos + 6]
    if ent.lower() in QUOTE_ENTITIES:
        return ent
    return ""


def _closes_with(text: str, pos: int, quote: str) -> bool:
    if not quote:
        return True
    return text[pos:pos + len(quote)].lower() == quote.lower()


def _char_handler(c: str) -> Callable[[_ParseContext, int], Optional[int]]:
    def handler(ctx: _ParseContext, pos: int) -> Optional[int]:
        if ctx.text[pos] != c:
            return None
        ctx.parts.append(c)
        return pos + 1
    return handler


def _name_handler(name: str) -> Callable[[_ParseContext, int], Optional[int]]:
    def handler(ctx: _ParseContext, pos: int) -> Optional[int]:
        text = ctx.text
        quote = _parse_quote(text, pos)
        p = pos + len(quote)
        if not text.startswith(name, p):
            return None
        p += len(name)
        if not _closes_with(text, p, quote):
            return None
        ctx.parts.append(name)
        return p + len(quote)
    return handler


def _parse_type(ctx: _ParseContext, pos: int) -> Optional[int]:
    text = ctx.text
    quote = _parse_quote(text, pos)
    if not quote:
        return None
    p = pos + len(quote)
    for kind in GEOMETRY_TYPES:
        if text.startswith(kind.value, p):
            break
    else:
        return None
    p += len(kind.value)
    if not _closes_with(text, p, quote):
        return None
    ctx.kind = kind
    ctx.parts.append(f"'{kind.value}'")
    return p + len(quote)


def _parse_coordinates(ctx: _ParseContext, pos: int) -> Optional[int]:
    res = scan_bounds(ctx.text, pos)
    if res is None:
        return None
    end, min_x, min_y, max_x, max_y = res
    ctx.bounds = (min_x, min_y, max_x, max_y)
    ctx.parts.append(ctx.text[pos:end])
    return end


# état -> (lecteur du jeton attendu, état suivant)
_TRANSITIONS: Dict[ParsingState, Tuple[Callable[[_ParseContext, int], Optional[int]], ParsingState]] = {
    ParsingState.BEGIN:        (_char_handler("{"),              ParsingState.NAME_TYPE),
    ParsingState.NAME_TYPE:    (_name_handler(NAME_TYPE),        ParsingState.COLON_TYPE),
    ParsingState.COLON_TYPE:   (_char_handler(":"),              ParsingState.VALUE_TYPE),
    ParsingState.VALUE_TYPE:   (_parse_type,                     ParsingState.COMMA),
    ParsingState.COMMA:        (_char_handler(","),              ParsingState.NAME_COORDS),
    ParsingState.NAME_COORDS:  (_name_handler(NAME_COORDINATES), ParsingState.COLON_COORDS),
    ParsingState.COLON_COORDS: (_char_handler(":"),              ParsingState.VALUE_COORDS),
    ParsingState.VALUE_COORDS: (_parse_coordinates,              ParsingState.END),
    ParsingState.END:          (_char_handler("}"),              ParsingState.DONE),
}


# ======================= Emprise des coordonnées =======================
def scan_bounds(text: str, pos: int) -> Optional[Tuple[int, float, float, float, float]]:
    """
    Parcourt une structure de crochets imbriqués contenant des nombres, à partir de `pos`.

    Après chaque '[' le nombre suivant est un X, puis X et Y alternent, quelle que soit la
    profondeur : Point, LineString et Polygon passent tous par la même logique.
    Retourne (position après le ']' final, min_x, min_y, max_x, max_y), ou None.
    """
    if text[pos:pos + 1] != "[":
        return None

    min_x, max_x = SENTINEL_MIN_X, SENTINEL_MAX_X
    min_y, max_y = SENTINEL_MIN_Y, SENTINEL_MAX_Y
    seen_x = seen_y = False
    depth = 0
    next_is_x = True
    p, n = pos, len(text)

    while p < n:
        c = text[p]
        if c.isspace() or c == ",":
            p += 1
            continue
        if c == "[":
            depth += 1
            next_is_x = True
            p += 1
            continue
        if c == "]":
            depth -= 1
            p += 1
            if depth:
                continue
            if not (seen_x and seen_y):
                return None
            return p, min_x, min_y, max_x, max_y

        m = _NUMBER_RE.match(text, p)
        if not m:
            return None
        d = float(m.group(0))
        # dépassement (ex. 1e999) : nombre mal formé, comme pour strtod/ERANGE
        if not math.isfinite(d):
            return None
        p = m.end()
        if p < n and not (text[p].isspace() or text[p] in ",[]"):
            return None
        if next_is_x:
            min_x = d if not seen_x else min(min_x, d)
            max_x = d if not seen_x else max(max_x, d)
            seen_x = True
        else:
            min_y = d if not seen_y else min(min_y, d)
            max_y = d if not seen_y else max(max_y, d)
            seen_y = True
        next_is_x = not next_is_x

    # crochet non refermé
    return None


# ======================= Point d'entrée =======================
def parse_geometry_cell(document: str, begin: int, end: int) -> Optional[GeometryValue]:
    """
    Tente de lire document[begin:end] (contenu d'une cellule) comme une géométrie GeoJSON.
    Aucun résultat partiel : None dès que la grammaire n'est pas respectée.
    """
    ctx = _ParseContext(document[begin:end])
    text = ctx.text
    state = ParsingState.BEGIN
    p, n = 0, len(text)

    while p < n:
        if text[p].isspace():
            p += 1
            continue
        if state is ParsingState.DONE:
            # contenu parasite après '}'
            return None
        handler, next_state = _TRANSITIONS[state]
        q = handler(ctx, p)
        if q is None:
            return None
        p, state = q, next_state

    if state is not ParsingState.DONE:
        return None

    min_x, min_y, max_x, max_y = ctx.bounds
    return GeometryValue(
        kind=ctx.kind,
        min_x=min_x,
        min_y=min_y,
        max_x=max_x,
        max_y=max_y,
        normalized_text="".join(ctx.parts),
        source_span=(begin, end),
    )


__all__ = ["GeometryKind", "GeometryValue", "parse_geometry_cell", "scan_bounds"]
