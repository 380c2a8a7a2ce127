# features.py
# -*- coding: utf-8 -*-
"""
Agrégation des géométries d'une colonne : emprise globale + liste ordonnée de features.
Les sorties sont des littéraux JavaScript (substitués tels quels dans le script de la carte).
"""

from __future__ import annotations
from typing import List, NamedTuple, Optional

from pydantic import BaseModel

from TABLE_SCAN.result_table import GeometryColumn

FEATURE_FORMAT = "{{ type: 'Feature', properties: {{ index: {index} }}, geometry: {geometry} }}"
COLLECTION_FORMAT = "{{ type: 'FeatureCollection', features: [ {features} ] }}"


class Extent(BaseModel):
    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float

    def as_list(self) -> List[float]:
        return [self.min_lat, self.min_lng, self.max_lat, self.max_lng]


class Feature(NamedTuple):
    index: int           # 1-based, = numéro de ligne de données
    geometry_text: str


def compute_extent(column: Optional[GeometryColumn]) -> Optional[Extent]:
    """Union des emprises (lat = Y, lng = X). None si pas de colonne géométrie."""
    if column is None or not column.values:
        return None
    vals = column.values
    return Extent(
        min_lat=min(v.min_y for v in vals),
        min_lng=min(v.min_x for v in vals),
        max_lat=max(v.max_y for v in vals),
        max_lng=max(v.max_x for v in vals),
    )


def build_features(column: Optional[GeometryColumn]) -> List[Feature]:
    if column is None:
        return []
    return [Feature(i, v.normalized_text) for i, v in enumerate(column.values, start=1)]


def feature_collection_js(features: List[Feature]) -> str:
    items = ", ".join(FEATURE_FORMAT.format(index=f.index, geometry=f.geometry_text) for f in features)
    return COLLECTION_FORMAT.format(features=items)


def extent_js(extent: Extent) -> str:
    # bornes Leaflet : [[sud, ouest], [nord, est]]
    return "[[{:f}, {:f}], [{:f}, {:f}]]".format(*extent.as_list())


__all__ = ["Extent", "Feature", "compute_extent", "build_features", "feature_collection_js", "extent_js"]
