# results_map.py
# -*- coding: utf-8 -*-
"""
Rendu des résultats d'une requête : tableau simple, ou tableau + carte Leaflet quand une colonne
géométrie GeoJSON a été détectée.

- Cellules géométrie remplacées par un lien « sélectionner la feature » (libellé selon le type)
- <head> : styles + Leaflet + script, avec l'emprise et la FeatureCollection substituées
- Aucune dépendance folium : HTML/JS autonome

API publique:
    render_results(table, column) -> RenderPlan
"""

from __future__ import annotations
import logging
from typing import List, Optional

from pydantic import BaseModel

from GEOJSON.geojson_cell import GeometryKind
from MAP_GENERATION.features import build_features, compute_extent, extent_js, feature_collection_js
from TABLE_SCAN.result_table import GeometryColumn, ResultTable

log = logging.getLogger("dumprows.map")


class RenderPlan(BaseModel):
    additional_head: Optional[str] = None
    body_attribute: Optional[str] = None
    body_content: str


# -----------------------------------------------------------------------------
# Styles / gabarits
# -----------------------------------------------------------------------------
TABLE_STYLE = (
    "table { margin: auto; border-collapse: collapse; } "
    "table caption { font-size: smaller; text-align: right; padding-bottom: 4px; } "
    "table, th, td { border: 1px solid; padding: 4px; } "
    "th { background-color: #DFDFDF; }"
)

BODY_ATTRIBUTE = 'onload="init()"'

SELECT_LABELS = {
    GeometryKind.POINT: "&bull;&nbsp;Point",
    GeometryKind.LINESTRING: "&acd;&nbsp;LineString",
    GeometryKind.POLYGON: "&rect;&nbsp;Polygon",
}
ANCHOR_FORMAT = '<a href="javascript:selectFeature({index})">{label}</a>'

MAP_BODY_TEMPLATE = (
    '<div id="tableDiv"><table>'
    '<caption>Generated by <a style="font-variant: small-caps" target="_blank" '
    'href="https://jeffbourdier.github.io/dumprows">DumpRows</a></caption>'
    "{ROWS}"
    '</table></div><div id="mapDiv"></div>'
)

MAP_HEAD_TEMPLATE = """<style>
#tableDiv { overflow: auto; margin-bottom: 8px; margin-right: 8px; }
{TABLE_STYLE} td.selected { background-color: aqua; }
#mapDiv { border: 2px solid gray; }
</style>
<link rel="stylesheet" type="text/css" href="https://unpkg.com/leaflet@1.7.1/dist/leaflet.css" />
<script src="https://unpkg.com/leaflet@1.7.1/dist/leaflet.js"></script>
<script type="text/javascript">
var extents = {EXTENT_JS};
var geoObject = {FEATURES_JS};
var horizontal, usableWidth, usableHeight, halfWidth, halfHeight, tableDiv, mapDiv, map, rows;
var selectedIndex = 0, selectedGeometry, highlight;

function init() {
  tableDiv = document.getElementById('tableDiv');
  mapDiv = document.getElementById('mapDiv');
  window.onresize = function () {
    if (window.innerHeight > window.innerWidth) splitHorizontally(); else splitVertically();
  };
  window.onresize();

  map = L.map('mapDiv').fitBounds(extents);
  L.tileLayer('https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png', {
    attribution: 'Base data &copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
  }).addTo(map);

  var control = L.control();
  control.onAdd = function () {
    var bar = L.DomUtil.create('div', 'leaflet-bar');
    [ { text: '&#8644;', title: 'Switch View', call: switchView },
      { text: '&#9974;', title: 'Zoom to Full Extent', call: zoomToFullExtent },
      { text: '&#8982;', title: 'Zoom to Selection', call: zoomToSelection },
      { text: '&#10021;', title: 'Pan to Selection', call: panToSelection },
      { text: '&#10005;', title: 'Clear Selection', call: clearSelection } ].forEach(function (b) {
      var a = L.DomUtil.create('a', null, bar);
      a.innerHTML = b.text; a.title = b.title; a.href = '#';
      L.DomEvent.on(a, 'click', function (e) { L.DomEvent.preventDefault(e); b.call(); });
    });
    return bar;
  };
  control.addTo(map);

  L.geoJSON(geoObject, {
    style: { color: 'maroon', fillColor: 'red' },
    pointToLayer: function (feature, latLng) {
      return L.circleMarker(latLng, { radius: 5, color: 'maroon', fillColor: 'red', fillOpacity: 1 });
    },
    onEachFeature: function (feature, layer) {
      layer.on('click', function () { selectFeature(feature.properties.index); });
    }
  }).addTo(map);

  rows = document.getElementsByTagName('tr');
}

function selectFeature(index) {
  clearSelection();
  selectedGeometry = geoObject.features[(selectedIndex = index) - 1].geometry;
  selectRow(true);
  highlight = L.geoJSON(selectedGeometry, {
    style: { color: 'teal', fillColor: 'aqua', fillOpacity: 0.8, weight: 7 },
    pointToLayer: function (feature, latLng) {
      return L.circleMarker(latLng, { radius: 7, color: 'teal', fillColor: 'aqua', fillOpacity: 1 });
    }
  }).addTo(map);
}

function switchView() { if (horizontal) splitVertically(); else splitHorizontally(); }

function splitHorizontally() {
  orientView(true);
  tableDiv.style.float = '';
  tableDiv.style.maxWidth = usableWidth + 'px';
  tableDiv.style.maxHeight = halfHeight + 'px';
  mapDiv.style.height = Math.max(halfHeight, usableHeight - tableDiv.clientHeight) + 'px';
  if (map) map.invalidateSize();
}

function splitVertically() {
  orientView(false);
  tableDiv.style.float = 'left';
  tableDiv.style.maxWidth = halfWidth + 'px';
  tableDiv.style.maxHeight = usableHeight + 'px';
  mapDiv.style.height = usableHeight + 'px';
  if (map) map.invalidateSize();
}

function orientView(horizontally) {
  var space = 20;
  halfWidth = (usableWidth = window.innerWidth - space) / 2;
  halfHeight = (usableHeight = window.innerHeight - space - ((horizontal = horizontally) ? 8 : 0)) / 2;
}

function zoomToFullExtent() { map.flyToBounds(extents); }

function zoomToSelection() {
  if (selectedIndex < 1) return;
  map.flyToBounds(highlight.getBounds());
}

function panToSelection() {
  if (selectedIndex < 1) return;
  map.panTo(highlight.getBounds().getCenter());
}

function clearSelection() {
  if (selectedIndex < 1) return;
  if (highlight) { highlight.remove(); highlight = null; }
  selectRow(false);
  selectedIndex = 0;
}

function selectRow(selecting) {
  var r = rows[selectedIndex], s = selecting ? 'selected' : '';
  for (var i = 0; i < r.cells.length; ++i) r.cells[i].className = s;
}
</script>"""


def _js_safe(payload: str) -> str:
    # anti </script> breakage
    return payload.replace("</", "<\\/")


# -----------------------------------------------------------------------------
# Rendus
# -----------------------------------------------------------------------------
def render_plain_table(table: ResultTable) -> RenderPlan:
    return RenderPlan(
        additional_head=f"<style>{TABLE_STYLE}</style>",
        body_attribute=None,
        body_content=f"<table>{table.text}</table>",
    )


def render_map(table: ResultTable, column: GeometryColumn) -> RenderPlan:
    """
    Tableau + carte. Seul le contenu des cellules géométrie est remplacé ; le reste du balisage
    des lignes est recopié à l'identique.
    """
    doc = table.document
    parts: List[str] = []
    pos = table.begin
    for index, value in enumerate(column.values, start=1):
        begin, end = value.source_span
        parts.append(doc[pos:begin])
        parts.append(ANCHOR_FORMAT.format(index=index, label=SELECT_LABELS[value.kind]))
        pos = end
    parts.append(doc[pos:table.end])

    extent = compute_extent(column)
    features = build_features(column)
    head = (
        MAP_HEAD_TEMPLATE
        .replace("{TABLE_STYLE}", TABLE_STYLE)
        .replace("{EXTENT_JS}", extent_js(extent))
        .replace("{FEATURES_JS}", _js_safe(feature_collection_js(features)))
    )
    log.info("🗺️  Carte: %d feature(s), colonne %d", len(features), column.column_index)
    return RenderPlan(
        additional_head=head,
        body_attribute=BODY_ATTRIBUTE,
        body_content=MAP_BODY_TEMPLATE.replace("{ROWS}", "".join(parts)),
    )


def render_results(table: ResultTable, column: Optional[GeometryColumn]) -> RenderPlan:
    if column is None:
        return render_plain_table(table)
    return render_map(table, column)


__all__ = ["RenderPlan", "TABLE_STYLE", "SELECT_LABELS", "render_plain_table", "render_map", "render_results"]
