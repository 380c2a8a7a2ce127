from .geojson_cell import GeometryKind, GeometryValue, parse_geometry_cell, scan_bounds

__all__ = ["GeometryKind", "GeometryValue", "parse_geometry_cell", "scan_bounds"]
