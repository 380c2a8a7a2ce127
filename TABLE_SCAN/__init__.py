from .result_table import (
    Cell,
    GeometryColumn,
    ResultTable,
    Row,
    has_row_markers,
    scan_geometry_column,
    split_rows,
)
