from .features import Extent, Feature, build_features, compute_extent, extent_js, feature_collection_js
from .results_map import RenderPlan, render_map, render_plain_table, render_results
