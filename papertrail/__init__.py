"""
PaperTrail package

Normalizes the hand-compiled registry of German local newspapers (keyed by AGS)
into a lookup file, reconciles it with the district boundary data and renders a
choropleth of newspapers per Landkreis.
"""

__version__ = "0.1.0"

from .config import init_project
from .transform import transform_newspaper_data
from .regions import prepare_layers
from .map_create import create_map
from .visualize import plot_bucket_distribution, plot_completeness

__all__ = [
    "init_project",
    "transform_newspaper_data",
    "prepare_layers",
    "create_map",
    "plot_bucket_distribution",
    "plot_completeness",
]
