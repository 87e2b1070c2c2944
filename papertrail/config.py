# Project structure:
#
# papertrail_project/
# ├── papertrail/                          # Python package
# │   ├── __init__.py
# │   ├── config.py                        # central path configuration
# │   ├── records.py                       # AGS keys, newspaper/region records
# │   ├── transform.py                     # registry normalization
# │   ├── regions.py                       # composite fixups, layers, join
# │   ├── scale.py                         # count -> colour buckets
# │   ├── map_create.py                    # folium choropleth page
# │   ├── visualize.py                     # coverage charts
# │   └── resources/
# │       └── clean_publisher_names.json   # known-bad publisher strings
# ├── transform_newspaper_data.py          # offline normalizer entry point
# ├── build_map.py                         # map page entry point
# ├── archive/                             # hand-compiled registry
# └── public/                              # boundary data, lookup file, page

import os
from importlib.resources import files

# Deployment (fixed per site build)
SITE_URL = "https://tifa365.github.io"
BASE_PATH = "/papertrail"

# Default file names
DEFAULT_REGISTRY_FILENAME = "zeitungen_by_ags_original.json"
DEFAULT_ENRICHMENT_FILENAME = "newspaper_data_fixed.json"
DEFAULT_LOOKUP_FILENAME = "zeitungen_by_ags.json"
DEFAULT_BOUNDARY_FILENAME = "geodata.js"
DEFAULT_MAP_FILENAME = "index.html"
DEFAULT_PUBLISHER_TABLE = "clean_publisher_names.json"

# Enrichment candidates at or above this length are research notes, not names
VERLAG_ENRICH_MAX_CHARS = 150

RESOURCE_PACKAGE = "papertrail.resources"


def default_publisher_table_path() -> str:
    """Return the publisher cleanup table shipped with the package."""
    return str(files(RESOURCE_PACKAGE) / DEFAULT_PUBLISHER_TABLE)


def published_url(filename: str, site_url: str = SITE_URL, base_path: str = BASE_PATH) -> str:
    """Absolute URL under which a file from public/ is served after deployment."""
    base = "/" + base_path.strip("/") if base_path.strip("/") else ""
    return f"{site_url.rstrip('/')}{base}/{filename.lstrip('/')}"


def project_paths(project_dir: str) -> dict:
    """Key paths of a project directory, without touching the filesystem."""
    archive_dir = os.path.join(project_dir, "archive")
    public_dir = os.path.join(project_dir, "public")
    return {
        "project": project_dir,
        "archive": archive_dir,
        "public": public_dir,
        "registry": os.path.join(archive_dir, DEFAULT_REGISTRY_FILENAME),
        "enrichment": os.path.join(public_dir, DEFAULT_ENRICHMENT_FILENAME),
        "lookup": os.path.join(public_dir, DEFAULT_LOOKUP_FILENAME),
        "boundaries": os.path.join(public_dir, DEFAULT_BOUNDARY_FILENAME),
        "map": os.path.join(public_dir, DEFAULT_MAP_FILENAME),
        "publisher_table": default_publisher_table_path(),
    }


def init_project(project_dir: str) -> dict:
    """
    Ensure the project directory structure exists and returns key paths.

    Creates:
      project_dir/archive/
      project_dir/public/
    """
    paths = project_paths(project_dir)
    os.makedirs(paths["archive"], exist_ok=True)
    os.makedirs(paths["public"], exist_ok=True)
    return paths
