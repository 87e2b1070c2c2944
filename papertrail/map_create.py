import html
import json
import logging
import os
import re
import sys
from typing import Any, Dict, List, Optional, Sequence

import folium
import requests
from branca.element import MacroElement
from jinja2 import Template as JinjaTemplate

from .config import DEFAULT_LOOKUP_FILENAME, project_paths, published_url
from .records import RegionEntry, is_blank, load_lookup
from .regions import (
    COMPOSITE_REGIONS,
    CompositeRegion,
    JoinedFeature,
    feature_properties,
    prepare_layers,
)
from .scale import color_for_count, legend_rows

logger = logging.getLogger(__name__)

MAP_CENTER = [51.1657, 10.4515]
MAP_ZOOM = 6
MIN_ZOOM = 1
MAX_ZOOM = 11

BORDER_COLOR = "#ffffff"
STATE_BORDER_COLOR = "#CCC"
DETAIL_PROMPT = "Fahre mit der Maus auf eine Region, um Details anzuzeigen"
NO_DATA_TEXT = "Keine Zeitungsdaten verfügbar"
UNKNOWN_REGION = "Unbekannte Region"
REQUEST_TIMEOUT = 30
# Screens narrower than this (px) get a full-screen modal instead of a popup
MOBILE_MODAL_MAX_WIDTH = 480

_GEODATA_PREFIX = re.compile(r"^\s*(?:(?:var|let|const)\s+|window\.)?geoData\s*=\s*")


class DataLoadError(RuntimeError):
    """A map input could not be fetched or parsed."""


# ----------------------------
# Helpers: loading
# ----------------------------

def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _read_source(source: str) -> str:
    if _is_url(source):
        try:
            resp = requests.get(source, headers={"User-Agent": "papertrail/1.0"}, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise DataLoadError(f"Could not fetch {source}: {exc}") from exc
        return resp.text
    try:
        with open(source, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        raise DataLoadError(f"Could not read {source}: {exc}") from exc


def load_boundaries(source: str) -> Dict[str, Any]:
    """Load the boundary FeatureCollection; accepts plain GeoJSON or a `geoData = {...};` script."""
    text = _GEODATA_PREFIX.sub("", _read_source(source), count=1).strip()
    if text.endswith(";"):
        text = text[:-1]
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise DataLoadError(f"Boundary data is not valid JSON: {source}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise DataLoadError(f"Boundary data does not contain a valid 'features' list: {source}")
    return data


def load_lookup_source(source: str) -> Dict[str, RegionEntry]:
    try:
        return load_lookup(json.loads(_read_source(source)))
    except ValueError as exc:
        raise DataLoadError(f"Newspaper lookup is invalid: {source}: {exc}") from exc


# ----------------------------
# Helpers: text and popups
# ----------------------------

def _esc(value: Any) -> str:
    """HTML-escape arbitrary user data for popup/panel output."""
    if value is None:
        return ""
    escaped = html.escape(str(value))
    # Keep brace sequences from being read as Jinja tags by folium elements
    return escaped.replace('{', '&#123;').replace('}', '&#125;')


def count_label(count: int) -> str:
    return f"{count} {'Zeitung' if count == 1 else 'Zeitungen'}"


def panel_label(item: JoinedFeature) -> str:
    """Detail panel text: '<name> (<n> Zeitung[en])', or just the name without data."""
    name = item.name or UNKNOWN_REGION
    if item.entry is None:
        return name
    return f"{name} ({count_label(item.entry.count)})"


def _newspaper_html(zeitung) -> str:
    pieces: List[str] = []
    if not is_blank(zeitung.verlag):
        pieces.append(_esc(zeitung.verlag.strip()))
    if not is_blank(zeitung.erscheinungsort):
        pieces.append(f"({_esc(zeitung.erscheinungsort.strip())})")
    if not is_blank(zeitung.website):
        pieces.append(
            f'<a href="{_esc(zeitung.website.strip())}" target="_blank" rel="noopener" '
            'class="newspaper-link">🔗 Website</a>'
        )
    details = " ".join(pieces)
    details_html = f'<div class="newspaper-details">{details}</div>' if details else ""
    return (
        '<div class="newspaper-item">'
        f'<div class="newspaper-name">{_esc(zeitung.name)}</div>'
        f"{details_html}</div>"
    )


def popup_html(item: JoinedFeature) -> str:
    name = _esc(item.name or UNKNOWN_REGION)
    if item.entry is None:
        return f'<div class="region-popup"><h3>{name}</h3><p>{NO_DATA_TEXT}</p></div>'
    papers = "".join(_newspaper_html(z) for z in item.entry.zeitungen)
    papers_html = f'<div class="newspaper-list">{papers}</div>' if papers else ""
    return (
        f'<div class="region-popup"><h3>{name}</h3>'
        f'<div class="count-badge">{count_label(item.entry.count)}</div>'
        f"{papers_html}</div>"
    )


# ----------------------------
# Helpers: layers and page elements
# ----------------------------

def _state_style(feature: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "fillColor": "transparent",
        "fillOpacity": 0,
        "color": STATE_BORDER_COLOR,
        "weight": 1,
        "opacity": 0.5,
    }


def _district_style(feature: Dict[str, Any]) -> Dict[str, Any]:
    count = feature_properties(feature).get("newspaperCount") or 0
    return {
        "fillColor": color_for_count(count),
        "fillOpacity": 1,
        "color": BORDER_COLOR,
        "weight": 0.7,
        "opacity": 1,
    }


def _district_highlight(feature: Dict[str, Any]) -> Dict[str, Any]:
    return {"fillOpacity": 0.8, "weight": 1.5}


def _district_collection(foreground: Sequence[JoinedFeature]) -> Dict[str, Any]:
    features = []
    for item in foreground:
        feat = dict(item.feature)
        props = dict(feature_properties(feat))
        props["name"] = item.name or UNKNOWN_REGION
        props["newspaperCount"] = item.count
        props["panel_label"] = panel_label(item)
        props["popup_html"] = popup_html(item)
        feat["properties"] = props
        features.append(feat)
    return {"type": "FeatureCollection", "features": features}


class _DistrictInteractions(MacroElement):
    """Binds click popups, the narrow-screen modal and the hover detail panel to the district layer."""

    _template = JinjaTemplate(
        """
        {% macro script(this, kwargs) %}
        (function() {
          var prompt = {{ this.prompt|tojson }};
          var modalBreakpoint = {{ this.modal_breakpoint|tojson }};
          function setDetail(text) {
            var title = document.getElementById('detail-title');
            if (title) { title.textContent = text; }
          }
          function handleModalEscape(e) {
            if (e.key === 'Escape') { hideMobileModal(); }
          }
          function hideMobileModal() {
            var modal = document.getElementById('mobile-modal-overlay');
            if (modal) { modal.remove(); }
            document.removeEventListener('keydown', handleModalEscape);
          }
          function showMobileModal(content) {
            hideMobileModal();
            var overlay = document.createElement('div');
            overlay.id = 'mobile-modal-overlay';
            overlay.className = 'mobile-modal-overlay';
            var body = document.createElement('div');
            body.className = 'mobile-modal-content';
            body.innerHTML = content;
            var closeBtn = document.createElement('button');
            closeBtn.className = 'mobile-modal-close';
            closeBtn.innerHTML = '&times;';
            closeBtn.onclick = hideMobileModal;
            body.appendChild(closeBtn);
            overlay.appendChild(body);
            overlay.addEventListener('click', function(e) {
              if (e.target === overlay) { hideMobileModal(); }
            });
            document.body.appendChild(overlay);
            document.addEventListener('keydown', handleModalEscape);
          }
          {{ this.layer_name }}.eachLayer(function(layer) {
            var props = (layer.feature && layer.feature.properties) || {};
            layer.bindPopup(props.popup_html || '', {
              maxWidth: 320,
              className: 'newspaper-popup',
              autoPan: false
            });
            layer.on({
              mouseover: function() { setDetail(props.panel_label || props.name || ''); },
              mouseout: function() { setDetail(prompt); },
              click: function() {
                setDetail(props.panel_label || props.name || '');
                if (window.innerWidth < modalBreakpoint) {
                  layer.closePopup();
                  showMobileModal(props.popup_html || '');
                }
              }
            });
          });
        })();
        {% endmacro %}
        """
    )

    def __init__(self, layer_name: str, prompt: str = DETAIL_PROMPT,
                 modal_breakpoint: int = MOBILE_MODAL_MAX_WIDTH):
        super().__init__()
        self._name = "DistrictInteractions"
        self.layer_name = layer_name
        self.prompt = prompt
        self.modal_breakpoint = modal_breakpoint


_POPUP_CSS = """
<style>
  .region-popup { font-family: 'Libre Baskerville', Georgia, serif; padding: 8px; max-width: 300px; }
  .region-popup h3 { margin: 0 0 8px 0; font-size: 16px; border-bottom: 2px solid #5C0000; padding-bottom: 4px; color: #333; }
  .count-badge { display: inline-block; background: linear-gradient(135deg, #800000, #FF5252); color: white;
                 padding: 4px 8px; border-radius: 12px; font-size: 12px; margin-bottom: 8px; }
  .newspaper-list { max-height: 200px; overflow-y: auto; }
  .newspaper-item { margin-bottom: 10px; padding-bottom: 8px; border-bottom: 1px dotted #eee; }
  .newspaper-item:last-child { border-bottom: none; }
  .newspaper-name { font-weight: bold; font-size: 14px; color: #333; }
  .newspaper-details { font-size: 12px; color: #666; margin-top: 3px; }
  .newspaper-link { text-decoration: none; color: #5C0000; font-weight: bold; }
  .newspaper-link:hover { text-decoration: underline; }
  .leaflet-popup-pane { z-index: 999999 !important; }
  .mobile-modal-overlay { position: fixed; top: 0; left: 0; width: 100%; height: 100%; z-index: 1000000;
                          background: rgba(0,0,0,0.5); display: block; }
  .mobile-modal-content { position: relative; background: white; margin: 10% auto; width: 90%; max-height: 80%;
                          overflow-y: auto; border-radius: 6px; padding: 12px; box-sizing: border-box; }
  .mobile-modal-content .region-popup { max-width: none; }
  .mobile-modal-close { position: absolute; top: 6px; right: 8px; border: none; background: none;
                        font-size: 24px; line-height: 1; color: #5C0000; cursor: pointer; }
</style>
"""


def _detail_panel_html() -> str:
    return (
        '<div id="region-detail" style="position: fixed; top: 10px; left: 10px; z-index: 9999; '
        'background-color: rgba(255,255,255,0.9); padding: 6px 10px; '
        "font-family: 'Libre Baskerville', Georgia, serif;\">"
        f'<div id="detail-title">{_esc(DETAIL_PROMPT)}</div></div>'
    )


def _legend_html() -> str:
    rows = "".join(
        '<div style="display:flex; align-items:center; margin:2px 0;">'
        f'<span style="display:inline-block; width:14px; height:14px; margin-right:6px; '
        f'background:{color}; border:1px solid #ccc;"></span>{_esc(label)}</div>'
        for label, color in legend_rows()
    )
    return (
        '<div id="map-legend" style="position: fixed; bottom: 24px; right: 10px; z-index: 400; '
        'background-color: rgba(255,255,255,0.9); padding: 6px 10px; font-size: 12px;">'
        f'<div style="font-weight:600; margin-bottom:4px;">Zeitungen</div>{rows}</div>'
    )


def _footer_html(lookup_url: str) -> str:
    return (
        '<div style="position: fixed; bottom: 5px; left: 5px; z-index: 9999; font-size: 11px; '
        'background-color: rgba(255,255,255,0.8); padding: 2px;">'
        f'Daten: <a href="{_esc(lookup_url)}">{_esc(DEFAULT_LOOKUP_FILENAME)}</a></div>'
    )


def _write_error_page(out_html: str, message: str) -> None:
    page = (
        "<!DOCTYPE html>\n<html lang=\"de\"><head><meta charset=\"utf-8\">"
        "<title>Zeitungslandschaft</title></head><body>"
        '<div id="map"><p style="color: red; padding: 20px;">'
        f"Fehler beim Laden der Kartendaten: {_esc(message)}</p></div>"
        "</body></html>\n"
    )
    with open(out_html, "w", encoding="utf-8") as f:
        f.write(page)


# ----------------------------
# Public API
# ----------------------------

def create_map(
    project_dir: str,
    boundary_source: Optional[str] = None,
    lookup_source: Optional[str] = None,
    output_path: Optional[str] = None,
    composites: Sequence[CompositeRegion] = COMPOSITE_REGIONS,
) -> Dict[str, Any]:
    """
    Build the choropleth page of newspapers per district.

    Both sources may be local paths or http(s) URLs. Load order is boundaries,
    then lookup; if either fails the page shows an error message instead of
    the map and the error is returned.

    Returns:
        dict with 'map_path', 'summary', 'error' and 'layers'.
    """
    paths = project_paths(project_dir)
    boundary_source = boundary_source or paths["boundaries"]
    lookup_source = lookup_source or paths["lookup"]
    out_html = output_path or paths["map"]
    os.makedirs(os.path.dirname(out_html) or ".", exist_ok=True)

    try:
        boundaries = load_boundaries(boundary_source)
        lookup = load_lookup_source(lookup_source)
    except DataLoadError as exc:
        logger.error("Error loading map data: %s", exc)
        _write_error_page(out_html, str(exc))
        return {"map_path": out_html, "summary": None, "error": str(exc), "layers": None}

    logger.info("Loaded %d boundary features, %d lookup regions",
                len(boundaries["features"]), len(lookup))
    layers = prepare_layers(boundaries, lookup, composites)

    m = folium.Map(
        location=MAP_CENTER,
        zoom_start=MAP_ZOOM,
        min_zoom=MIN_ZOOM,
        max_zoom=MAX_ZOOM,
        tiles=None,
        zoom_control=False,
        dragging=False,
        scroll_wheel_zoom=False,
        zoom_snap=0.1,
        zoom_delta=0.5,
    )

    if layers.background:
        folium.GeoJson(
            {"type": "FeatureCollection", "features": layers.background},
            name="Bundesländer",
            style_function=_state_style,
            control=False,
            interactive=False,
        ).add_to(m)

    if layers.foreground:
        districts = folium.GeoJson(
            _district_collection(layers.foreground),
            name="Landkreise",
            style_function=_district_style,
            highlight_function=_district_highlight,
            tooltip=folium.GeoJsonTooltip(fields=["name"], labels=False, sticky=True),
            control=False,
        ).add_to(m)
        _DistrictInteractions(districts.get_name()).add_to(m)

    root = m.get_root()
    root.header.add_child(folium.Element(_POPUP_CSS))
    root.html.add_child(folium.Element(_detail_panel_html()))
    root.html.add_child(folium.Element(_legend_html()))
    root.html.add_child(folium.Element(_footer_html(published_url(DEFAULT_LOOKUP_FILENAME))))

    m.save(out_html)
    summary = {
        "boundary_features": len(boundaries["features"]),
        "removed": layers.removed,
        "background": len(layers.background),
        "foreground": len(layers.foreground),
        "with_data": sum(1 for item in layers.foreground if item.entry is not None),
    }
    logger.info("Wrote %s (%d districts, %d with data)",
                out_html, summary["foreground"], summary["with_data"])
    return {"map_path": out_html, "summary": summary, "error": None, "layers": layers}


def main(project_dir: Optional[str] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        result = create_map(project_dir or os.getcwd())
    except (OSError, ValueError) as exc:
        logger.error("Map build failed: %s", exc)
        return 1
    return 1 if result["error"] else 0


if __name__ == "__main__":
    sys.exit(main())
