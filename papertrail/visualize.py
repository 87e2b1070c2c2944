"""
visualize.py
Coverage charts for the normalized lookup.
- plot_bucket_distribution: regions per map colour bucket.
- plot_completeness: metadata completeness counts from the normalizer stats.

Both are GUI-agnostic; pass output_path to save instead of showing.
"""

import json
from typing import Any, Dict, Optional, Union

import numpy as np
import matplotlib.pyplot as plt

from .records import RegionEntry, load_lookup
from .scale import bucket_index, legend_rows


def _load_lookup(obj: Union[str, Dict[str, Any]]) -> Dict[str, RegionEntry]:
    if isinstance(obj, str):
        if not obj.lower().endswith(".json"):
            raise ValueError("Unsupported file type. Provide a .json lookup file or a mapping.")
        with open(obj, "r", encoding="utf-8") as f:
            return load_lookup(json.load(f))
    if isinstance(obj, dict):
        if all(isinstance(v, RegionEntry) for v in obj.values()):
            return dict(obj)
        return load_lookup(obj)
    raise ValueError("Provide a path or a lookup mapping.")


def _finish(fig, output_path: Optional[str]):
    plt.tight_layout()
    if output_path:
        fig.savefig(output_path, dpi=150)
        plt.close(fig)
        return fig
    plt.show(block=False)
    return fig


def plot_bucket_distribution(lookup_or_path: Union[str, Dict[str, Any]], output_path: Optional[str] = None):
    """Bar chart of how many regions fall into each colour bucket."""
    lookup = _load_lookup(lookup_or_path)
    if not lookup:
        raise ValueError("No data to plot.")
    rows = legend_rows()
    counts = np.zeros(len(rows), dtype=int)
    for entry in lookup.values():
        idx = bucket_index(entry.count)
        counts[len(rows) - 1 if idx is None else idx] += 1

    fig, ax = plt.subplots()
    labels = [label for label, _ in rows]
    colors = [color for _, color in rows]
    ax.bar(labels, counts, color=colors, edgecolor="#999999")
    ax.set_xlabel("Zeitungen")
    ax.set_ylabel("Regionen")
    ax.set_title("Regionen nach Zeitungsanzahl")
    return _finish(fig, output_path)


def plot_completeness(stats: Dict[str, Any], output_path: Optional[str] = None):
    """Horizontal bars of newspaper entries with/without each metadata field."""
    keys = [
        ("with_verlag", "Verlag"),
        ("with_website", "Website"),
        ("with_erscheinungsort", "Erscheinungsort"),
        ("with_bundesland", "Bundesland"),
    ]
    total = int(stats.get("with_verlag", 0)) + int(stats.get("without_verlag", 0))
    if not total:
        raise ValueError("No data to plot.")
    present = np.array([int(stats.get(key, 0)) for key, _ in keys])
    missing = total - present

    fig, ax = plt.subplots()
    positions = np.arange(len(keys))
    ax.barh(positions, present, color="#8B0000", label="vorhanden")
    ax.barh(positions, missing, left=present, color="#EFEFEF", label="fehlt")
    ax.set_yticks(positions)
    ax.set_yticklabels([label for _, label in keys])
    ax.invert_yaxis()
    ax.set_xlabel("Einträge")
    ax.set_title("Vollständigkeit der Metadaten")
    ax.legend(loc="lower right")
    return _finish(fig, output_path)
