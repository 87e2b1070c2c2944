"""
transform.py
Normalize the hand-compiled newspaper registry into the AGS-keyed lookup file
read by the map.

- Strips leading zeros from AGS keys to match the boundary data ("01001" -> "1001").
- Replaces known-bad publisher strings (research notes stored as publisher names).
- Optionally fills empty publishers from the annotated secondary source.
- Never drops, duplicates or reorders newspaper entries.
"""

import json
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from .config import VERLAG_ENRICH_MAX_CHARS, init_project
from .records import (
    NewspaperRecord,
    RegionEntry,
    dump_lookup,
    is_blank,
    normalize_ags,
)

logger = logging.getLogger(__name__)

ENRICHMENT_AGS_COL = "AGS"
ENRICHMENT_TITLE_COL = "Titel"
ENRICHMENT_VERLAG_COL = "Besitz/Verlag/Anmerkungen (wenn neu recherchiert)"


class RegistryError(ValueError):
    """Primary registry is malformed."""


class AgsCollisionError(RegistryError):
    """Two raw AGS keys normalize to the same region key."""


class TransformResult(dict):
    """Normalized lookup keyed by AGS, annotated with output path and statistics."""

    def __init__(self, lookup: Dict[str, RegionEntry], output_path: Optional[str], stats: Dict[str, Any]):
        super().__init__(lookup)
        self.output_path = output_path
        self.stats = stats


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_publisher_table(path: str) -> Dict[str, str]:
    table = _read_json(path)
    if not isinstance(table, dict):
        raise ValueError(f"Publisher table must be a JSON object: {path}")
    return {str(k): str(v) for k, v in table.items()}


def resolve_verlag(record: NewspaperRecord, publisher_table: Dict[str, str]) -> str:
    """Clean publisher for a record: table value by newspaper name, else its own verlag."""
    return publisher_table.get(record.name) or record.verlag or ""


def normalize_registry(
    raw_registry: Dict[str, Any],
    publisher_table: Optional[Dict[str, str]] = None,
) -> Dict[str, RegionEntry]:
    """
    Rewrite registry keys to canonical AGS and clean publisher fields.

    Raises AgsCollisionError if two raw keys map to the same AGS and
    RegistryError for any other malformed input.
    """
    if not isinstance(raw_registry, dict):
        raise RegistryError("Registry must be a JSON object keyed by AGS.")
    table = publisher_table or {}

    lookup: Dict[str, RegionEntry] = {}
    origin: Dict[str, str] = {}
    for raw_key, raw_entry in raw_registry.items():
        try:
            ags = normalize_ags(raw_key)
            entry = RegionEntry.from_dict(raw_entry)
        except ValueError as exc:
            raise RegistryError(f"Region {raw_key!r}: {exc}") from exc
        if ags in origin:
            raise AgsCollisionError(
                f"AGS keys {origin[ags]!r} and {raw_key!r} both normalize to {ags!r}"
            )
        origin[ags] = raw_key
        papers = tuple(z.with_verlag(resolve_verlag(z, table)) for z in entry.zeitungen)
        lookup[ags] = RegionEntry(name=entry.name, count=entry.count, zeitungen=papers)
    return lookup


def load_enrichment_candidates(path: str) -> Dict[Tuple[str, str], str]:
    """
    Build a (AGS, newspaper title) -> publisher annotation lookup from the
    secondary source. Rows without a numeric AGS or a title are ignored;
    for duplicate pairs the last row wins.
    """
    payload = _read_json(path)
    if not isinstance(payload, list):
        raise ValueError(f"Enrichment source must be a JSON array: {path}")
    df = pd.DataFrame(payload)
    if df.empty:
        return {}
    missing = {ENRICHMENT_AGS_COL, ENRICHMENT_TITLE_COL} - set(df.columns)
    if missing:
        raise ValueError(f"Enrichment source missing required fields: {missing}")
    if ENRICHMENT_VERLAG_COL not in df.columns:
        df[ENRICHMENT_VERLAG_COL] = ""

    def _safe_ags(value: Any) -> Optional[str]:
        # numeric columns with gaps come back as float
        if isinstance(value, float):
            if not value.is_integer():
                return None
            value = int(value)
        try:
            return normalize_ags(value)
        except ValueError:
            return None

    df["_ags"] = df[ENRICHMENT_AGS_COL].map(_safe_ags)
    df = df[df["_ags"].notna() & df[ENRICHMENT_TITLE_COL].notna()].copy()
    df["_title"] = df[ENRICHMENT_TITLE_COL].astype(str)
    df["_verlag"] = df[ENRICHMENT_VERLAG_COL].fillna("").astype(str)
    df = df.drop_duplicates(subset=["_ags", "_title"], keep="last")
    return {
        (ags, title): verlag
        for ags, title, verlag in zip(df["_ags"], df["_title"], df["_verlag"])
    }


def enrich_verlag(
    lookup: Dict[str, RegionEntry],
    candidates: Dict[Tuple[str, str], str],
    max_chars: int = VERLAG_ENRICH_MAX_CHARS,
) -> Tuple[Dict[str, RegionEntry], int]:
    """
    Fill empty publishers from candidates shorter than max_chars.
    Non-empty publishers are never touched. Returns (lookup, enriched count).
    """
    enriched = 0
    out: Dict[str, RegionEntry] = {}
    for ags, entry in lookup.items():
        papers = []
        for z in entry.zeitungen:
            candidate = candidates.get((ags, z.name))
            if is_blank(z.verlag) and candidate and len(candidate) < max_chars:
                z = z.with_verlag(candidate)
                enriched += 1
            papers.append(z)
        out[ags] = RegionEntry(name=entry.name, count=entry.count, zeitungen=tuple(papers))
    return out, enriched


def _filled(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip() != ""


def summarize(lookup: Dict[str, RegionEntry]) -> Dict[str, Any]:
    """Completeness counts for the operator; informational only."""
    columns = ["name", "verlag", "website", "erscheinungsort", "bundesland"]
    rows = [
        {col: getattr(z, col) for col in columns}
        for entry in lookup.values()
        for z in entry.zeitungen
    ]
    df = pd.DataFrame(rows, columns=columns)
    with_verlag = int(_filled(df["verlag"]).sum())
    with_website = int(_filled(df["website"]).sum())
    return {
        "regions": len(lookup),
        "total_newspapers": int(sum(entry.count for entry in lookup.values())),
        "unique_newspapers": int(df["name"].nunique()),
        "with_verlag": with_verlag,
        "without_verlag": int(len(df)) - with_verlag,
        "with_website": with_website,
        "without_website": int(len(df)) - with_website,
        "with_erscheinungsort": int(_filled(df["erscheinungsort"]).sum()),
        "with_bundesland": int(_filled(df["bundesland"]).sum()),
        "count_mismatches": sum(
            1 for entry in lookup.values() if entry.count != len(entry.zeitungen)
        ),
    }


def _log_stats(stats: Dict[str, Any]) -> None:
    total = stats["total_newspapers"]

    def pct(n: int) -> str:
        return f"{(n / total * 100):.1f}%" if total else "n/a"

    logger.info("Regions: %d", stats["regions"])
    logger.info("Total newspaper entries: %d", total)
    logger.info("Unique newspapers: %d", stats["unique_newspapers"])
    for key in (
        "with_verlag",
        "without_verlag",
        "with_website",
        "without_website",
        "with_erscheinungsort",
        "with_bundesland",
    ):
        logger.info("%s: %d (%s)", key.replace("_", " ").capitalize(), stats[key], pct(stats[key]))


def transform_newspaper_data(
    project_dir: str,
    registry_path: Optional[str] = None,
    enrichment_path: Optional[str] = None,
    output_path: Optional[str] = None,
    publisher_table: Optional[Dict[str, str]] = None,
    max_chars: int = VERLAG_ENRICH_MAX_CHARS,
) -> TransformResult:
    """
    Run the normalizer end to end and write the lookup file.

    The registry is required (FileNotFoundError / RegistryError otherwise);
    a missing enrichment source only skips the enrichment pass.
    Nothing is written unless every step succeeds.
    """
    paths = init_project(project_dir)
    registry_path = registry_path or paths["registry"]
    enrichment_path = enrichment_path or paths["enrichment"]
    output_path = output_path or paths["lookup"]
    if publisher_table is None:
        publisher_table = load_publisher_table(paths["publisher_table"])

    if not os.path.exists(registry_path):
        raise FileNotFoundError(f"Newspaper registry not found: {registry_path}")
    logger.info("Loading registry %s", registry_path)
    try:
        raw_registry = _read_json(registry_path)
    except json.JSONDecodeError as exc:
        raise RegistryError(f"Registry is not valid JSON: {registry_path}: {exc}") from exc
    logger.info("Loaded %d regions", len(raw_registry) if isinstance(raw_registry, dict) else 0)

    lookup = normalize_registry(raw_registry, publisher_table)
    for ags, entry in lookup.items():
        if entry.count != len(entry.zeitungen):
            logger.warning(
                "Region %s (%s): count %d does not match %d newspapers",
                ags, entry.name, entry.count, len(entry.zeitungen),
            )

    enriched = 0
    if os.path.exists(enrichment_path):
        candidates = load_enrichment_candidates(enrichment_path)
        lookup, enriched = enrich_verlag(lookup, candidates, max_chars=max_chars)
        logger.info("Enriched verlag for %d newspapers", enriched)
    else:
        logger.info("%s not found, skipping verlag enrichment", enrichment_path)

    stats = summarize(lookup)
    stats["enriched"] = enriched
    _log_stats(stats)

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(dump_lookup(lookup), f, ensure_ascii=False, indent=2)
    logger.info("Wrote %s", output_path)

    return TransformResult(lookup, output_path, stats)


def main(project_dir: Optional[str] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        transform_newspaper_data(project_dir or os.getcwd())
    except (OSError, ValueError) as exc:
        logger.error("Transformation failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
