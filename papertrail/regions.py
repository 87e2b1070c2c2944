"""
regions.py
Reconcile the boundary dataset with the AGS lookup before rendering.

The boundary data carries some units twice: Berlin exists as a city-state, as
a district-level city and as a set of boroughs. Known cases are listed in
COMPOSITE_REGIONS; each keeps exactly one canonical feature in the district
layer and drops every member feature.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .records import RegionEntry, normalize_ags

logger = logging.getLogger(__name__)

STATE_TYPE = "bundesland"


def feature_properties(feat: Any) -> Dict[str, Any]:
    """The feature's properties object; anything that is not a mapping counts as empty."""
    props = feat.get("properties") if isinstance(feat, dict) else None
    return props if isinstance(props, dict) else {}


@dataclass(frozen=True)
class CompositeRegion:
    canonical_key: str
    canonical_name: str
    key_prefix: str
    forced_type: str = "kreisfreie Stadt"
    member_types: Tuple[str, ...] = ("bezirk", "stadtteil")

    def is_canonical(self, props: Dict[str, Any]) -> bool:
        return (
            props.get("name") == self.canonical_name
            and str(props.get("ags") or "") == self.canonical_key
        )

    def is_member(self, props: Dict[str, Any]) -> bool:
        """True for any non-canonical feature belonging to this region."""
        if self.is_canonical(props):
            return False
        name = str(props.get("name") or "")
        ags = str(props.get("ags") or "")
        partof = str(props.get("partof") or "")
        ftype = str(props.get("type") or "")
        return (
            self.canonical_name in name
            or self.canonical_name in partof
            or ftype in self.member_types
            or (ags.startswith(self.key_prefix) and ags != self.canonical_key)
        )


COMPOSITE_REGIONS: Tuple[CompositeRegion, ...] = (
    CompositeRegion(canonical_key="11000", canonical_name="Berlin", key_prefix="11"),
)


@dataclass
class JoinedFeature:
    """A district feature with its lookup entry (None = no newspapers known)."""

    feature: Dict[str, Any]
    key: Optional[str]
    entry: Optional[RegionEntry] = None

    @property
    def name(self) -> str:
        return str(feature_properties(self.feature).get("name") or "")

    @property
    def count(self) -> int:
        return self.entry.count if self.entry is not None else 0


@dataclass
class LayerSet:
    background: List[Dict[str, Any]] = field(default_factory=list)
    foreground: List[JoinedFeature] = field(default_factory=list)
    removed: int = 0


def _copy_feature(feat: Dict[str, Any], **overrides: Any) -> Dict[str, Any]:
    props = dict(feature_properties(feat))
    props.update(overrides)
    out = dict(feat)
    out["properties"] = props
    return out


def consolidate_composites(
    features: Sequence[Dict[str, Any]],
    composites: Sequence[CompositeRegion] = COMPOSITE_REGIONS,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Keep one canonical feature per composite region (retyped as a district-level
    city) and drop all of its members. Returns (features, number removed).
    Input features are not modified.
    """
    seen = set()
    out: List[Dict[str, Any]] = []
    removed = 0
    for feat in features:
        if not isinstance(feat, dict):
            continue
        props = feature_properties(feat)
        keep = True
        for comp in composites:
            if comp.is_canonical(props):
                if comp.canonical_key in seen:
                    keep = False
                else:
                    seen.add(comp.canonical_key)
                    feat = _copy_feature(feat, type=comp.forced_type, ags=comp.canonical_key)
                break
            if comp.is_member(props):
                keep = False
                break
        if keep:
            out.append(feat)
        else:
            removed += 1

    for comp in composites:
        if comp.canonical_key not in seen:
            logger.error(
                "No %s feature with AGS %s in boundary data",
                comp.canonical_name, comp.canonical_key,
            )
    logger.info("Composite fixup removed %d of %d features", removed, len(features))
    return out, removed


def _is_canonical_any(props: Dict[str, Any], composites: Sequence[CompositeRegion]) -> bool:
    return any(comp.is_canonical(props) for comp in composites)


def partition_layers(
    features: Sequence[Dict[str, Any]],
    composites: Sequence[CompositeRegion] = COMPOSITE_REGIONS,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Split into (state outlines, districts). Canonical composites are districts."""
    background: List[Dict[str, Any]] = []
    foreground: List[Dict[str, Any]] = []
    for feat in features:
        props = feature_properties(feat)
        if props.get("type") == STATE_TYPE and not _is_canonical_any(props, composites):
            background.append(feat)
        else:
            foreground.append(feat)
    return background, foreground


def resolve_key(
    props: Dict[str, Any],
    composites: Sequence[CompositeRegion] = COMPOSITE_REGIONS,
) -> Optional[str]:
    """Lookup key for a feature; composites resolve by name, ignoring their geometry AGS."""
    name = props.get("name")
    for comp in composites:
        if name == comp.canonical_name:
            return comp.canonical_key
    try:
        return normalize_ags(props.get("ags"))
    except ValueError:
        return None


def join_features(
    features: Sequence[Dict[str, Any]],
    lookup: Dict[str, RegionEntry],
    composites: Sequence[CompositeRegion] = COMPOSITE_REGIONS,
) -> List[JoinedFeature]:
    joined = []
    for feat in features:
        key = resolve_key(feature_properties(feat), composites)
        entry = lookup.get(key) if key is not None else None
        item = JoinedFeature(feature=feat, key=key, entry=entry)
        item.feature = _copy_feature(feat, newspaperCount=item.count)
        joined.append(item)
    return joined


def prepare_layers(
    boundaries: Dict[str, Any],
    lookup: Dict[str, RegionEntry],
    composites: Sequence[CompositeRegion] = COMPOSITE_REGIONS,
) -> LayerSet:
    """Fixup, partition and join a boundary FeatureCollection against the lookup."""
    features = boundaries.get("features") if isinstance(boundaries, dict) else None
    if not isinstance(features, list):
        raise ValueError("Boundary data does not contain a valid 'features' list.")
    fixed, removed = consolidate_composites(features, composites)
    background, districts = partition_layers(fixed, composites)
    foreground = join_features(districts, lookup, composites)
    missing = sum(1 for item in foreground if item.entry is None)
    if missing:
        logger.info("%d districts have no newspaper data", missing)
    return LayerSet(background=background, foreground=foreground, removed=removed)
