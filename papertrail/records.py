"""
records.py
Region keys and the two record types shared by the normalizer and the map.

- normalize_ags: canonical AGS key (decimal string, no leading zeros).
- NewspaperRecord: one newspaper as stored in the lookup file.
- RegionEntry: one district/city with its newspaper list.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

OPTIONAL_FIELDS = ("erscheinungsort", "website", "bundesland")


def normalize_ags(raw: Any) -> str:
    """Strip leading zeros from an AGS code: '01001' -> '1001'.

    Raises ValueError for empty or non-numeric codes.
    """
    if raw is None or isinstance(raw, bool):
        raise ValueError(f"Invalid AGS code: {raw!r}")
    text = str(raw).strip()
    if not text or not text.isdigit():
        raise ValueError(f"Invalid AGS code: {raw!r}")
    return str(int(text))


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


@dataclass(frozen=True)
class NewspaperRecord:
    name: str
    verlag: str = ""
    erscheinungsort: Optional[str] = None
    website: Optional[str] = None
    bundesland: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NewspaperRecord":
        if not isinstance(raw, dict):
            raise ValueError(f"Newspaper entry is not an object: {raw!r}")
        known = {"name", "verlag"} | set(OPTIONAL_FIELDS)
        optional = {}
        for key in OPTIONAL_FIELDS:
            value = raw.get(key)
            optional[key] = None if value is None else str(value)
        return cls(
            name=str(raw.get("name") or ""),
            verlag=str(raw.get("verlag") or ""),
            extra={k: v for k, v in raw.items() if k not in known},
            **optional,
        )

    def with_verlag(self, verlag: str) -> "NewspaperRecord":
        return NewspaperRecord(
            name=self.name,
            verlag=verlag,
            erscheinungsort=self.erscheinungsort,
            website=self.website,
            bundesland=self.bundesland,
            extra=dict(self.extra),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in lookup-file shape; absent optional fields are omitted."""
        out: Dict[str, Any] = {"name": self.name}
        out.update(self.extra)
        for key in OPTIONAL_FIELDS:
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        out["verlag"] = self.verlag
        return out


def _parse_count(value: Any) -> int:
    """Accept ints and integral floats only; a missing count is 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Invalid count: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"Invalid count: {value!r}")


@dataclass(frozen=True)
class RegionEntry:
    name: str = ""
    count: int = 0
    zeitungen: Tuple[NewspaperRecord, ...] = ()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RegionEntry":
        if not isinstance(raw, dict):
            raise ValueError(f"Region entry is not an object: {raw!r}")
        papers = raw.get("zeitungen") or []
        if not isinstance(papers, list):
            raise ValueError("'zeitungen' must be a list.")
        count = _parse_count(raw.get("count"))
        if count < 0:
            raise ValueError(f"Negative count: {count}")
        return cls(
            name=str(raw.get("name") or ""),
            count=count,
            zeitungen=tuple(NewspaperRecord.from_dict(p) for p in papers),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "count": self.count,
            "zeitungen": [z.to_dict() for z in self.zeitungen],
        }


def load_lookup(payload: Dict[str, Any]) -> Dict[str, RegionEntry]:
    """Parse a lookup-file payload into RegionEntry values keyed by AGS."""
    if not isinstance(payload, dict):
        raise ValueError("Lookup data must be a JSON object keyed by AGS.")
    return {str(key): RegionEntry.from_dict(value) for key, value in payload.items()}


def dump_lookup(lookup: Dict[str, RegionEntry]) -> Dict[str, Any]:
    return {key: entry.to_dict() for key, entry in lookup.items()}
