"""Load concept snapshots exported from a terminology release."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import ATTRIBUTES, CONCEPTS, FSN, ID, IS_A_TYPE_ID, PARENTS, ROOT

logger = logging.getLogger(__name__)


@dataclass
class ConceptRecord:
    """One concept as it appears in the snapshot file."""

    id: int
    fsn: str = ""
    parents: List[int] = field(default_factory=list)
    attributes: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class ConceptSnapshot:
    """All records of a snapshot plus its declared root, if any."""

    records: List[ConceptRecord] = field(default_factory=list)
    root_id: Optional[int] = None
    source_path: Optional[Path] = None

    @property
    def concept_count(self) -> int:
        return len(self.records)


def load_snapshot(path: Path) -> ConceptSnapshot:
    """Read a ``.json`` or ``.jsonl`` snapshot file."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    if path.suffix == ".jsonl":
        payload: Any = _read_json_lines(path)
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse JSON at {path}") from exc

    snapshot = parse_snapshot_payload(payload)
    snapshot.source_path = path
    logger.info(f"Loaded {snapshot.concept_count} concepts from {path}")
    return snapshot


def _read_json_lines(path: Path) -> List[Dict[str, Any]]:
    rows = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise ValueError(f"Failed to parse JSON at {path}:{lineno}") from exc
    return rows


def parse_snapshot_payload(payload: Any) -> ConceptSnapshot:
    """Turn decoded JSON into records.

    Accepts either ``{"root": ..., "concepts": [...]}`` or a bare list of
    concept objects.
    """

    root_id = None
    if isinstance(payload, dict):
        raw_root = payload.get(ROOT)
        if raw_root is not None:
            root_id = _coerce_concept_id(raw_root, "root")
        raw_concepts = payload.get(CONCEPTS) or []
    elif isinstance(payload, list):
        raw_concepts = payload
    else:
        raise ValueError("Snapshot must be a JSON object or array")

    if not isinstance(raw_concepts, list):
        raise ValueError("Snapshot 'concepts' must be a list")

    records = [_parse_record(raw, position) for position, raw in enumerate(raw_concepts)]
    return ConceptSnapshot(records=records, root_id=root_id)


def _parse_record(raw: Any, position: int) -> ConceptRecord:
    if not isinstance(raw, dict):
        raise ValueError(f"Concept entry {position} must be an object")
    if ID not in raw:
        raise ValueError(f"Concept entry {position} has no '{ID}'")

    concept_id = _coerce_concept_id(raw[ID], f"concepts[{position}].id")
    parents = [
        _coerce_concept_id(parent, f"concept {concept_id} parent")
        for parent in raw.get(PARENTS) or []
    ]

    attributes: Dict[str, List[str]] = {}
    for name, values in (raw.get(ATTRIBUTES) or {}).items():
        if not isinstance(values, list):
            values = [values]
        if str(name) == IS_A_TYPE_ID:
            # is-a relationships exported as attributes belong to the hierarchy
            for value in values:
                parent_id = _coerce_concept_id(value, f"concept {concept_id} parent")
                if parent_id not in parents:
                    parents.append(parent_id)
            continue
        attributes[str(name)] = [str(value) for value in values]

    fsn = raw.get(FSN)
    if fsn is None:
        fsn = ""
    elif not isinstance(fsn, str):
        raise ValueError(f"Concept {concept_id} has a non-string '{FSN}': {fsn!r}")

    return ConceptRecord(
        id=concept_id,
        fsn=fsn,
        parents=parents,
        attributes=attributes,
    )


def _coerce_concept_id(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid concept id for {label}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"Invalid concept id for {label}: {value!r}")
