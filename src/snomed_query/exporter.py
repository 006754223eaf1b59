"""Write a concept index back to disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

from networkx.readwrite import json_graph

from .concept_index import InMemoryConceptIndex, summarize_index
from .constants import ATTRIBUTES, CONCEPTS, FSN, ID, PARENTS, ROOT

logger = logging.getLogger(__name__)


def export_index(index: InMemoryConceptIndex, output_dir: Path) -> Dict[str, Path]:
    """Export snapshot, is-a graph and summary files.

    ``snapshot.json`` is readable by ``load_snapshot``; ``graph.json`` is the
    node-link form of the hierarchy graph.
    """

    output_dir.mkdir(parents=True, exist_ok=True)

    snapshot = {
        ROOT: index.root_id,
        CONCEPTS: [
            {
                ID: concept.id,
                FSN: concept.fully_specified_name,
                PARENTS: sorted(concept.parents),
                ATTRIBUTES: {name: list(values) for name, values in concept.attributes.items()},
            }
            for concept in index
        ],
    }
    snapshot_path = output_dir / "snapshot.json"
    with snapshot_path.open("w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2)

    outputs = {"snapshot": snapshot_path}

    if index.graph is not None:
        graph_path = output_dir / "graph.json"
        with graph_path.open("w", encoding="utf-8") as f:
            json.dump(json_graph.node_link_data(index.graph), f, indent=2)
        outputs["graph"] = graph_path

    summary_path = output_dir / "summary.json"
    with summary_path.open("w", encoding="utf-8") as f:
        json.dump({"root": index.root_id, "stats": summarize_index(index)}, f, indent=2)
    outputs["summary"] = summary_path

    for kind, path in outputs.items():
        logger.info(f"Wrote {kind} to {path}")
    return outputs
