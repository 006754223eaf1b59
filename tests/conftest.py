"""Shared fixtures: a ten-concept hierarchy with multiple inheritance.

    138875005 SNOMED CT Concept
    ├── 404684003 Clinical finding
    │   ├── 64572001 Disease ─────────────┐
    │   └── 106063007 Cardiovascular finding ┤
    │                                     └── 49601007 Disorder of cardiovascular system
    │                                          └── 22298006 Myocardial infarction
    ├── 123037004 Body structure
    │   └── 80891009 Heart structure
    └── 410662002 Concept model attribute
        └── 363698007 Finding site
"""

from __future__ import annotations

import json

import pytest

from snomed_query.concept_index import build_concept_index
from snomed_query.query_service import ConceptQueryService
from snomed_query.snapshot_loader import parse_snapshot_payload

ROOT = 138875005
CLINICAL_FINDING = 404684003
DISEASE = 64572001
CARDIOVASCULAR_FINDING = 106063007
CARDIOVASCULAR_DISORDER = 49601007
MYOCARDIAL_INFARCTION = 22298006
BODY_STRUCTURE = 123037004
HEART_STRUCTURE = 80891009
ATTRIBUTE = 410662002
FINDING_SITE = 363698007

MYOCARDIUM_STRUCTURE = 74281007
CARDIOVASCULAR_STRUCTURE = 113257007


def snapshot_payload() -> dict:
    return {
        "root": ROOT,
        "concepts": [
            {"id": ROOT, "fsn": "SNOMED CT Concept (SNOMED RT+CTV3)"},
            {"id": CLINICAL_FINDING, "fsn": "Clinical finding (finding)", "parents": [ROOT]},
            {"id": DISEASE, "fsn": "Disease (disorder)", "parents": [CLINICAL_FINDING]},
            {
                "id": CARDIOVASCULAR_FINDING,
                "fsn": "Cardiovascular finding (finding)",
                "parents": [CLINICAL_FINDING],
            },
            {
                "id": CARDIOVASCULAR_DISORDER,
                "fsn": "Disorder of cardiovascular system (disorder)",
                "parents": [DISEASE, CARDIOVASCULAR_FINDING],
                "attributes": {str(FINDING_SITE): [str(CARDIOVASCULAR_STRUCTURE)]},
            },
            {
                "id": MYOCARDIAL_INFARCTION,
                "fsn": "Myocardial infarction (disorder)",
                "parents": [CARDIOVASCULAR_DISORDER],
                "attributes": {
                    str(FINDING_SITE): [str(HEART_STRUCTURE), str(MYOCARDIUM_STRUCTURE)],
                },
            },
            {"id": BODY_STRUCTURE, "fsn": "Body structure (body structure)", "parents": [ROOT]},
            {
                "id": HEART_STRUCTURE,
                "fsn": "Heart structure (body structure)",
                "parents": [BODY_STRUCTURE],
            },
            {"id": ATTRIBUTE, "fsn": "Concept model attribute (attribute)", "parents": [ROOT]},
            {"id": FINDING_SITE, "fsn": "Finding site (attribute)", "parents": [ATTRIBUTE]},
        ],
    }


@pytest.fixture
def payload() -> dict:
    return snapshot_payload()


@pytest.fixture
def records(payload):
    return parse_snapshot_payload(payload).records


@pytest.fixture
def index(records):
    return build_concept_index(records, root_id=ROOT)


@pytest.fixture
def service(index) -> ConceptQueryService:
    return ConceptQueryService(index)


@pytest.fixture
def snapshot_file(tmp_path, payload):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
