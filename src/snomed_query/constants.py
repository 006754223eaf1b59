"""Well-known SNOMED CT identifiers and record field names."""

from __future__ import annotations

# 138875005 |SNOMED CT Concept (SNOMED RT+CTV3)|
ROOT_CONCEPT_ID = 138875005

# 116680003 |Is a (attribute)|
IS_A_TYPE_ID = "116680003"

# Snapshot record fields
ID = "id"
FSN = "fsn"
PARENTS = "parents"
ATTRIBUTES = "attributes"
ROOT = "root"
CONCEPTS = "concepts"
