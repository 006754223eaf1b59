"""FastAPI server exposing concept queries."""

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from .concept_index import summarize_index
from .config import load_settings
from .errors import ConceptNotFoundError, QueryError
from .evaluator import ConceptResult
from .query_service import ConceptQueryService

logger = logging.getLogger(__name__)

app = FastAPI(title="SNOMED Query Service")


class ConceptModel(BaseModel):
    id: int
    fsn: str


class ConceptListResponse(BaseModel):
    query: Optional[str] = None
    count: int
    concepts: List[ConceptModel]


@lru_cache(maxsize=1)
def get_service() -> ConceptQueryService:
    """Load the snapshot named by the environment once per process."""
    settings = load_settings()
    logger.info(f"Loading concept snapshot from {settings.snapshot_path}")
    return ConceptQueryService.from_snapshot(settings.snapshot_path, root_id=settings.root_id)


def _to_http_exception(exc: QueryError) -> HTTPException:
    if isinstance(exc, ConceptNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _to_models(results: List[ConceptResult]) -> List[ConceptModel]:
    return [ConceptModel(id=result.id, fsn=result.fsn) for result in results]


@app.get("/")
def root():
    return {"message": "SNOMED query API is running. Go to /docs for API documentation."}


@app.get("/api/stats")
def stats(service: ConceptQueryService = Depends(get_service)):
    """Index statistics."""
    return {"root": service.root_id, **summarize_index(service.index)}


@app.get("/api/concepts", response_model=ConceptListResponse)
def find_concepts(
    ec_query: Optional[str] = Query(None, alias="ecQuery"),
    service: ConceptQueryService = Depends(get_service),
):
    """Evaluate an expression constraint."""
    try:
        results = service.evaluate(ec_query)
    except QueryError as exc:
        raise _to_http_exception(exc)
    return ConceptListResponse(query=ec_query, count=len(results), concepts=_to_models(results))


@app.get("/api/concepts/{concept_id}", response_model=ConceptModel)
def get_concept(concept_id: int, service: ConceptQueryService = Depends(get_service)):
    try:
        result = service.retrieve_concept(concept_id)
    except QueryError as exc:
        raise _to_http_exception(exc)
    return ConceptModel(id=result.id, fsn=result.fsn)


@app.get("/api/concepts/{concept_id}/ancestors", response_model=ConceptListResponse)
def get_ancestors(concept_id: int, service: ConceptQueryService = Depends(get_service)):
    try:
        results = service.retrieve_ancestors(concept_id)
    except QueryError as exc:
        raise _to_http_exception(exc)
    return ConceptListResponse(count=len(results), concepts=_to_models(results))


@app.get("/api/concepts/{concept_id}/descendants", response_model=ConceptListResponse)
def get_descendants(concept_id: int, service: ConceptQueryService = Depends(get_service)):
    try:
        results = service.retrieve_descendants(concept_id)
    except QueryError as exc:
        raise _to_http_exception(exc)
    return ConceptListResponse(count=len(results), concepts=_to_models(results))


if __name__ == "__main__":
    import uvicorn

    from .config import setup_logging

    setup_logging(level=load_settings().log_level)
    uvicorn.run(app, host="0.0.0.0", port=8000)
