"""
FastAPI server: read-only API over the governance helpers.

Exposes DRep ID conversion, proposal ID parsing, metadata normalization and
batched DRep enrichment (Koios with Blockfrost fallback). Nothing is stored;
every response is computed per request. Config via env (see config.settings).
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_govtwool import __version__
from backend_govtwool.aggregation import (
    DRepEnricher,
    DRepSource,
    build_enricher,
    fetch_proposal_voting_summaries,
    get_total_active_dreps,
)
from backend_govtwool.config import Settings, get_settings
from backend_govtwool.govtwool_logging import get_logger
from backend_govtwool.identifiers import (
    CompactProposalId,
    CompositeProposalId,
    GovernanceIdError,
    is_script_based,
    is_system_drep,
    parse,
    to_current,
    to_legacy,
)
from backend_govtwool.identifiers.drep_id import drep_id_to_hex, get_system_drep_info
from backend_govtwool.metadata import (
    evaluate_anchor_hash,
    evaluate_anchor_url,
    get_metadata_description,
    get_metadata_name,
    get_metadata_website,
    has_profile,
    sanitize_metadata,
)
from backend_govtwool.providers import KoiosClient

logger = get_logger(__name__)

MAX_ENRICH_ITEMS = 500
MAX_SUMMARY_ITEMS = 100


# -----------------------------------------------------------------------------
# Config and dependencies
# -----------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_enricher(settings: Settings = Depends(get_app_settings)) -> DRepEnricher:
    """Dependency: Koios bulk + Blockfrost fallback enricher."""
    return build_enricher(settings)


def get_koios(settings: Settings = Depends(get_app_settings)) -> KoiosClient:
    return KoiosClient.from_settings(settings.providers)


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------

class DRepIdsResponse(BaseModel):
    """GET /dreps/{drep_id}/ids response: both encodings of one DRep."""

    input: str
    current: str = Field(..., description="CIP-129 form (or the system DRep constant)")
    legacy: str = Field(..., description="CIP-105 form (or the system DRep constant)")
    is_system: bool = False
    is_script: bool | None = Field(None, description="Script credential; null for system DReps")
    hex: str | None = Field(None, description="Hex of the current-form payload")
    system_name: str | None = None
    system_description: str | None = None


class ActiveDRepsResponse(BaseModel):
    count: int | None = Field(None, description="Active DReps in the latest epoch; null when unavailable")


class EnrichItem(BaseModel):
    drep_id: str = Field(..., min_length=1, max_length=128)
    metadata: dict[str, Any] | None = None


class EnrichRequest(BaseModel):
    """POST /dreps/enrich body."""

    dreps: list[EnrichItem] = Field(..., max_length=MAX_ENRICH_ITEMS)


class VoteTallyModel(BaseModel):
    yes: int = 0
    no: int = 0
    abstain: int = 0


class EnrichedDRepModel(BaseModel):
    identifier: str
    normalized_id: str
    delegator_count: int = Field(..., ge=0)
    vote_count: int = Field(..., ge=0)
    has_profile: bool
    votes: VoteTallyModel
    last_vote_epoch: int | None = None
    source: str


class EnrichResponse(BaseModel):
    dreps: list[EnrichedDRepModel]


class ProposalParseResponse(BaseModel):
    """GET /proposals/parse response."""

    proposal_id: str
    format: str = Field(..., description="compact | composite")
    tx_hash: str | None = None
    cert_index: int | None = None


class VotingSummaryRequest(BaseModel):
    proposal_ids: list[str] = Field(..., max_length=MAX_SUMMARY_ITEMS)


class VotingSummaryResponse(BaseModel):
    summaries: dict[str, dict[str, Any] | None]


class MetadataNormalizeRequest(BaseModel):
    """
    POST /metadata/normalize body.

    Either `metadata` (already parsed JSON) or `raw_body` (document text as
    served at the anchor URL, needed for the hash check).
    """

    metadata: Any = None
    raw_body: str | None = None
    anchor_url: str | None = None
    anchor_hash: str | None = None


class MetadataNormalizeResponse(BaseModel):
    metadata: dict[str, Any] | None
    name: str | None = None
    description: str | None = None
    website: str | None = None
    has_profile: bool = False
    checks: dict[str, dict[str, Any]] = Field(default_factory=dict)


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Backend GovTwool API",
    description="Read-only API for DRep identifiers, proposal IDs, metadata and DRep statistics.",
    version=__version__,
)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.get("/dreps/active-count", response_model=ActiveDRepsResponse)
async def active_drep_count(koios: KoiosClient = Depends(get_koios)) -> ActiveDRepsResponse:
    return ActiveDRepsResponse(count=await get_total_active_dreps(koios))


@app.get("/dreps/{drep_id}/ids", response_model=DRepIdsResponse)
def drep_ids(drep_id: str) -> DRepIdsResponse:
    """Return the current and legacy encodings of a DRep ID. 400 if it does not decode."""
    drep_id = drep_id.strip()
    if is_system_drep(drep_id):
        info = get_system_drep_info(drep_id)
        return DRepIdsResponse(
            input=drep_id,
            current=drep_id,
            legacy=drep_id,
            is_system=True,
            system_name=info.name if info else None,
            system_description=info.description if info else None,
        )
    try:
        current = to_current(drep_id)
        return DRepIdsResponse(
            input=drep_id,
            current=current,
            legacy=to_legacy(drep_id),
            is_script=is_script_based(drep_id),
            hex=drep_id_to_hex(current),
        )
    except GovernanceIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/dreps/enrich", response_model=EnrichResponse)
async def enrich(body: EnrichRequest, enricher: DRepEnricher = Depends(get_enricher)) -> EnrichResponse:
    """
    Attach delegator/vote statistics to each DRep, in request order.

    Provider outages never fail the request (counts degrade to zero);
    a malformed DRep ID is a 400.
    """
    sources = [DRepSource(item.drep_id.strip(), item.metadata) for item in body.dreps]
    logger.info("enrich_called", count=len(sources))
    try:
        records = await enricher.enrich(sources)
    except GovernanceIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return EnrichResponse(dreps=[EnrichedDRepModel(**r.to_dict()) for r in records])


@app.get("/proposals/parse", response_model=ProposalParseResponse)
def parse_proposal(proposal_id: str = Query(..., min_length=1, max_length=256)) -> ProposalParseResponse:
    parsed = parse(proposal_id.strip())
    if isinstance(parsed, CompositeProposalId):
        return ProposalParseResponse(
            proposal_id=str(parsed),
            format=parsed.format,
            tx_hash=parsed.tx_hash,
            cert_index=parsed.cert_index,
        )
    if isinstance(parsed, CompactProposalId):
        return ProposalParseResponse(proposal_id=parsed.token, format=parsed.format)
    raise HTTPException(status_code=400, detail=f"Unrecognized proposal ID: {proposal_id!r}")


@app.post("/proposals/voting-summaries", response_model=VotingSummaryResponse)
async def voting_summaries(
    body: VotingSummaryRequest,
    koios: KoiosClient = Depends(get_koios),
    settings: Settings = Depends(get_app_settings),
) -> VotingSummaryResponse:
    """Koios voting summary per compact proposal ID; composite IDs map to null."""
    try:
        summaries = await fetch_proposal_voting_summaries(koios, body.proposal_ids, settings.enrichment)
    except GovernanceIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return VotingSummaryResponse(summaries=summaries)


@app.post("/metadata/normalize", response_model=MetadataNormalizeResponse)
def normalize_metadata(body: MetadataNormalizeRequest) -> MetadataNormalizeResponse:
    """Sanitize metadata, extract display fields and run the anchor checks."""
    raw = body.metadata
    raw_bytes: bytes | None = None
    if body.raw_body is not None:
        raw_bytes = body.raw_body.encode("utf-8")
        try:
            raw = json.loads(body.raw_body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="raw_body is not valid JSON") from e
    clean = sanitize_metadata(raw)
    checks: dict[str, dict[str, Any]] = {}
    if body.anchor_url is not None:
        checks["url"] = evaluate_anchor_url(body.anchor_url).to_dict()
    if body.anchor_hash is not None:
        checks["hash"] = evaluate_anchor_hash(raw_bytes, body.anchor_hash).to_dict()
    return MetadataNormalizeResponse(
        metadata=clean,
        name=get_metadata_name(clean),
        description=get_metadata_description(clean),
        website=get_metadata_website(clean),
        has_profile=has_profile(clean),
        checks=checks,
    )


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
