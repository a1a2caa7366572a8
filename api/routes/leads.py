"""
Lead Scoring API Routes.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from lead_scoring.compat import convert_to_legacy
from lead_scoring.profiles import PROFILES, LEGACY_PROFILE, UnknownProfileError, get_profile

from ..middleware.auth import api_key_auth
from ..services import ScoredLead, get_services

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(api_key_auth)])

MAX_BATCH_SIZE = 500


# Models
class ScoreRequest(BaseModel):
    """Single buyer scoring request."""
    buyer: Dict[str, Any]
    profile: Optional[str] = None
    as_of: Optional[datetime] = None
    enhance_summary: Optional[bool] = None
    include_legacy: bool = False


class BatchScoreRequest(BaseModel):
    """Batch scoring request. Items are scored independently."""
    buyers: List[Any] = Field(..., min_length=1, max_length=MAX_BATCH_SIZE)
    profile: Optional[str] = None
    as_of: Optional[datetime] = None
    enhance_summary: Optional[bool] = None


class BatchItem(BaseModel):
    """Outcome for one batch entry."""
    index: int
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class BatchScoreResponse(BaseModel):
    """Batch scoring response."""
    profile: str
    total: int
    succeeded: int
    failed: int
    results: List[BatchItem]


def _resolve_profile(name: Optional[str]) -> str:
    """Profile name for the request, 404 when unknown."""
    try:
        return get_profile(name or get_services().settings.default_profile).name
    except UnknownProfileError as e:
        raise HTTPException(status_code=404, detail=f"Unknown scoring profile: {name}") from e


def _render(scored: ScoredLead, include_legacy: bool = False) -> Dict[str, Any]:
    data = scored.to_dict()
    if include_legacy and scored.result.profile != LEGACY_PROFILE.name:
        data["legacy"] = convert_to_legacy(scored.result).to_dict()
    return data


# Endpoints
@router.get("/profiles")
async def list_profiles():
    """List available scoring profiles and their label sets."""
    services = get_services()
    return {
        "default": services.settings.default_profile,
        "profiles": [profile.to_dict() for profile in PROFILES.values()],
    }


@router.post("/score")
async def score_lead(request: ScoreRequest):
    """
    Score a single buyer.

    Returns the full score result, the narrative and the column patch a
    caller persists on the buyer record.
    """
    profile = _resolve_profile(request.profile)
    services = get_services()

    scored = await services.score_buyer(
        request.buyer,
        profile=profile,
        as_of=request.as_of,
        enhance_summary=request.enhance_summary,
    )

    logger.info(
        f"Scored lead {scored.buyer.display_name or '<unnamed>'}: "
        f"{scored.result.classification} ({scored.result.priority.code})"
    )
    return _render(scored, include_legacy=request.include_legacy)


@router.post("/score/batch", response_model=BatchScoreResponse)
async def score_batch(request: BatchScoreRequest):
    """
    Score many buyers.

    Each entry is retried independently; failures are reported per item
    instead of failing the whole request.
    """
    profile = _resolve_profile(request.profile)
    services = get_services()

    outcomes = await asyncio.gather(
        *[
            services.score_with_retry(
                payload,
                profile=profile,
                as_of=request.as_of,
                enhance_summary=request.enhance_summary,
            )
            for payload in request.buyers
        ],
        return_exceptions=True,
    )

    results: List[BatchItem] = []
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, Exception):
            logger.warning(f"Batch item {index} failed: {outcome}")
            results.append(BatchItem(index=index, success=False, error=str(outcome)))
        else:
            results.append(BatchItem(index=index, success=True, data=_render(outcome)))

    succeeded = sum(1 for item in results if item.success)
    logger.info(f"Batch scored {succeeded}/{len(results)} leads with profile {profile}")

    return BatchScoreResponse(
        profile=profile,
        total=len(results),
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=results,
    )
