"""Match recommendation model.

AnthropicMatchRecommender sends the donation and candidate applications to
the Anthropic Messages API and expects a JSON array back:

    [{"application_id": "...", "school_id": "...", "match_score": 87,
      "match_justification": "...", "priority_rank": 1}, ...]

Whatever the model returns is checked by validate_recommendations before
anything is stored.
"""

import json
import logging
from functools import lru_cache
from typing import Any, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError

from bhub_api.config.env import get_anthropic_api_key, get_match_model

logger = logging.getLogger(__name__)


class RecommendationError(Exception):
    """Raised when the model output cannot be used."""

    pass


class MatchRecommendation(BaseModel):
    application_id: str
    school_id: str
    match_score: float = Field(..., ge=0, le=100)
    match_justification: str = Field(..., min_length=1)
    priority_rank: Optional[int] = Field(None, ge=1)


class MatchRecommender(Protocol):
    """Scores candidate applications for one donation."""

    def recommend(
        self, donation: dict[str, Any], candidates: list[dict[str, Any]]
    ) -> list[MatchRecommendation]:
        ...


def validate_recommendations(
    raw: list[Any], candidates: list[dict[str, Any]]
) -> list[MatchRecommendation]:
    """Parse and cross-check model output against the candidate set.

    Raises:
        RecommendationError: unknown application, school mismatch, bad
            score/rank, or a duplicated application
    """
    by_id = {c["id"]: c for c in candidates}
    seen: set[str] = set()
    result: list[MatchRecommendation] = []

    for item in raw:
        try:
            rec = MatchRecommendation.model_validate(item)
        except ValidationError as e:
            raise RecommendationError(f"Malformed recommendation: {e.errors()[0]['msg']}") from e

        candidate = by_id.get(rec.application_id)
        if candidate is None:
            raise RecommendationError(f"Unknown application id: {rec.application_id}")
        if candidate["school"]["id"] != rec.school_id:
            raise RecommendationError(
                f"School mismatch for application {rec.application_id}: {rec.school_id}"
            )
        if rec.application_id in seen:
            raise RecommendationError(f"Duplicate application id: {rec.application_id}")

        seen.add(rec.application_id)
        result.append(rec)

    return result


def _extract_json_array(text: str) -> list[Any]:
    start = text.find("[")
    end = text.rfind("]") + 1
    if start < 0 or end <= start:
        raise RecommendationError("Model response contained no JSON array")
    try:
        parsed = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise RecommendationError(f"Model response was not valid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise RecommendationError("Model response JSON is not an array")
    return parsed


_PROMPT = """You are matching a donation to schools that applied for resources.

Donation:
{donation}

Candidate applications (each includes its school):
{candidates}

Score every application that the donation could reasonably serve from 0 to 100,
explain the score in one or two sentences, and rank them (1 = allocate first).
Leave out applications the donation cannot serve at all.

Respond with ONLY a JSON array of objects with keys:
application_id, school_id, match_score, match_justification, priority_rank"""


class AnthropicMatchRecommender:
    """Recommender backed by the Anthropic Messages API."""

    def __init__(self, client: Any = None, model: Optional[str] = None, max_tokens: int = 2000):
        if client is None:
            from anthropic import Anthropic

            client = Anthropic(api_key=get_anthropic_api_key())
        self._client = client
        self._model = model or get_match_model()
        self._max_tokens = max_tokens

    def recommend(
        self, donation: dict[str, Any], candidates: list[dict[str, Any]]
    ) -> list[MatchRecommendation]:
        if not candidates:
            return []

        prompt = _PROMPT.format(
            donation=json.dumps(donation, indent=2, default=str),
            candidates=json.dumps(candidates, indent=2, default=str),
        )
        response = self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        text = response.content[0].text

        recommendations = validate_recommendations(_extract_json_array(text), candidates)
        logger.info(
            "Match recommendations generated",
            extra={
                "event": "matching.recommendations.generated",
                "donation_id": donation.get("id"),
                "candidates": len(candidates),
                "recommended": len(recommendations),
                "model": self._model,
            },
        )
        return recommendations


@lru_cache(maxsize=1)
def get_default_recommender() -> MatchRecommender:
    return AnthropicMatchRecommender()
