"""
Parsing of provider replies into typed analysis results.

A reply that is not a JSON object raises ``MalformedAnalysisError``. For code
analysis, a JSON object that does not fit the result schema is replaced by
the ``fallback()`` variant of the result type; for transcripts an invalid
structure is an error.
"""

import json
import re
from typing import Any, Collection, Dict, Type, Union

from pydantic import ValidationError

from correlator.errors import MalformedAnalysisError
from correlator.models import (
    AnalysisKind,
    CommitAnalysisResult,
    PRAnalysisResult,
    TranscriptAnalysis,
)
from correlator.utils.logging import get_logger

logger = get_logger(__name__)

MIN_MATCH_CONFIDENCE = 0.6

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text.strip())


def parse_json_object(text: str) -> Dict[str, Any]:
    """Decode a provider reply that must be a single JSON object."""
    try:
        data = json.loads(strip_code_fences(text))
    except (TypeError, ValueError) as e:
        raise MalformedAnalysisError(f"Provider response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedAnalysisError(
            f"Provider response must be a JSON object, got {type(data).__name__}"
        )
    return data


def parse_code_analysis(
    kind: AnalysisKind,
    text: str,
    open_ticket_ids: Collection[str] = (),
) -> Union[CommitAnalysisResult, PRAnalysisResult]:
    """
    Parse a commit or pull request analysis reply.

    Potential matches below ``MIN_MATCH_CONFIDENCE`` or naming a ticket
    outside ``open_ticket_ids`` are dropped.
    """
    model: Type[CommitAnalysisResult] = (
        PRAnalysisResult if kind == AnalysisKind.PULL_REQUEST else CommitAnalysisResult
    )
    data = parse_json_object(text)
    data.pop("kind", None)
    data.pop("isFallback", None)
    data.pop("is_fallback", None)

    try:
        result = model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            f"Provider {kind.value} analysis did not match schema; using fallback",
            extra={"validation_errors": e.error_count()},
        )
        return model.fallback()

    allowed = set(open_ticket_ids)
    result.potential_matches = [
        match
        for match in result.potential_matches
        if match.confidence >= MIN_MATCH_CONFIDENCE and match.ticket_id in allowed
    ]
    return result


def parse_transcript_analysis(text: str) -> TranscriptAnalysis:
    """Parse a transcript analysis reply; invalid structure raises MalformedAnalysisError."""
    data = parse_json_object(text)
    try:
        return TranscriptAnalysis.model_validate(data)
    except ValidationError as e:
        raise MalformedAnalysisError(f"Invalid transcript analysis structure: {e}") from e
