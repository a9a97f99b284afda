"""Provider client, prompts and reply parsing for AI enrichment."""

from correlator.analyzers.llm_client import LLMClient
from correlator.analyzers.result_parser import (
    MIN_MATCH_CONFIDENCE,
    parse_code_analysis,
    parse_json_object,
    parse_transcript_analysis,
)

__all__ = [
    "LLMClient",
    "MIN_MATCH_CONFIDENCE",
    "parse_code_analysis",
    "parse_json_object",
    "parse_transcript_analysis",
]
