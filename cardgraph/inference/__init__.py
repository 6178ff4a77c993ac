"""Relationship inference: candidate generation, scoring and selection."""

from cardgraph.inference.candidates import CandidateGenerator, generate_candidates
from cardgraph.inference.pipeline import GenerationResult, RelationshipInferencePipeline
from cardgraph.inference.scoring import CandidateScore, apply_score, score_candidate
from cardgraph.inference.selection import compute_target_count, select_top_k

__all__ = [
    "CandidateGenerator",
    "CandidateScore",
    "GenerationResult",
    "RelationshipInferencePipeline",
    "apply_score",
    "compute_target_count",
    "generate_candidates",
    "score_candidate",
    "select_top_k",
]
