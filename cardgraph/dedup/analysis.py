"""Duplication and quality reports over the relationships of a scope."""

from typing import Literal

import numpy as np
from pydantic import BaseModel

from cardgraph.domain.relationships import RELATION_TYPES, Relationship

from .resolver import group_by_pair

ConflictAction = Literal["keep_highest_quality", "merge_strengths", "manual_review"]
QualityGrade = Literal["A", "B", "C", "D", "F"]

STRONG_STRENGTH = 0.7
WEAK_STRENGTH = 0.4
HIGH_CONFIDENCE = 0.8
LOW_CONFIDENCE = 0.6

QUALITY_WEIGHTS = {
    "connection": 0.3,
    "density": 0.2,
    "strong_relations": 0.3,
    "average_strength": 0.2,
}


class Distribution(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class ConflictEntry(BaseModel):
    id: str
    type: str
    strength: float
    confidence: float


class Conflict(BaseModel):
    """Relationships that share a pair key."""

    source_id: str
    target_id: str
    relationships: list[ConflictEntry]
    strength_difference: float
    recommended_action: ConflictAction


class DuplicationReport(BaseModel):
    total_relationships: int = 0
    unique_pairs: int = 0
    duplicate_pairs: int = 0
    duplication_rate: float = 0.0
    type_conflicts: int = 0
    type_distribution: dict[str, int] = {}
    average_strength: dict[str, float] = {}
    average_confidence: dict[str, float] = {}
    strength_distribution: Distribution = Distribution()
    confidence_distribution: Distribution = Distribution()
    conflicts: list[Conflict] = []
    recommendations: list[str] = []


class QualityIssue(BaseModel):
    type: Literal["low_coverage", "weak_relations", "high_density"]
    severity: Literal["low", "medium", "high"]
    description: str
    affected_count: int


class QualityReport(BaseModel):
    item_count: int = 0
    relationship_count: int = 0
    connected_items: int = 0
    connection_ratio: float = 0.0
    average_connections_per_item: float = 0.0
    density: float = 0.0
    strong_count: int = 0
    weak_count: int = 0
    average_strength: float = 0.0
    score: int = 0
    grade: QualityGrade = "F"
    breakdown: dict[str, float] = {}
    issues: list[QualityIssue] = []


def _ratio(numerator: float, denominator: float) -> float:
    return float(numerator) / denominator if denominator else 0.0


def _distribution(values: np.ndarray, low: float, high: float) -> Distribution:
    return Distribution(
        low=int(np.sum(values < low)),
        medium=int(np.sum((values >= low) & (values < high))),
        high=int(np.sum(values >= high)),
    )


def recommend_action(strength_difference: float) -> ConflictAction:
    if strength_difference > 0.3:
        return "keep_highest_quality"
    if strength_difference < 0.1:
        return "merge_strengths"
    return "manual_review"


def analyze_duplication(relationships: list[Relationship]) -> DuplicationReport:
    """Summarize how many pairs carry more than one relationship.

    Args:
        relationships: Relationships of one scope

    Returns:
        DuplicationReport with distributions, per-pair conflicts and recommendations
    """
    if not relationships:
        return DuplicationReport(
            type_distribution={t: 0 for t in RELATION_TYPES},
            average_strength={t: 0.0 for t in RELATION_TYPES},
            average_confidence={t: 0.0 for t in RELATION_TYPES},
            recommendations=["No relationships yet, run a generation pass or add manual ones"],
        )

    groups = group_by_pair(relationships)
    duplicates = [group for group in groups.values() if len(group) > 1]
    strengths = np.array([r.strength for r in relationships])
    confidences = np.array([r.confidence for r in relationships])
    types = np.array([r.type for r in relationships])

    type_distribution = {}
    average_strength = {}
    average_confidence = {}
    for relation_type in RELATION_TYPES:
        mask = types == relation_type
        count = int(mask.sum())
        type_distribution[relation_type] = count
        average_strength[relation_type] = float(strengths[mask].mean()) if count else 0.0
        average_confidence[relation_type] = float(confidences[mask].mean()) if count else 0.0

    conflicts = []
    for group in duplicates:
        group_strengths = [r.strength for r in group]
        difference = max(group_strengths) - min(group_strengths)
        source_id, target_id = group[0].pair_key
        conflicts.append(
            Conflict(
                source_id=source_id,
                target_id=target_id,
                relationships=[
                    ConflictEntry(id=r.id, type=r.type, strength=r.strength, confidence=r.confidence)
                    for r in group
                ],
                strength_difference=difference,
                recommended_action=recommend_action(difference),
            )
        )

    strength_distribution = _distribution(strengths, WEAK_STRENGTH, STRONG_STRENGTH)
    report = DuplicationReport(
        total_relationships=len(relationships),
        unique_pairs=len(groups),
        duplicate_pairs=len(duplicates),
        duplication_rate=_ratio(len(duplicates), len(groups)),
        type_conflicts=sum(1 for group in duplicates if len({r.type for r in group}) > 1),
        type_distribution=type_distribution,
        average_strength=average_strength,
        average_confidence=average_confidence,
        strength_distribution=strength_distribution,
        confidence_distribution=_distribution(confidences, LOW_CONFIDENCE, HIGH_CONFIDENCE),
        conflicts=conflicts,
    )
    report.recommendations = _recommendations(report)
    return report


def _recommendations(report: DuplicationReport) -> list[str]:
    recommendations = []
    if report.duplication_rate > 0.1:
        recommendations.append(
            f"Duplication rate is {report.duplication_rate:.1%}, run a deduplication pass"
        )
    if report.strength_distribution.low > report.total_relationships * 0.3:
        recommendations.append(
            f"Many weak relationships (strength < {WEAK_STRENGTH}), consider a bulk delete by strength"
        )
    wide_conflicts = sum(
        1 for c in report.conflicts if c.recommended_action == "keep_highest_quality"
    )
    if wide_conflicts:
        recommendations.append(
            f"{wide_conflicts} duplicate pair(s) disagree strongly on strength, review them"
        )
    if report.type_conflicts:
        recommendations.append(
            f"{report.type_conflicts} pair(s) are related by several types, check the dedup priority"
        )
    return recommendations


def quality_grade(score: float) -> QualityGrade:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def build_quality_report(item_count: int, relationships: list[Relationship]) -> QualityReport:
    """Grade the coverage and strength of a scope's relationship graph.

    Args:
        item_count: Number of items in the scope
        relationships: Relationships of the scope

    Returns:
        QualityReport with a 0-100 score, a letter grade and detected issues
    """
    total = len(relationships)
    strengths = np.array([r.strength for r in relationships], dtype=float)
    connected = {r.source_id for r in relationships} | {r.target_id for r in relationships}

    max_pairs = item_count * (item_count - 1) / 2
    connection_ratio = _ratio(len(connected), item_count)
    density = _ratio(total, max_pairs)
    strong_count = int(np.sum(strengths > STRONG_STRENGTH))
    weak_count = int(np.sum(strengths < WEAK_STRENGTH))
    strong_ratio = _ratio(strong_count, total)
    mean_strength = float(strengths.mean()) if total else 0.0

    components = {
        "connection": min(connection_ratio, 1.0),
        "density": min(density * 10, 1.0),
        "strong_relations": strong_ratio,
        "average_strength": mean_strength,
    }
    breakdown = {
        name: QUALITY_WEIGHTS[name] * value * 100 for name, value in components.items()
    }
    score = int(round(max(0.0, min(100.0, sum(breakdown.values())))))

    issues = []
    if connection_ratio < 0.5:
        issues.append(
            QualityIssue(
                type="low_coverage",
                severity="high" if connection_ratio < 0.3 else "medium",
                description=f"{1 - connection_ratio:.1%} of items have no relationship",
                affected_count=item_count - len(connected) if item_count else 0,
            )
        )
    weak_ratio = _ratio(weak_count, total)
    if weak_ratio > 0.4:
        issues.append(
            QualityIssue(
                type="weak_relations",
                severity="high" if weak_ratio > 0.6 else "medium",
                description=f"{weak_ratio:.1%} of relationships have strength < {WEAK_STRENGTH}",
                affected_count=weak_count,
            )
        )
    if density > 0.3:
        issues.append(
            QualityIssue(
                type="high_density",
                severity="medium",
                description=f"Relationship density is {density:.1%}, duplicates are likely",
                affected_count=total,
            )
        )

    return QualityReport(
        item_count=item_count,
        relationship_count=total,
        connected_items=len(connected),
        connection_ratio=connection_ratio,
        average_connections_per_item=_ratio(total * 2, item_count),
        density=density,
        strong_count=strong_count,
        weak_count=weak_count,
        average_strength=mean_strength,
        score=score,
        grade=quality_grade(score),
        breakdown=breakdown,
        issues=issues,
    )
