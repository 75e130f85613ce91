"""Lead-to-salesperson matching engine."""
import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import List, NamedTuple, Optional, Sequence

import pandas as pd

from src.match.errors import ConfigurationError
from src.match.factors import (
    category_match,
    clamp_score,
    level_match,
    performance_match,
    round_score,
    value_match,
    workload_match,
)
from src.match.models import (
    AssignmentDecision,
    Candidate,
    ScoreBreakdown,
    ScoredCandidate,
    UserStatus,
    Vehicle,
)
from src.match.reasons import compose_reasons
from src.match.rules import DEFAULT_CONFIG, DEFAULT_TOP_N, MatchingConfig

logger = logging.getLogger(__name__)


class EligibilityResult(NamedTuple):
    """Candidates that may be scored, plus records rejected as data-integrity anomalies."""
    eligible: List[Candidate]
    anomalies: List[ConfigurationError]


class MatchingEngine:
    """
    Pure scoring engine: ranks candidates for a vehicle and decides on auto-assignment.

    The engine performs no I/O and keeps no state between calls. All workload and
    performance figures must be fetched by the caller and passed in as Candidates.
    """

    def __init__(
        self,
        config: MatchingConfig = DEFAULT_CONFIG,
        max_workers: int = 1,
        parallel_min_candidates: int = 50
    ):
        """
        Initialize matching engine.

        Args:
            config: Weights, thresholds and band cutoffs
            max_workers: Thread count for scoring large pools (1 disables threading)
            parallel_min_candidates: Minimum eligible pool size before threads are used
        """
        self.config = config
        self.max_workers = max_workers
        self.parallel_min_candidates = parallel_min_candidates

    def filter_eligible(self, candidates: Sequence[Candidate]) -> EligibilityResult:
        """
        Drop candidates that cannot take another lead.

        A salesperson whose open lead count has reached their capacity is excluded
        outright. A non-positive capacity is a data-integrity problem: that
        candidate is excluded and reported, the rest of the batch proceeds.
        """
        eligible = []
        anomalies = []

        for candidate in candidates:
            salesperson = candidate.salesperson
            capacity = salesperson.max_lead_capacity
            open_leads = candidate.workload.open_leads

            if salesperson.status != UserStatus.ACTIVE:
                logger.debug(f"Skipping inactive salesperson {salesperson.id}")
                continue

            if capacity <= 0:
                anomaly = ConfigurationError(
                    salesperson.id,
                    f"max_lead_capacity must be positive, got {capacity}"
                )
                logger.warning(f"Excluding from matching: {anomaly}")
                anomalies.append(anomaly)
                continue

            if open_leads >= capacity:
                logger.debug(f"Salesperson {salesperson.id} at capacity ({open_leads}/{capacity})")
                continue

            eligible.append(candidate)

        return EligibilityResult(eligible, anomalies)

    def score_candidate(self, vehicle: Vehicle, candidate: Candidate) -> ScoredCandidate:
        """
        Calculate the weighted compatibility score for one candidate.

        Args:
            vehicle: Vehicle the lead is about
            candidate: Salesperson with workload and performance snapshots

        Returns:
            ScoredCandidate with aggregate score, per-factor breakdown and reasons
        """
        config = self.config
        salesperson = candidate.salesperson

        breakdown = ScoreBreakdown(
            category=category_match(salesperson, vehicle, config),
            value=value_match(salesperson, vehicle, config),
            level=level_match(salesperson, vehicle, config),
            workload=workload_match(salesperson, candidate.workload, config),
            performance=performance_match(candidate.performance, config),
        )

        weighted = sum(
            (Decimal(score) * config.weights[name] for name, score in breakdown.scores().items()),
            Decimal("0")
        )

        return ScoredCandidate(
            salesperson=salesperson,
            open_leads=candidate.workload.open_leads,
            score=clamp_score(round_score(weighted)),
            breakdown=breakdown,
            reasons=[factor.reason for factor in breakdown.factors()],
        )

    def score(self, vehicle: Vehicle, candidates: Sequence[Candidate]) -> List[ScoredCandidate]:
        """
        Score every eligible candidate and rank them by score, highest first.

        Ties keep input order (the sort is stable).
        """
        eligible, anomalies = self.filter_eligible(candidates)

        if self.max_workers > 1 and len(eligible) >= self.parallel_min_candidates:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                scored = list(pool.map(lambda c: self.score_candidate(vehicle, c), eligible))
        else:
            scored = [self.score_candidate(vehicle, candidate) for candidate in eligible]

        scored.sort(key=lambda s: s.score, reverse=True)

        logger.info(
            f"Scored {len(scored)} of {len(candidates)} salespeople for vehicle {vehicle.id} "
            f"({len(anomalies)} configuration anomalies)"
        )
        return scored

    def top(self, scored: Sequence[ScoredCandidate], limit: Optional[int] = None) -> List[ScoredCandidate]:
        """Return the first `limit` ranked candidates (default 3)."""
        if limit is None:
            limit = DEFAULT_TOP_N
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        return list(scored[:limit])

    def decide(self, scored: Sequence[ScoredCandidate]) -> AssignmentDecision:
        """
        Decide whether to auto-assign the top-ranked candidate.

        Read-only: the caller performs the actual assignment on a positive decision.
        """
        if not scored:
            return AssignmentDecision(should_auto_assign=False)

        top_candidate = scored[0]
        if top_candidate.score >= self.config.auto_assign_min:
            return AssignmentDecision(
                should_auto_assign=True,
                salesperson_id=top_candidate.salesperson_id,
                score=top_candidate.score
            )
        return AssignmentDecision(should_auto_assign=False, score=top_candidate.score)


def scored_to_frame(vehicle_id: str, scored: Sequence[ScoredCandidate]) -> pd.DataFrame:
    """
    Flatten ranked candidates into a DataFrame for CSV export.

    Args:
        vehicle_id: Vehicle the candidates were scored for
        scored: Ranked candidates

    Returns:
        DataFrame with one row per candidate, in rank order
    """
    rows = []
    for rank, candidate in enumerate(scored, start=1):
        breakdown = candidate.breakdown.scores()
        rows.append({
            "vehicle_id": vehicle_id,
            "rank": rank,
            "salesperson_id": candidate.salesperson_id,
            "salesperson_name": candidate.salesperson.name,
            "level": candidate.salesperson.level.value,
            "score": candidate.score,
            "category_score": breakdown["category"],
            "value_score": breakdown["value"],
            "level_score": breakdown["level"],
            "workload_score": breakdown["workload"],
            "performance_score": breakdown["performance"],
            "open_leads": candidate.open_leads,
            "capacity": candidate.salesperson.max_lead_capacity,
            "reason_codes": ",".join(candidate.reason_codes),
            "reason_text": compose_reasons(candidate.reasons),
        })

    columns = [
        "vehicle_id", "rank", "salesperson_id", "salesperson_name", "level", "score",
        "category_score", "value_score", "level_score", "workload_score", "performance_score",
        "open_leads", "capacity", "reason_codes", "reason_text",
    ]
    return pd.DataFrame(rows, columns=columns)
