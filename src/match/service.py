"""Matching service: fetches inputs from storage and runs the matching engine."""
import logging
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Tuple

from src.match.errors import VehicleNotFound
from src.match.models import (
    AssignmentDecision,
    Candidate,
    PerformanceSnapshot,
    Salesperson,
    ScoredCandidate,
    Vehicle,
    WorkloadSnapshot,
)
from src.match.rules import DEFAULT_TOP_N
from src.match.scorer import MatchingEngine

logger = logging.getLogger(__name__)


class LeadStore(Protocol):
    """Storage collaborator consumed by the matching service."""

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]: ...

    def list_active_salespeople(self) -> List[Salesperson]: ...

    def count_open_leads(self, salesperson_id: str) -> int: ...

    def count_leads_received_and_converted(self, salesperson_id: str, since: datetime) -> Tuple[int, int]: ...


def month_start(now: datetime) -> datetime:
    """First calendar day of `now`'s month at midnight."""
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class MatchingService:
    """
    Recommend salespeople for a vehicle and decide on auto-assignment.

    Workload and performance are read fresh on every call; nothing is cached
    between calls. The service never writes: on a positive decision the caller
    performs the assignment.
    """

    def __init__(
        self,
        store: LeadStore,
        engine: Optional[MatchingEngine] = None,
        clock: Callable[[], datetime] = datetime.now,
        default_limit: int = DEFAULT_TOP_N
    ):
        self.store = store
        self.engine = engine or MatchingEngine()
        self.clock = clock
        self.default_limit = default_limit

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        """
        Raises:
            VehicleNotFound: If the id does not resolve
        """
        vehicle = self.store.get_vehicle(vehicle_id)
        if vehicle is None:
            raise VehicleNotFound(vehicle_id)
        return vehicle

    def collect_candidates(self) -> List[Candidate]:
        """Snapshot workload and month-to-date performance for every active salesperson."""
        since = month_start(self.clock())
        candidates = []

        for salesperson in self.store.list_active_salespeople():
            open_leads = self.store.count_open_leads(salesperson.id)
            received, converted = self.store.count_leads_received_and_converted(salesperson.id, since)
            candidates.append(Candidate(
                salesperson=salesperson,
                workload=WorkloadSnapshot(open_leads=open_leads),
                performance=PerformanceSnapshot(received=received, converted=converted)
            ))

        return candidates

    def score_vehicle(self, vehicle_id: str) -> List[ScoredCandidate]:
        """Ranked candidates for a vehicle, highest score first."""
        vehicle = self.get_vehicle(vehicle_id)
        return self.engine.score(vehicle, self.collect_candidates())

    def get_top_recommendations(self, vehicle_id: str, limit: Optional[int] = None) -> List[ScoredCandidate]:
        """
        Top `limit` salespeople for a vehicle (the service default when None).

        Returns an empty list when nobody is eligible.

        Raises:
            VehicleNotFound: If the id does not resolve
            ValueError: If limit is negative
        """
        if limit is None:
            limit = self.default_limit
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        return self.engine.top(self.score_vehicle(vehicle_id), limit)

    def should_auto_assign(self, vehicle_id: str) -> AssignmentDecision:
        """
        Decide whether a lead for this vehicle can be assigned without review.

        Raises:
            VehicleNotFound: If the id does not resolve
        """
        decision = self.engine.decide(self.score_vehicle(vehicle_id))
        logger.info(
            f"Auto-assign decision for vehicle {vehicle_id}: "
            f"{decision.should_auto_assign} (salesperson={decision.salesperson_id}, score={decision.score})"
        )
        return decision


def build_service(store: Optional[LeadStore] = None) -> MatchingService:
    """Create a service wired to the configured DuckDB store and engine settings."""
    from src.config import settings
    from src.storage.repository import DuckDBLeadStore

    engine = MatchingEngine(
        config=settings.matching_config(),
        max_workers=settings.match_max_workers,
        parallel_min_candidates=settings.match_parallel_min_candidates
    )
    return MatchingService(
        store or DuckDBLeadStore(),
        engine=engine,
        default_limit=settings.match_default_limit
    )
