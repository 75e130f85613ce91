"""Shared fixtures for matching tests."""
from datetime import datetime
from decimal import Decimal

import pytest

from src.match.models import (
    AssignmentRules,
    Candidate,
    Category,
    Level,
    PerformanceSnapshot,
    Salesperson,
    Vehicle,
    WorkloadSnapshot,
)
from src.storage.repository import DuckDBLeadStore


def make_salesperson(
    id="S1",
    level=Level.SENIOR,
    specialties=(Category.SUV,),
    capacity=10,
    rules=None,
    **kwargs
) -> Salesperson:
    return Salesperson(
        id=id,
        name=kwargs.pop("name", f"Salesperson {id}"),
        level=level,
        specialties=frozenset(specialties) if specialties is not None else None,
        max_lead_capacity=capacity,
        assignment_rules=rules,
        **kwargs
    )


def make_candidate(salesperson=None, open_leads=0, received=0, converted=0, **kwargs) -> Candidate:
    return Candidate(
        salesperson=salesperson or make_salesperson(**kwargs),
        workload=WorkloadSnapshot(open_leads=open_leads),
        performance=PerformanceSnapshot(received=received, converted=converted)
    )


def make_vehicle(id="V1", category=Category.SUV, price="120000") -> Vehicle:
    return Vehicle(id=id, category=category, sale_price=Decimal(price), make="Jeep", model="Compass", year=2024)


def make_rules(min_value=None, max_value=None, allowed=()) -> AssignmentRules:
    return AssignmentRules(
        min_value=Decimal(min_value) if min_value is not None else None,
        max_value=Decimal(max_value) if max_value is not None else None,
        allowed_categories=frozenset(allowed)
    )


@pytest.fixture
def suv_120k() -> Vehicle:
    """Scenario vehicle: SUV priced at 120,000."""
    return make_vehicle()


@pytest.fixture
def store(tmp_path) -> DuckDBLeadStore:
    """Empty DuckDB store with schema, in a temporary directory."""
    lead_store = DuckDBLeadStore(tmp_path / "test.duckdb", retry_attempts=1)
    lead_store.init_schema()
    return lead_store


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 17, 15, 30)
