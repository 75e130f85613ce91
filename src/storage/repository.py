"""DuckDB-backed storage for vehicles, salespeople and leads."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

import duckdb
import pandas as pd
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import settings
from src.match.models import (
    AssignmentRules,
    LeadStatus,
    Salesperson,
    TERMINAL_LEAD_STATUSES,
    UserRole,
    UserStatus,
    Vehicle,
)

logger = logging.getLogger(__name__)

_TERMINAL = sorted(status.value for status in TERMINAL_LEAD_STATUSES)
_TERMINAL_PLACEHOLDERS = ",".join(["?" for _ in _TERMINAL])


def _rules_to_json(rules: Optional[AssignmentRules]) -> Optional[str]:
    if rules is None:
        return None
    return json.dumps({
        "min_value": str(rules.min_value) if rules.min_value is not None else None,
        "max_value": str(rules.max_value) if rules.max_value is not None else None,
        "allowed_categories": sorted(c.value for c in rules.allowed_categories),
    })


def _rules_from_json(raw: Optional[str]) -> Optional[AssignmentRules]:
    if not raw:
        return None
    return AssignmentRules.model_validate(json.loads(raw))


class DuckDBLeadStore:
    """
    Storage collaborator for the matching service.

    Opens a short-lived connection per call so the file is not held open between
    scoring passes. Connections are retried when the database file is locked.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None, retry_attempts: Optional[int] = None):
        self.db_path = str(db_path or settings.duckdb_path)
        self.retry_attempts = retry_attempts or settings.db_retry_attempts
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> duckdb.DuckDBPyConnection:
        connect = retry(
            retry=retry_if_exception_type(duckdb.IOException),
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True
        )(duckdb.connect)
        return connect(self.db_path)

    def init_schema(self):
        """Initialize DuckDB schema idempotently."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id VARCHAR PRIMARY KEY,
                    name VARCHAR,
                    email VARCHAR,
                    role VARCHAR,
                    status VARCHAR,
                    level VARCHAR,
                    specialties VARCHAR[],
                    max_lead_capacity INTEGER,
                    assignment_rules VARCHAR
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS vehicles (
                    id VARCHAR PRIMARY KEY,
                    make VARCHAR,
                    model VARCHAR,
                    year INTEGER,
                    category VARCHAR,
                    sale_price DECIMAL(14, 2)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS leads (
                    id VARCHAR PRIMARY KEY,
                    customer_name VARCHAR,
                    email VARCHAR,
                    phone VARCHAR,
                    vehicle_id VARCHAR,
                    salesperson_id VARCHAR,
                    status VARCHAR,
                    source VARCHAR,
                    created_at TIMESTAMP,
                    updated_at TIMESTAMP
                )
            """)

        logger.info(f"DuckDB schema initialized at {self.db_path}")

    # Reads used by the matching service

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        """Return the vehicle, or None if the id does not resolve."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, category, sale_price, make, model, year FROM vehicles WHERE id = ?",
                [vehicle_id]
            ).fetchone()

        if row is None:
            return None
        return Vehicle(
            id=row[0],
            category=row[1],
            sale_price=row[2],
            make=row[3] or "",
            model=row[4] or "",
            year=row[5]
        )

    def list_active_salespeople(self) -> List[Salesperson]:
        """Active users with the salesperson role, ordered by id."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, name, level, specialties, max_lead_capacity, assignment_rules, status
                FROM users
                WHERE role = ? AND status = ?
                ORDER BY id
                """,
                [UserRole.SALESPERSON.value, UserStatus.ACTIVE.value]
            ).fetchall()

        return [
            Salesperson(
                id=row[0],
                name=row[1] or "",
                level=row[2],
                specialties=row[3],
                max_lead_capacity=row[4],
                assignment_rules=_rules_from_json(row[5]),
                status=row[6]
            )
            for row in rows
        ]

    def count_open_leads(self, salesperson_id: str) -> int:
        """Leads held by the salesperson that are not converted, lost or archived."""
        with self._connect() as conn:
            result = conn.execute(
                f"""
                SELECT COUNT(*) FROM leads
                WHERE salesperson_id = ? AND status NOT IN ({_TERMINAL_PLACEHOLDERS})
                """,
                [salesperson_id, *_TERMINAL]
            ).fetchone()
        return int(result[0]) if result else 0

    def count_leads_received_and_converted(self, salesperson_id: str, since: datetime) -> Tuple[int, int]:
        """
        Leads received and converted by a salesperson since a date.

        Args:
            salesperson_id: Salesperson ID
            since: Window start (inclusive)

        Returns:
            Tuple of (received, converted). Received counts leads created in the
            window; converted counts leads marked CONVERTED with their last update
            in the window.
        """
        with self._connect() as conn:
            result = conn.execute(
                """
                SELECT
                    COUNT(*) FILTER (WHERE created_at >= ?) AS received,
                    COUNT(*) FILTER (WHERE status = ? AND updated_at >= ?) AS converted
                FROM leads
                WHERE salesperson_id = ?
                """,
                [since, LeadStatus.CONVERTED.value, since, salesperson_id]
            ).fetchone()

        if not result:
            return 0, 0
        return int(result[0] or 0), int(result[1] or 0)

    # Writes used by callers, never by the engine

    def upsert_vehicle(self, vehicle: Vehicle):
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO vehicles (id, make, model, year, category, sale_price)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [vehicle.id, vehicle.make, vehicle.model, vehicle.year,
                 vehicle.category.value, vehicle.sale_price]
            )

    def upsert_salesperson(
        self,
        salesperson: Salesperson,
        email: str = "",
        role: UserRole = UserRole.SALESPERSON
    ):
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO users
                (id, name, email, role, status, level, specialties, max_lead_capacity, assignment_rules)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    salesperson.id,
                    salesperson.name,
                    email,
                    role.value,
                    salesperson.status.value,
                    salesperson.level.value,
                    sorted(c.value for c in salesperson.specialties) or None,
                    salesperson.max_lead_capacity,
                    _rules_to_json(salesperson.assignment_rules),
                ]
            )

    def insert_lead(
        self,
        lead_id: str,
        vehicle_id: str,
        salesperson_id: Optional[str] = None,
        status: LeadStatus = LeadStatus.NEW,
        customer_name: str = "",
        email: str = "",
        phone: str = "",
        source: str = "website",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        created_at = created_at or datetime.now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO leads
                (id, customer_name, email, phone, vehicle_id, salesperson_id, status, source, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [lead_id, customer_name, email, phone, vehicle_id, salesperson_id,
                 status.value, source, created_at, updated_at or created_at]
            )

    def unassigned_leads(self, limit: Optional[int] = None) -> pd.DataFrame:
        """
        Open leads with no salesperson, oldest first.

        Args:
            limit: Maximum rows to return; None for all, 0 for none

        Raises:
            ValueError: If limit is negative
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        limit_clause = f"LIMIT {int(limit)}" if limit is not None else ""
        with self._connect() as conn:
            df = conn.execute(
                f"""
                SELECT id, vehicle_id, customer_name, status, created_at
                FROM leads
                WHERE salesperson_id IS NULL AND status NOT IN ({_TERMINAL_PLACEHOLDERS})
                ORDER BY created_at, id
                {limit_clause}
                """,
                _TERMINAL
            ).df()
        return df

    def assign_lead(self, lead_id: str, salesperson_id: str) -> bool:
        """
        Assign a lead to a salesperson.

        Returns:
            True if the lead existed and was still unassigned
        """
        with self._connect() as conn:
            result = conn.execute(
                """
                UPDATE leads
                SET salesperson_id = ?, updated_at = ?
                WHERE id = ? AND salesperson_id IS NULL
                RETURNING id
                """,
                [salesperson_id, datetime.now(), lead_id]
            ).fetchall()

        assigned = len(result) > 0
        if assigned:
            logger.info(f"Assigned lead {lead_id} to salesperson {salesperson_id}")
        else:
            logger.warning(f"Lead {lead_id} not assigned: missing or already assigned")
        return assigned
