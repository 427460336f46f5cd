"""Strategic planning services: rocks, KPIs, critical numbers, huddles and the OPSP."""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import (
    critical_number_from_record,
    encode,
    huddle_from_record,
    kpi_from_record,
    rock_from_record,
    strategic_plan_from_record,
)
from propcommand.domain import metrics
from propcommand.domain.entities import (
    KPI,
    CriticalNumber,
    HistoryPoint,
    Huddle,
    Rock,
    Status,
    StrategicPlan,
    Trend,
)
from propcommand.domain.errors import ValidationError
from propcommand.domain.records import apply_changes, require_record
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)

PLAN_LIST_FIELDS = ("core_values", "annual_initiatives", "quarterly_objectives")


def _check_progress(progress: int) -> None:
    if not 0 <= progress <= 100:
        raise ValidationError(f"Progress must be between 0 and 100, got {progress}")


class RockService:
    """Service for quarterly rocks."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.rocks = RecordCollection(store, keys.ROCKS, rock_from_record)

    def create_rock(
        self,
        title: str,
        owner: str,
        due_date: date,
        status: Status = Status.GREEN,
        progress: int = 0,
        description: str = "",
        quarter: str = "",
        category: str = "",
    ) -> Rock:
        """Create a rock.

        Raises:
            ValidationError: If the title is empty or progress is outside 0-100
        """
        if not title.strip():
            raise ValidationError("Rock title is required")
        _check_progress(progress)
        rock = Rock(
            id=self.id_factory("rock"),
            title=title.strip(),
            owner=owner,
            due_date=due_date,
            status=Status(status),
            progress=progress,
            created_at=self.clock(),
            description=description,
            quarter=quarter,
            category=category,
        )
        rock = self._mark_completed(rock)
        self.rocks.add(rock)
        return rock

    def get_rock(self, rock_id: str) -> Optional[Rock]:
        return self.rocks.get(rock_id)

    def list_rocks(self, quarter: Optional[str] = None) -> list[Rock]:
        """List rocks by due date, optionally for one quarter."""
        rocks = self.rocks.load()
        if quarter is not None:
            rocks = [r for r in rocks if r.quarter == quarter]
        return sorted(rocks, key=lambda r: r.due_date)

    def _mark_completed(self, rock: Rock) -> Rock:
        # Completion time is stamped once, when an on-track rock reaches 100%.
        if rock.progress == 100 and rock.status == Status.GREEN and rock.completed_at is None:
            return replace(rock, completed_at=self.clock())
        return rock

    def update_rock(self, rock_id: str, **changes) -> Rock:
        """Update a rock. Status is set by the owner, never derived.

        Raises:
            NotFoundError: If the rock does not exist
            ValidationError: If progress is outside 0-100
        """
        if changes.get("status") is not None:
            changes["status"] = Status(changes["status"])
        with self.store.write_lock:
            rock = require_record(self.rocks, "Rock", rock_id)
            updated = apply_changes(rock, changes, ("id", "created_at", "completed_at"))
            _check_progress(updated.progress)
            updated = self._mark_completed(updated)
            self.rocks.replace(updated)
        return updated

    def delete_rock(self, rock_id: str) -> None:
        require_record(self.rocks, "Rock", rock_id)
        self.rocks.remove(rock_id)


class KPIService:
    """Service for KPIs. Status and trend are always derived."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.kpis = RecordCollection(store, keys.KPIS, kpi_from_record)

    def create_kpi(
        self,
        name: str,
        current_value: Decimal,
        target_value: Decimal,
        unit: str = "",
        higher_is_better: bool = True,
        frequency: str = "monthly",
        description: str = "",
    ) -> KPI:
        if not name.strip():
            raise ValidationError("KPI name is required")
        current_value = Decimal(str(current_value))
        target_value = Decimal(str(target_value))
        now = self.clock()
        kpi = KPI(
            id=self.id_factory("kpi"),
            name=name.strip(),
            current_value=current_value,
            target_value=target_value,
            unit=unit,
            status=metrics.kpi_status(current_value, target_value, higher_is_better),
            trend=Trend.STABLE,
            last_updated=now,
            description=description,
            frequency=frequency,
            higher_is_better=higher_is_better,
            history=(HistoryPoint(date=now.date(), value=current_value),),
        )
        self.kpis.add(kpi)
        return kpi

    def get_kpi(self, kpi_id: str) -> Optional[KPI]:
        return self.kpis.get(kpi_id)

    def require_kpi(self, kpi_id: str) -> KPI:
        return require_record(self.kpis, "KPI", kpi_id)

    def list_kpis(self) -> list[KPI]:
        return sorted(self.kpis.load(), key=lambda k: k.name.lower())

    def update_value(self, kpi_id: str, value: Decimal) -> KPI:
        """Record a new value.

        Appends to history and recomputes status and trend in the same write.

        Raises:
            NotFoundError: If the KPI does not exist
        """
        value = Decimal(str(value))
        with self.store.write_lock:
            kpi = self.require_kpi(kpi_id)
            now = self.clock()
            history = kpi.history + (HistoryPoint(date=now.date(), value=value),)
            updated = replace(
                kpi,
                current_value=value,
                status=metrics.kpi_status(value, kpi.target_value, kpi.higher_is_better),
                trend=metrics.trend(history),
                history=history,
                last_updated=now,
            )
            self.kpis.replace(updated)
        logger.info("Updated KPI %s to %s (%s)", kpi.name, value, updated.status.value)
        return updated

    def update_kpi(self, kpi_id: str, **changes) -> KPI:
        """Update descriptive fields or the target. Use update_value for new readings.

        Raises:
            NotFoundError: If the KPI does not exist
            ValidationError: On a derived or unknown field
        """
        if changes.get("target_value") is not None:
            changes["target_value"] = Decimal(str(changes["target_value"]))
        with self.store.write_lock:
            kpi = self.require_kpi(kpi_id)
            updated = apply_changes(
                kpi,
                {**changes, "last_updated": self.clock()},
                ("id", "current_value", "status", "trend", "history"),
            )
            updated = replace(
                updated,
                status=metrics.kpi_status(
                    updated.current_value, updated.target_value, updated.higher_is_better
                ),
            )
            self.kpis.replace(updated)
        return updated

    def delete_kpi(self, kpi_id: str) -> None:
        self.require_kpi(kpi_id)
        self.kpis.remove(kpi_id)


class CriticalNumberService:
    """Service for critical numbers and their append-only history."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.numbers = RecordCollection(store, keys.CRITICAL_NUMBERS, critical_number_from_record)

    def create_critical_number(
        self,
        name: str,
        current_value: Decimal,
        target_value: Decimal,
        unit: str = "",
        higher_is_better: bool = True,
        category: str = "Financial",
        description: str = "",
    ) -> CriticalNumber:
        if not name.strip():
            raise ValidationError("Critical number name is required")
        current_value = Decimal(str(current_value))
        target_value = Decimal(str(target_value))
        now = self.clock()
        number = CriticalNumber(
            id=self.id_factory("cn"),
            name=name.strip(),
            current_value=current_value,
            target_value=target_value,
            unit=unit,
            status=metrics.kpi_status(current_value, target_value, higher_is_better),
            last_updated=now,
            history=(HistoryPoint(date=now.date(), value=current_value),),
            description=description,
            category=category,
            higher_is_better=higher_is_better,
        )
        self.numbers.add(number)
        return number

    def get_critical_number(self, number_id: str) -> Optional[CriticalNumber]:
        return self.numbers.get(number_id)

    def require_critical_number(self, number_id: str) -> CriticalNumber:
        return require_record(self.numbers, "Critical number", number_id)

    def list_critical_numbers(self) -> list[CriticalNumber]:
        return sorted(self.numbers.load(), key=lambda n: n.name.lower())

    def update_critical_number(self, number_id: str, **changes) -> CriticalNumber:
        """Update descriptive fields or the target. Use update_value for new readings.

        Raises:
            NotFoundError: If the critical number does not exist
            ValidationError: On a derived or unknown field
        """
        if changes.get("target_value") is not None:
            changes["target_value"] = Decimal(str(changes["target_value"]))
        with self.store.write_lock:
            number = self.require_critical_number(number_id)
            updated = apply_changes(
                number,
                {**changes, "last_updated": self.clock()},
                ("id", "current_value", "status", "history"),
            )
            updated = replace(
                updated,
                status=metrics.kpi_status(updated.current_value, updated.target_value, updated.higher_is_better),
            )
            self.numbers.replace(updated)
        return updated

    def update_value(self, number_id: str, value: Decimal) -> CriticalNumber:
        """Set the current value and append a dated history point in one write.

        Raises:
            NotFoundError: If the critical number does not exist
        """
        value = Decimal(str(value))
        with self.store.write_lock:
            number = self.require_critical_number(number_id)
            now = self.clock()
            updated = replace(
                number,
                current_value=value,
                status=metrics.kpi_status(value, number.target_value, number.higher_is_better),
                history=number.history + (HistoryPoint(date=now.date(), value=value),),
                last_updated=now,
            )
            self.numbers.replace(updated)
        logger.info("Updated critical number %s to %s", number.name, value)
        return updated

    def trend(self, number_id: str) -> Trend:
        return metrics.trend(self.require_critical_number(number_id).history)

    def delete_critical_number(self, number_id: str) -> None:
        self.require_critical_number(number_id)
        self.numbers.remove(number_id)


class HuddleService:
    """Service for huddle meeting records."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.huddles = RecordCollection(store, keys.HUDDLES, huddle_from_record)

    def create_huddle(
        self,
        huddle_date: Optional[date] = None,
        huddle_type: str = "daily",
        attendees: Sequence[str] = (),
        wins: Sequence[str] = (),
        stucks: Sequence[str] = (),
        priorities: Sequence[str] = (),
        notes: str = "",
        created_by: str = "",
    ) -> Huddle:
        now = self.clock()
        huddle = Huddle(
            id=self.id_factory("huddle"),
            date=huddle_date or now.date(),
            huddle_type=huddle_type,
            created_at=now,
            attendees=tuple(attendees),
            wins=tuple(wins),
            stucks=tuple(stucks),
            priorities=tuple(priorities),
            notes=notes,
            created_by=created_by,
        )
        self.huddles.add(huddle)
        return huddle

    def get_huddle(self, huddle_id: str) -> Optional[Huddle]:
        return self.huddles.get(huddle_id)

    def list_huddles(self, huddle_type: Optional[str] = None) -> list[Huddle]:
        """Huddles, most recent first."""
        huddles = self.huddles.load()
        if huddle_type is not None:
            huddles = [h for h in huddles if h.huddle_type == huddle_type]
        return sorted(huddles, key=lambda h: (h.date, h.created_at), reverse=True)

    def delete_huddle(self, huddle_id: str) -> None:
        require_record(self.huddles, "Huddle", huddle_id)
        self.huddles.remove(huddle_id)


class StrategicPlanService:
    """Service for the One Page Strategic Plan, a single record."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def get_plan(self) -> StrategicPlan:
        """The stored plan, or an empty one."""
        record = self.store.get(keys.OPSP)
        if record is None:
            return StrategicPlan()
        return strategic_plan_from_record(record)

    def update_plan(self, **changes) -> StrategicPlan:
        """Update plan fields.

        Raises:
            ValidationError: On an unknown field
        """
        for name in PLAN_LIST_FIELDS:
            if changes.get(name) is not None:
                changes[name] = tuple(changes[name])
        with self.store.write_lock:
            plan = apply_changes(self.get_plan(), {**changes, "last_updated": self.clock()}, ())
            self.store.set(keys.OPSP, encode(plan))
        logger.info("Updated strategic plan")
        return plan
