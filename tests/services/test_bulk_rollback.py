"""Tests for BulkRollbackService."""

import uuid

import pytest
from sqlalchemy import delete, select, update

from labadmin.core.exceptions import (
    AlreadyRolledBackError,
    NotRollbackableError,
    OperationNotFoundError,
)
from labadmin.models import BulkOperationLog, Student
from labadmin.schemas.bulk_operation import BulkOperationRequest
from labadmin.services.bulk_operations import BulkOperationService
from labadmin.services.bulk_rollback import BulkRollbackService

COHORT_A = "0b6c5d2e-1f3a-4c7d-9e8f-112233445566"
COHORT_C = "c0c0c0c0-1111-4222-8333-444455556666"


def make_request(operation: str, filters: list, parameters: dict) -> BulkOperationRequest:
    return BulkOperationRequest.model_validate(
        {
            "operation": operation,
            "target_table": "students",
            "filters": filters,
            "parameters": parameters,
        }
    )


async def load_students(db) -> dict[str, Student]:
    result = await db.execute(select(Student).execution_options(populate_existing=True))
    return {s.first_name: s for s in result.scalars().all()}


@pytest.fixture
def executor() -> BulkOperationService:
    return BulkOperationService()


@pytest.fixture
def rollback_service() -> BulkRollbackService:
    return BulkRollbackService()


class TestRollback:
    """Test rollback of update_status and assign_cohort."""

    @pytest.mark.asyncio
    async def test_status_update_round_trip(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        withdrawn = [{"field": "status", "operator": "equals", "value": "withdrawn"}]
        preview = await executor.execute(
            db_session,
            BulkOperationRequest.model_validate(
                {
                    "operation": "update_status",
                    "target_table": "students",
                    "filters": withdrawn,
                    "parameters": {"new_status": "inactive"},
                    "dry_run": True,
                }
            ),
            admin_actor,
        )
        executed = await executor.execute(
            db_session,
            make_request("update_status", withdrawn, {"new_status": "inactive"}),
            admin_actor,
        )
        assert preview.total_matching == executed.affected_count == 3

        result = await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

        assert result.restored_count == 3
        current = await load_students(db_session)
        assert sorted(n for n, s in current.items() if s.status == "withdrawn") == [
            "Ana",
            "Ben",
            "Cara",
        ]

        log = await db_session.get(BulkOperationLog, executed.operation_id)
        assert log.status == "rolled_back"
        assert log.rolled_back_by == admin_actor.email
        assert log.rolled_back_at is not None

    @pytest.mark.asyncio
    async def test_second_rollback_fails(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        executed = await executor.execute(
            db_session,
            make_request(
                "update_status",
                [{"field": "status", "operator": "equals", "value": "active"}],
                {"new_status": "on_leave"},
            ),
            admin_actor,
        )
        await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

        with pytest.raises(AlreadyRolledBackError):
            await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

    @pytest.mark.asyncio
    async def test_assign_cohort_restores_missing_cohort(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        executed = await executor.execute(
            db_session,
            make_request("assign_cohort", [], {"cohort_id": COHORT_C}),
            admin_actor,
        )
        assert executed.affected_count == len(students)

        await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

        current = await load_students(db_session)
        assert current["Fay"].cohort_id is None
        assert current["Ana"].cohort_id == COHORT_A
        assert COHORT_C not in {s.cohort_id for s in current.values()}

    @pytest.mark.asyncio
    async def test_rows_deleted_since_are_not_counted(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        executed = await executor.execute(
            db_session,
            make_request(
                "update_status",
                [{"field": "status", "operator": "equals", "value": "withdrawn"}],
                {"new_status": "inactive"},
            ),
            admin_actor,
        )
        await db_session.execute(delete(Student).where(Student.first_name == "Ben"))

        result = await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

        assert result.restored_count == 2


class TestRollbackRefused:
    @pytest.mark.asyncio
    async def test_delete_is_never_rollbackable(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        executed = await executor.execute(
            db_session,
            make_request(
                "delete_records",
                [{"field": "status", "operator": "equals", "value": "graduated"}],
                {"confirmed": True},
            ),
            admin_actor,
        )

        with pytest.raises(NotRollbackableError):
            await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

    @pytest.mark.asyncio
    async def test_export_is_not_rollbackable(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        exported = await executor.execute(
            db_session, make_request("export_records", [], {}), admin_actor
        )

        with pytest.raises(NotRollbackableError):
            await rollback_service.rollback(db_session, exported.operation_id, admin_actor)

    @pytest.mark.asyncio
    async def test_unknown_operation(self, db_session, rollback_service, admin_actor):
        with pytest.raises(OperationNotFoundError):
            await rollback_service.rollback(db_session, str(uuid.uuid4()), admin_actor)

    @pytest.mark.asyncio
    async def test_malformed_operation_id(self, db_session, rollback_service, admin_actor):
        with pytest.raises(OperationNotFoundError):
            await rollback_service.rollback(db_session, "not-an-id", admin_actor)

    @pytest.mark.asyncio
    async def test_failed_operation(self, db_session, rollback_service, admin_actor):
        log = BulkOperationLog(
            operation_type="update_status",
            target_table="students",
            status="failed",
            performed_by=admin_actor.email,
        )
        log.set_before_state([{"id": str(uuid.uuid4()), "status": "active"}])
        db_session.add(log)
        await db_session.flush()

        with pytest.raises(NotRollbackableError):
            await rollback_service.rollback(db_session, log.id, admin_actor)

    @pytest.mark.asyncio
    async def test_missing_snapshot(self, db_session, rollback_service, admin_actor):
        log = BulkOperationLog(
            operation_type="assign_cohort",
            target_table="students",
            status="completed",
            performed_by=admin_actor.email,
        )
        db_session.add(log)
        await db_session.flush()

        with pytest.raises(NotRollbackableError):
            await rollback_service.rollback(db_session, log.id, admin_actor)

    @pytest.mark.asyncio
    async def test_concurrent_claim_loses(
        self, db_session, executor, rollback_service, admin_actor, students
    ):
        executed = await executor.execute(
            db_session,
            make_request(
                "update_status",
                [{"field": "status", "operator": "equals", "value": "withdrawn"}],
                {"new_status": "inactive"},
            ),
            admin_actor,
        )
        # Another request claims the entry behind this session's back
        await db_session.execute(
            update(BulkOperationLog)
            .where(BulkOperationLog.id == executed.operation_id)
            .values(status="rolled_back")
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(AlreadyRolledBackError):
            await rollback_service.rollback(db_session, executed.operation_id, admin_actor)

        current = await load_students(db_session)
        assert {current[name].status for name in ("Ana", "Ben", "Cara")} == {"inactive"}
