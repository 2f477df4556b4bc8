import uuid

from voltbuild.common.cache import QueryCache


def test_set_get_and_invalidate():
    cache = QueryCache()
    pid = uuid.uuid4()
    cache.set("phases", pid, {"total": 0})

    assert cache.get("phases", str(pid)) == {"total": 0}
    assert cache.get("tasks", pid) is None

    cache.invalidate("phases", pid)
    assert cache.get("phases", pid) is None
    assert cache.hits == 1
    assert cache.misses == 2


def test_invalidate_project_drops_both_lists():
    cache = QueryCache()
    pid, other = uuid.uuid4(), uuid.uuid4()
    cache.set("phases", pid, [])
    cache.set("tasks", pid, [])
    cache.set("tasks", other, [])

    cache.invalidate_project(pid)
    assert len(cache) == 1
    assert cache.get("tasks", other) == []


def test_expired_entries_are_dropped(monkeypatch):
    cache = QueryCache(ttl_seconds=10)
    clock = [100.0]
    monkeypatch.setattr("voltbuild.common.cache.time.monotonic", lambda: clock[0])

    cache.set("tasks", "p1", ["a"])
    clock[0] = 105.0
    assert cache.get("tasks", "p1") == ["a"]
    clock[0] = 111.0
    assert cache.get("tasks", "p1") is None
    assert len(cache) == 0


async def test_pending_keys_drop_when_transaction_ends(db_session):
    cache = QueryCache()
    cache.invalidate("tasks", "p1", db_session)
    cache.set("tasks", "p1", ["refilled mid-write"])

    await db_session.rollback()
    assert cache.get("tasks", "p1") is None


async def test_list_cached_before_commit_is_dropped_on_commit(tmp_path):
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from voltbuild.api.v1.tasks import list_tasks
    from voltbuild.common.cache import query_cache
    from voltbuild.common.enums import TaskStatus, UserRole
    from voltbuild.core.progress.service import ProgressService
    from voltbuild.db.base import Base
    from voltbuild.db.models.phase import Phase
    from voltbuild.db.models.project import Project
    from voltbuild.db.models.task import Task
    from voltbuild.db.models.user import User

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'voltbuild.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    user = User(
        id=uuid.uuid4(), email="pm@voltbuild.io", hashed_password="x",
        full_name="Site PM", role=UserRole.OWNER.value,
    )
    project = Project(id=uuid.uuid4(), owner_id=user.id, name="Drumheller 30 MW")
    phase = Phase(id=uuid.uuid4(), project_id=project.id, name="Civil", order_index=0)
    task = Task(id=uuid.uuid4(), phase_id=phase.id, name="Pour pads", depends_on=[])

    async def read_tasks():
        async with factory() as reader:
            listing = await list_tasks(
                project.id, phase_id=None, status=None, current_user=user, db=reader
            )
        return [t["status"] for t in listing["tasks"]]

    try:
        async with factory() as setup:
            setup.add(user)
            await setup.flush()
            setup.add(project)
            await setup.flush()
            setup.add(phase)
            await setup.flush()
            setup.add(task)
            await setup.commit()

        async with factory() as writer:
            row = await writer.get(Task, task.id)
            row.status = TaskStatus.COMPLETE.value
            await writer.flush()
            await ProgressService().recalculate_phase(phase.id, writer)

            # Another request sees only committed rows and caches them
            assert await read_tasks() == ["not_started"]
            assert query_cache.get("tasks", project.id) is not None

            await writer.commit()

        assert query_cache.get("tasks", project.id) is None
        assert await read_tasks() == ["complete"]
    finally:
        await engine.dispose()
