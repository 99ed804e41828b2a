import uuid

import pytest

from app.api.v1.year_transitions.locks import TransitionLockRegistry
from app.core.exceptions import ConflictError


@pytest.mark.asyncio
async def test_second_transition_for_same_school_fails_fast() -> None:
    locks = TransitionLockRegistry()
    school_id = uuid.uuid4()

    async with locks.hold(school_id):
        assert locks.is_locked(school_id)
        with pytest.raises(ConflictError) as exc_info:
            async with locks.hold(school_id):
                pass
        assert exc_info.value.status_code == 409

    assert not locks.is_locked(school_id)


@pytest.mark.asyncio
async def test_different_schools_do_not_block_each_other() -> None:
    locks = TransitionLockRegistry()
    first, second = uuid.uuid4(), uuid.uuid4()

    async with locks.hold(first):
        async with locks.hold(second):
            assert locks.is_locked(first) and locks.is_locked(second)


@pytest.mark.asyncio
async def test_lock_released_when_body_raises() -> None:
    locks = TransitionLockRegistry()
    school_id = uuid.uuid4()

    with pytest.raises(RuntimeError):
        async with locks.hold(school_id):
            raise RuntimeError("boom")

    assert not locks.is_locked(school_id)
