"""
PurgeService 단위 테스트
"""

import uuid

import pytest
from sqlalchemy import select, func

from canvas_spaces.db.models import (
    Canvas,
    ChatMessage,
    ChatMessageFeedback,
    Lead,
    PublishLink,
    Space,
    SpaceCanvas,
    UpsertHistory,
)
from canvas_spaces.repositories.space import SpaceRepository
from canvas_spaces.services.membership_manager import MembershipManager
from canvas_spaces.services.purge_service import PurgeService


async def count(db_session, model, *conditions):
    return await db_session.scalar(select(func.count()).select_from(model).where(*conditions))


@pytest.fixture
def purge_service(db_session) -> PurgeService:
    return PurgeService(db_session)


@pytest.mark.unit
@pytest.mark.db
class TestPurgeService:
    """PurgeService 테스트 클래스"""

    async def test_purge_single_space_removes_orphans(self, purge_service, demo_space, owner_id, db_session):
        # Given
        space_id = uuid.UUID(demo_space["id"])
        canvas_id = uuid.UUID(demo_space["defaultCanvas"]["id"])
        db_session.add_all([
            ChatMessage(canvas_id=canvas_id, role="userMessage", content="hi"),
            ChatMessageFeedback(canvas_id=canvas_id, message_id=uuid.uuid4(), rating="THUMBS_UP"),
            UpsertHistory(canvas_id=canvas_id, result={"ok": True}),
            Lead(canvas_id=canvas_id, email="lead@example.com"),
            PublishLink(base_slug="demo", version_group_id=uuid.UUID(demo_space["defaultCanvas"]["versionGroupId"]),
                        target_canvas_id=canvas_id),
        ])
        await db_session.flush()

        # When
        result = await purge_service.purge_spaces(owner_id, [space_id])

        # Then
        assert result.deleted_space_ids == [space_id]
        assert result.deleted_canvas_ids == [canvas_id]
        assert await count(db_session, Space) == 0
        assert await count(db_session, SpaceCanvas) == 0
        assert await count(db_session, Canvas) == 0
        for model in (ChatMessage, ChatMessageFeedback, UpsertHistory, Lead, PublishLink):
            assert await count(db_session, model) == 0

    async def test_purge_keeps_group_linked_from_other_space(
        self, purge_service, spaces_service, demo_space, owner_id, invariants, db_session
    ):
        """다른 스페이스가 참조하는 그룹은 모든 버전과 함께 유지"""
        # Given
        space_id = uuid.UUID(demo_space["id"])
        other = await spaces_service.create_space(owner_id, name="Other")
        other_id = uuid.UUID(other["id"])
        spaces = SpaceRepository(db_session)
        membership = MembershipManager(db_session)
        demo = await spaces.get_owned(owner_id, space_id)
        other_space = await spaces.get_owned(owner_id, other_id)

        shared, _ = await membership.create_canvas_in_space(demo, "Shared")
        await membership.attach_canvas_to_space(other_space, shared)
        await spaces_service.create_canvas_version(owner_id, space_id, shared.id, label="snapshot")

        # When
        result = await purge_service.purge_spaces(owner_id, [space_id])

        # Then
        assert result.deleted_space_ids == [space_id]
        assert result.deleted_canvas_ids == [uuid.UUID(demo_space["defaultCanvas"]["id"])]
        assert await count(db_session, Canvas, Canvas.version_group_id == shared.version_group_id) == 2
        links = await count(db_session, SpaceCanvas, SpaceCanvas.space_id == other_id)
        assert links == 2
        await invariants.assert_invariants(db_session, [other_id])

    async def test_purge_is_owner_scoped(self, purge_service, spaces_service, demo_space, db_session):
        """다른 소유자의 스페이스 id 는 무시"""
        stranger = uuid.uuid4()
        foreign = await spaces_service.create_space(stranger, name="Foreign")

        result = await purge_service.purge_spaces(stranger, [uuid.UUID(demo_space["id"])])

        assert result.deleted_space_ids == []
        assert await count(db_session, Space) == 2
        assert foreign["id"]

    async def test_purge_all_spaces_of_owner(self, purge_service, spaces_service, demo_space, owner_id, db_session):
        await spaces_service.create_space(owner_id, name="Second")
        keeper = await spaces_service.create_space(uuid.uuid4(), name="Someone else")

        result = await purge_service.purge_spaces(owner_id)

        assert len(result.deleted_space_ids) == 2
        assert len(result.deleted_canvas_ids) == 2
        remaining = await db_session.execute(select(Space.id))
        assert remaining.scalars().all() == [uuid.UUID(keeper["id"])]

    async def test_purge_empty_selection(self, purge_service, owner_id):
        result = await purge_service.purge_spaces(owner_id, [])

        assert result.deleted_space_ids == []
        assert result.deleted_canvas_ids == []
