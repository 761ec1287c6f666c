"""
MembershipManager 단위 테스트
"""

import uuid

import pytest
from sqlalchemy import select, func

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from canvas_spaces.db.models import Canvas, ChatMessage, Lead, PublishLink, SpaceCanvas
from canvas_spaces.repositories.space import SpaceRepository
from canvas_spaces.services.membership_manager import MembershipManager
from canvas_spaces.services.version_manager import VersionManager


@pytest.fixture
def membership(db_session) -> MembershipManager:
    return MembershipManager(db_session)


@pytest.fixture
async def space(db_session, demo_space, owner_id):
    return await SpaceRepository(db_session).get_owned(owner_id, uuid.UUID(demo_space["id"]))


async def add_canvases(membership, space, *names):
    created = []
    for name in names:
        canvas, _ = await membership.create_canvas_in_space(space, name)
        created.append(canvas)
    return created


async def group_order(db_session, space_id):
    result = await db_session.execute(
        select(SpaceCanvas.version_group_id)
        .where(SpaceCanvas.space_id == space_id)
        .order_by(SpaceCanvas.sort_order)
    )
    return list(result.scalars().all())


@pytest.mark.unit
@pytest.mark.db
class TestMembershipManager:
    """MembershipManager 테스트 클래스"""

    async def test_create_canvas_in_space_appends(self, membership, space, invariants, db_session):
        canvas, link = await membership.create_canvas_in_space(space, "Second", '{"nodes": []}')

        assert canvas.version_index == 1
        assert canvas.version_label == "v1"
        assert canvas.is_active is True
        assert canvas.flow_data == '{"nodes": []}'
        assert link.sort_order == 2
        assert link.version_group_id == canvas.version_group_id
        await invariants.assert_invariants(db_session, [space.id])

    async def test_attach_is_idempotent(self, membership, space, db_session):
        """같은 (스페이스, 그룹)을 두 번 연결해도 연결 행은 하나"""
        canvas, link = await membership.create_canvas_in_space(space, "Second")

        again = await membership.attach_canvas_to_space(space, canvas)

        assert again.id == link.id
        count = await db_session.scalar(
            select(func.count()).select_from(SpaceCanvas)
            .where(SpaceCanvas.space_id == space.id, SpaceCanvas.version_group_id == canvas.version_group_id)
        )
        assert count == 1

    async def test_attach_existing_group_to_second_space(self, membership, space, spaces_service, owner_id, db_session):
        other = await spaces_service.create_space(owner_id, name="Other")
        other_space = await SpaceRepository(db_session).get_owned(owner_id, uuid.UUID(other["id"]))
        canvas, _ = await membership.create_canvas_in_space(space, "Shared")

        link = await membership.attach_canvas_to_space(other_space, canvas)

        assert link.sort_order == 2
        assert link.canvas_id == canvas.id

    async def test_attach_inactive_version_links_active_version(
        self, membership, space, spaces_service, owner_id, invariants, db_session
    ):
        """비활성 버전으로 연결해도 연결 행은 활성 버전을 가리키고, 그 버전 삭제 후에도 유지"""
        # Given
        other = await spaces_service.create_space(owner_id, name="Other")
        other_space = await SpaceRepository(db_session).get_owned(owner_id, uuid.UUID(other["id"]))
        v1, = await add_canvases(membership, space, "Shared")
        versions = VersionManager(db_session)
        v2 = await versions.create_version(v1, activate=True)

        # When
        link = await membership.attach_canvas_to_space(other_space, v1)

        # Then
        assert link.canvas_id == v2.id
        await invariants.assert_invariants(db_session, [space.id, other_space.id])

        await versions.delete_version(v1.version_group_id, v1.id)

        rows = await db_session.execute(
            select(SpaceCanvas.canvas_id).where(SpaceCanvas.space_id == other_space.id)
        )
        canvas_ids = list(rows.scalars().all())
        assert len(canvas_ids) == 2
        assert v2.id in canvas_ids
        await invariants.assert_invariants(db_session, [space.id, other_space.id])

    async def test_reorder_shift_wider_than_configured(self, membership, space, invariants, db_session, monkeypatch):
        """임시 이동 폭이 캔버스 수보다 작게 설정되어도 재정렬 성공"""
        monkeypatch.setattr(settings, "SORT_ORDER_SHIFT", 1)
        first_group, = await group_order(db_session, space.id)
        second, third = await add_canvases(membership, space, "B", "C")

        await membership.reorder_canvases(space, [
            {"canvas_id": third.id, "sort_order": 1},
            {"canvas_id": first_group, "sort_order": 2},
            {"canvas_id": second.id, "sort_order": 3},
        ])

        assert await group_order(db_session, space.id) == [
            third.version_group_id, first_group, second.version_group_id
        ]
        await invariants.assert_invariants(db_session, [space.id])

    async def test_reorder_swap(self, membership, space, invariants, db_session):
        """A(1), B(2) -> B=1, A=2"""
        first_group, = await group_order(db_session, space.id)
        second, = await add_canvases(membership, space, "B")

        await membership.reorder_canvases(space, [
            {"canvas_id": second.id, "sort_order": 1},
            {"canvas_id": first_group, "sort_order": 2},
        ])

        assert await group_order(db_session, space.id) == [second.version_group_id, first_group]
        await invariants.assert_invariants(db_session, [space.id])

    async def test_reorder_accepts_any_version_id(self, membership, space, db_session):
        """canvasId 로 비활성 버전 id 를 보내도 같은 논리적 캔버스로 해석"""
        first_group, = await group_order(db_session, space.id)
        second, third = await add_canvases(membership, space, "B", "C")
        base = await db_session.get(Canvas, second.id)
        old_version = await VersionManager(db_session).create_version(base, activate=False)

        await membership.reorder_canvases(space, [
            {"canvas_id": third.id, "sort_order": 1},
            {"canvas_id": old_version.id, "sort_order": 2},
            {"canvas_id": first_group, "sort_order": 3},
        ])

        assert await group_order(db_session, space.id) == [
            third.version_group_id, second.version_group_id, first_group
        ]

    async def test_reorder_requires_full_permutation(self, membership, space, invariants, db_session):
        first_group, = await group_order(db_session, space.id)
        second, = await add_canvases(membership, space, "B")

        with pytest.raises(ValidationError):
            await membership.reorder_canvases(space, [{"canvas_id": second.id, "sort_order": 1}])

        with pytest.raises(ValidationError):
            await membership.reorder_canvases(space, [
                {"canvas_id": second.id, "sort_order": 1},
                {"canvas_id": first_group, "sort_order": 3},
            ])

        with pytest.raises(ValidationError):
            await membership.reorder_canvases(space, [
                {"canvas_id": second.id, "sort_order": 1},
                {"canvas_id": second.version_group_id, "sort_order": 2},
            ])

        await invariants.assert_invariants(db_session, [space.id])

    async def test_reorder_rejects_foreign_canvas(self, membership, space, db_session):
        first_group, = await group_order(db_session, space.id)

        with pytest.raises(ValidationError):
            await membership.reorder_canvases(space, [
                {"canvas_id": first_group, "sort_order": 1},
                {"canvas_id": uuid.uuid4(), "sort_order": 2},
            ])

    async def test_delete_last_canvas_rejected(self, membership, space, db_session):
        first_group, = await group_order(db_session, space.id)

        with pytest.raises(ConflictError):
            await membership.delete_canvas_from_space(space, first_group)

    async def test_delete_unknown_group(self, membership, space):
        with pytest.raises(ResourceNotFoundError):
            await membership.delete_canvas_from_space(space, uuid.uuid4())

    async def test_delete_canvas_removes_group_and_renumbers(self, membership, space, invariants, db_session):
        """가운데 캔버스 삭제 후 1..N 재번호, 그룹의 모든 버전과 종속 레코드 삭제"""
        # Given
        first_group, = await group_order(db_session, space.id)
        second, third = await add_canvases(membership, space, "B", "C")
        extra = await VersionManager(db_session).create_version(second, activate=False)
        db_session.add_all([
            ChatMessage(canvas_id=second.id, role="userMessage", content="hello"),
            Lead(canvas_id=extra.id, name="lead"),
            PublishLink(base_slug="b-link", version_group_id=second.version_group_id, target_canvas_id=second.id),
        ])
        await db_session.flush()

        # When
        deleted = await membership.delete_canvas_from_space(space, second.version_group_id)

        # Then
        assert set(deleted) == {second.id, extra.id}
        assert await group_order(db_session, space.id) == [first_group, third.version_group_id]
        await invariants.assert_invariants(db_session, [space.id])

        remaining = await db_session.scalar(
            select(func.count()).select_from(Canvas).where(Canvas.version_group_id == second.version_group_id)
        )
        assert remaining == 0
        assert await db_session.scalar(select(func.count()).select_from(ChatMessage)) == 0
        assert await db_session.scalar(select(func.count()).select_from(Lead)) == 0
        assert await db_session.scalar(select(func.count()).select_from(PublishLink)) == 0

    async def test_delete_canvas_shared_with_other_space_keeps_versions(
        self, membership, space, spaces_service, owner_id, invariants, db_session
    ):
        # Given
        other = await spaces_service.create_space(owner_id, name="Other")
        other_space = await SpaceRepository(db_session).get_owned(owner_id, uuid.UUID(other["id"]))
        shared, = await add_canvases(membership, space, "Shared")
        await membership.attach_canvas_to_space(other_space, shared)

        # When
        deleted = await membership.delete_canvas_from_space(space, shared.version_group_id)

        # Then
        assert deleted == []
        assert await db_session.get(Canvas, shared.id) is not None
        assert shared.version_group_id in await group_order(db_session, other_space.id)
        await invariants.assert_invariants(db_session, [space.id, other_space.id])
