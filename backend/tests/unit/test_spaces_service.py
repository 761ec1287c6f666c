"""
SpacesService (Query Façade) 단위 테스트
"""

import uuid

import pytest

from canvas_spaces.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from canvas_spaces.db.session import transaction
from canvas_spaces.repositories.space import SpaceRepository
from canvas_spaces.services.membership_manager import MembershipManager


def ids(space):
    return uuid.UUID(space["id"]), uuid.UUID(space["defaultCanvas"]["id"])


@pytest.mark.unit
@pytest.mark.db
class TestSpacesService:
    """SpacesService 테스트 클래스"""

    async def test_create_space_with_default_canvas(self, spaces_service, owner_id):
        # When
        space = await spaces_service.create_space(
            owner_id,
            name="  Demo  ",
            description="설명",
            default_canvas_flow_data='{"nodes": []}'
        )

        # Then
        assert space["name"] == "Demo"
        assert space["visibility"] == "private"
        assert space["canvasCount"] == 1
        default = space["defaultCanvas"]
        assert default["name"] == "Main Canvas"
        assert default["sortOrder"] == 1
        assert default["versionLabel"] == "v1"
        assert default["versionIndex"] == 1
        assert default["isActive"] is True
        assert default["flowData"] == '{"nodes": []}'
        assert space["canvases"] == [default]

    @pytest.mark.parametrize("name", ["", "   ", "x" * 201])
    async def test_create_space_invalid_name(self, spaces_service, owner_id, name):
        with pytest.raises(ValidationError):
            await spaces_service.create_space(owner_id, name=name)
        assert await spaces_service.get_spaces(owner_id) == []

    async def test_create_space_description_too_long(self, spaces_service, owner_id):
        with pytest.raises(ValidationError):
            await spaces_service.create_space(owner_id, name="Demo", description="x" * 2001)

    async def test_get_spaces_counts_canvases(self, spaces_service, demo_space, owner_id):
        space_id, _ = ids(demo_space)
        await spaces_service.create_canvas(owner_id, space_id, name="Second")
        await spaces_service.create_space(uuid.uuid4(), name="Not mine")

        spaces = await spaces_service.get_spaces(owner_id)

        assert len(spaces) == 1
        assert spaces[0]["id"] == demo_space["id"]
        assert spaces[0]["canvasCount"] == 2

    async def test_get_space_details_orders_canvases(self, spaces_service, demo_space, owner_id):
        space_id, _ = ids(demo_space)
        second = await spaces_service.create_canvas(owner_id, space_id, name="Second")

        details = await spaces_service.get_space_details(owner_id, space_id)

        assert details["canvasCount"] == 2
        assert [c["id"] for c in details["canvases"]] == [demo_space["defaultCanvas"]["id"], second["id"]]
        assert [c["sortOrder"] for c in details["canvases"]] == [1, 2]

    async def test_get_space_details_other_owner(self, spaces_service, demo_space):
        with pytest.raises(ResourceNotFoundError):
            await spaces_service.get_space_details(uuid.uuid4(), uuid.UUID(demo_space["id"]))

    async def test_update_space(self, spaces_service, demo_space, owner_id):
        space_id, _ = ids(demo_space)

        updated = await spaces_service.update_space(
            owner_id, space_id, name="Renamed", description="", visibility="public"
        )

        assert updated["name"] == "Renamed"
        assert updated["description"] is None
        assert updated["visibility"] == "public"
        assert updated["canvasCount"] == 1

    async def test_update_space_invalid_visibility(self, spaces_service, demo_space, owner_id):
        with pytest.raises(ValidationError):
            await spaces_service.update_space(owner_id, uuid.UUID(demo_space["id"]), visibility="secret")

    async def test_create_canvas_default_name(self, spaces_service, demo_space, owner_id):
        canvas = await spaces_service.create_canvas(owner_id, uuid.UUID(demo_space["id"]))

        assert canvas["name"] == "New Canvas"
        assert canvas["sortOrder"] == 2
        assert canvas["versionGroupId"] != demo_space["defaultCanvas"]["versionGroupId"]

    async def test_update_canvas_fields(self, spaces_service, demo_space, owner_id):
        space_id, canvas_id = ids(demo_space)

        updated = await spaces_service.update_canvas(
            owner_id, space_id, canvas_id,
            name="Edited", flow_data='{"nodes": [1]}', deployed=True, chatbot_config="{}"
        )

        assert updated["name"] == "Edited"
        assert updated["flowData"] == '{"nodes": [1]}'
        assert updated["deployed"] is True
        assert updated["chatbotConfig"] == "{}"
        assert updated["sortOrder"] == 1

    async def test_update_canvas_flow_data_of_snapshot_rejected(self, spaces_service, demo_space, owner_id):
        """비활성 버전(스냅샷)의 flowData 는 수정 불가, 레이블 외 이름 수정은 허용"""
        space_id, canvas_id = ids(demo_space)
        snapshot = await spaces_service.create_canvas_version(owner_id, space_id, canvas_id)

        with pytest.raises(ConflictError):
            await spaces_service.update_canvas(
                owner_id, space_id, uuid.UUID(snapshot["id"]), flow_data='{"changed": true}'
            )

        renamed = await spaces_service.update_canvas(owner_id, space_id, uuid.UUID(snapshot["id"]), name="Old")
        assert renamed["name"] == "Old"
        assert renamed["flowData"] == "{}"

    async def test_update_canvas_null_flow_data_rejected(self, spaces_service, demo_space, owner_id):
        space_id, canvas_id = ids(demo_space)

        with pytest.raises(ValidationError) as exc_info:
            await spaces_service.update_canvas(owner_id, space_id, canvas_id, flow_data=None)

        assert exc_info.value.details["field"] == "flowData"
        canvas = await spaces_service.get_canvas(owner_id, space_id, canvas_id)
        assert canvas["flowData"] == "{}"

    async def test_update_canvas_unknown_field(self, spaces_service, demo_space, owner_id):
        space_id, canvas_id = ids(demo_space)

        with pytest.raises(ValidationError):
            await spaces_service.update_canvas(owner_id, space_id, canvas_id, version_index=9)

    async def test_delete_canvas_boundaries(self, spaces_service, demo_space, owner_id, invariants, db_session):
        """캔버스가 하나면 Conflict, 둘이면 삭제 후 sortOrder 연속"""
        space_id, canvas_id = ids(demo_space)

        with pytest.raises(ConflictError):
            await spaces_service.delete_canvas(owner_id, space_id, canvas_id)

        second = await spaces_service.create_canvas(owner_id, space_id, name="Second")
        deleted = await spaces_service.delete_canvas(owner_id, space_id, canvas_id)

        assert deleted == [canvas_id]
        canvases = await spaces_service.get_canvases(owner_id, space_id)
        assert [(c["id"], c["sortOrder"]) for c in canvases] == [(second["id"], 1)]
        await invariants.assert_invariants(db_session, [space_id])

    async def test_reorder_scenario(self, spaces_service, demo_space, owner_id, invariants, db_session):
        """A(1), B(2) 를 [B=1, A=2] 로 재정렬"""
        space_id, a_id = ids(demo_space)
        b = await spaces_service.create_canvas(owner_id, space_id, name="B")

        result = await spaces_service.reorder_canvases(owner_id, space_id, [
            {"canvas_id": uuid.UUID(b["id"]), "sort_order": 1},
            {"canvas_id": a_id, "sort_order": 2},
        ])

        assert [(c["id"], c["sortOrder"]) for c in result] == [(b["id"], 1), (str(a_id), 2)]
        await invariants.assert_invariants(db_session, [space_id])

    async def test_reorder_empty_rejected(self, spaces_service, demo_space, owner_id):
        with pytest.raises(ValidationError):
            await spaces_service.reorder_canvases(owner_id, uuid.UUID(demo_space["id"]), [])

    async def test_version_lifecycle_scenario(self, spaces_service, demo_space, owner_id, invariants, db_session):
        """v1 -> v2(비활성) 생성 -> v2 활성화 -> v1 삭제 -> v2 삭제 실패"""
        space_id, v1_id = ids(demo_space)

        # v2 생성 (activate=False)
        v2 = await spaces_service.create_canvas_version(owner_id, space_id, v1_id, activate=False)
        versions = await spaces_service.get_canvas_versions(owner_id, space_id, v1_id)
        assert [(v["versionLabel"], v["isActive"]) for v in versions] == [("v1", True), ("v2", False)]
        assert v2["versionIndex"] == 2
        await invariants.assert_invariants(db_session, [space_id])

        # v2 활성화
        v2_id = uuid.UUID(v2["id"])
        snapshot = await spaces_service.activate_canvas_version(owner_id, space_id, v1_id, v2_id)
        assert snapshot["id"] == v2["id"]
        assert snapshot["isActive"] is True
        assert snapshot["sortOrder"] == 1
        canvases = await spaces_service.get_canvases(owner_id, space_id)
        assert [c["id"] for c in canvases] == [v2["id"]]
        versions = await spaces_service.get_canvas_versions(owner_id, space_id, v2_id)
        assert [(v["versionLabel"], v["isActive"]) for v in versions] == [("v1", False), ("v2", True)]
        await invariants.assert_invariants(db_session, [space_id])

        # v1 삭제 (비활성, 마지막 아님)
        deleted = await spaces_service.delete_canvas_version(owner_id, space_id, v2_id, v1_id)
        assert deleted == v1_id

        # v2 삭제 (활성 + 마지막)
        with pytest.raises(ConflictError):
            await spaces_service.delete_canvas_version(owner_id, space_id, v2_id, v2_id)
        await invariants.assert_invariants(db_session, [space_id])

    async def test_create_version_activate_round_trip(self, spaces_service, demo_space, owner_id, invariants, db_session):
        space_id, v1_id = ids(demo_space)
        await spaces_service.create_canvas_version(owner_id, space_id, v1_id, label="v2 draft")

        v3 = await spaces_service.create_canvas_version(owner_id, space_id, v1_id, label="Release", activate=True)

        versions = await spaces_service.get_canvas_versions(owner_id, space_id, v1_id)
        assert [v["isActive"] for v in versions] == [False, False, True]
        assert versions[-1]["id"] == v3["id"]
        assert versions[-1]["versionLabel"] == "Release"
        await invariants.assert_invariants(db_session, [space_id])

    async def test_activation_visible_from_every_space(self, spaces_service, demo_space, owner_id, invariants, db_session):
        """활성 버전은 그룹 전체 속성이므로 그룹을 공유하는 모든 스페이스가 새 버전을 가리킴"""
        space_id, v1_id = ids(demo_space)
        other = await spaces_service.create_space(owner_id, name="Other")
        other_id = uuid.UUID(other["id"])
        async with transaction(db_session):
            other_space = await SpaceRepository(db_session).get_owned(owner_id, other_id)
            canvas = await spaces_service.versions.resolve_group(owner_id, space_id, v1_id)
            await MembershipManager(db_session).attach_canvas_to_space(other_space, canvas)

        v2 = await spaces_service.create_canvas_version(owner_id, space_id, v1_id, activate=True)

        other_canvases = await spaces_service.get_canvases(owner_id, other_id)
        assert v2["id"] in [c["id"] for c in other_canvases]
        await invariants.assert_invariants(db_session, [space_id, other_id])

    async def test_version_label_validation_before_transaction(self, spaces_service, demo_space, owner_id):
        space_id, v1_id = ids(demo_space)

        with pytest.raises(ValidationError):
            await spaces_service.create_canvas_version(owner_id, space_id, v1_id, label="x" * 201)
        with pytest.raises(ValidationError):
            await spaces_service.update_canvas_version(owner_id, space_id, v1_id, v1_id, description="x" * 2001)

    async def test_update_canvas_version(self, spaces_service, demo_space, owner_id):
        space_id, v1_id = ids(demo_space)

        updated = await spaces_service.update_canvas_version(
            owner_id, space_id, v1_id, v1_id, label="Initial", description="첫 버전"
        )

        assert updated["versionLabel"] == "Initial"
        assert updated["versionDescription"] == "첫 버전"
        assert updated["isActive"] is True

    async def test_activate_version_of_other_group(self, spaces_service, demo_space, owner_id):
        space_id, v1_id = ids(demo_space)
        other = await spaces_service.create_canvas(owner_id, space_id, name="Other")

        with pytest.raises(ConflictError):
            await spaces_service.activate_canvas_version(owner_id, space_id, v1_id, uuid.UUID(other["id"]))

    async def test_failed_operation_leaves_no_partial_writes(self, spaces_service, demo_space, owner_id):
        space_id, v1_id = ids(demo_space)

        with pytest.raises(ConflictError):
            await spaces_service.delete_canvas(owner_id, space_id, v1_id)

        details = await spaces_service.get_space_details(owner_id, space_id)
        assert details["canvasCount"] == 1
        assert details["canvases"][0]["id"] == str(v1_id)

    async def test_delete_space_and_purge_owner(self, spaces_service, demo_space, owner_id):
        space_id, v1_id = ids(demo_space)
        await spaces_service.create_space(owner_id, name="Second")

        result = await spaces_service.delete_space(owner_id, space_id)
        assert result.deleted_space_ids == [space_id]
        assert result.deleted_canvas_ids == [v1_id]

        with pytest.raises(ResourceNotFoundError):
            await spaces_service.delete_space(owner_id, space_id)

        result = await spaces_service.purge_owner(owner_id)
        assert len(result.deleted_space_ids) == 1
        assert await spaces_service.get_spaces(owner_id) == []
