"""
Unit tests for Pydantic schemas
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from models.sequence import SequenceVisibility
from schemas.pose import PoseImport, PoseResponse
from schemas.sequence import (
    SequenceCreate,
    SequenceDetailResponse,
    SequencePoseCreate,
    SequencePoseResponse,
    SequencePoseUpdate,
    SequenceUpdate,
)
from schemas.validators import strip_invisible_edges


class TestSequencePoseCreate:
    def test_camel_case_input(self):
        pose_id = uuid.uuid4()
        schema = SequencePoseCreate(**{"poseId": str(pose_id), "poseVersion": 2, "position": 1})

        assert schema.pose_id == pose_id
        assert schema.pose_version == 2
        assert schema.position == 1

    def test_optional_fields_default_to_none(self):
        schema = SequencePoseCreate(pose_id=uuid.uuid4())
        assert schema.pose_version is None
        assert schema.position is None

    def test_position_range_not_checked_here(self):
        # Bounds depend on the sequence length and are checked by the service
        assert SequencePoseCreate(pose_id=uuid.uuid4(), position=0).position == 0

    def test_pose_version_must_be_positive(self):
        with pytest.raises(ValidationError):
            SequencePoseCreate(pose_id=uuid.uuid4(), pose_version=0)

    def test_pose_id_must_be_uuid(self):
        with pytest.raises(ValidationError):
            SequencePoseCreate(pose_id="mountain")


class TestSequencePoseUpdate:
    def test_position_only(self):
        assert SequencePoseUpdate(position=3).position == 3

    def test_empty_body_fails(self):
        with pytest.raises(ValidationError, match="At least one field"):
            SequencePoseUpdate()

    @pytest.mark.parametrize("instructions", ["", "   ", "<b></b>"])
    def test_instructions_kept_verbatim(self, instructions):
        assert SequencePoseUpdate(instructions=instructions).instructions == instructions

    def test_instructions_too_long(self):
        with pytest.raises(ValidationError):
            SequencePoseUpdate(instructions="a" * 1001)

    def test_negative_duration(self):
        with pytest.raises(ValidationError):
            SequencePoseUpdate(duration=-5)


class TestSequenceSchemas:
    def test_create_defaults_to_private(self):
        assert SequenceCreate(name="Flow").visibility == SequenceVisibility.PRIVATE

    def test_create_strips_invisible_edges(self):
        assert SequenceCreate(name="\u200b Morning Flow \u200b").name == "Morning Flow"

    def test_create_blank_name_fails(self):
        with pytest.raises(ValidationError):
            SequenceCreate(name="\u200b  ")

    def test_create_rejects_unpaired_surrogate(self):
        with pytest.raises(ValidationError):
            SequenceCreate(name="Flow \ud800")

    def test_update_allows_partial(self):
        schema = SequenceUpdate(visibility="public")
        assert schema.name is None
        assert schema.visibility == SequenceVisibility.PUBLIC

    def test_strip_invisible_edges_keeps_inner_text(self):
        assert strip_invisible_edges("\ufeffSun \u200b Salutation\n") == "Sun \u200b Salutation"


def make_entry(position=1, version_name="Mountain Pose"):
    pose = SimpleNamespace(id=uuid.uuid4(), image_alt="Mountain Pose illustration")
    version = SimpleNamespace(
        id=uuid.uuid4(),
        version=2,
        name=version_name,
        sanskrit_name="Tadasana",
        image_url="https://img.example.com/mountain.jpg",
    )
    return SimpleNamespace(
        id=uuid.uuid4(),
        pose_id=pose.id,
        pose_version_id=version.id,
        pose_version=version,
        pose=pose,
        position=position,
        added_at=datetime.now(timezone.utc),
    )


class TestResponses:
    def test_entry_display_comes_from_version(self):
        entry = make_entry(version_name="Mountain Pose (old)")
        data = SequencePoseResponse.from_entry(entry).model_dump(by_alias=True)

        assert data["poseName"] == "Mountain Pose (old)"
        assert data["poseVersion"] == 2
        assert data["imageAlt"] == "Mountain Pose illustration"

    def test_detail_counts_poses(self):
        now = datetime.now(timezone.utc)
        sequence = SimpleNamespace(
            id=uuid.uuid4(),
            name="Flow",
            visibility=SequenceVisibility.PRIVATE,
            created_at=now,
            updated_at=now,
            sequence_poses=[make_entry(1), make_entry(2)],
        )

        detail = SequenceDetailResponse.from_sequence(sequence)

        assert detail.pose_count == 2
        assert [p.position for p in detail.poses] == [1, 2]

    def test_pose_response_without_lookups(self):
        pose = SimpleNamespace(
            id=uuid.uuid4(),
            name="Mystery",
            sanskrit_name=None,
            description=None,
            difficulty=None,
            pose_type=None,
            image_url=None,
            image_alt="Mystery pose",
            image_license=None,
            created_at=None,
            updated_at=None,
        )

        response = PoseResponse.from_pose(pose)

        assert response.difficulty == "beginner"
        assert response.type == "unknown"


class TestPoseImport:
    def test_valid_record(self):
        record = PoseImport(
            name=" Tree Pose ",
            sanskritName="Vrksasana",
            difficulty="beginner",
            type="Balancing",
            imageAlt="Tree pose illustration",
        )

        assert record.name == "Tree Pose"
        assert record.type == "balancing"
        assert record.difficulty.value == "beginner"

    def test_blank_optional_becomes_none(self):
        record = PoseImport(name="Tree Pose", imageAlt="alt", description="  ")
        assert record.description is None

    def test_image_alt_required(self):
        with pytest.raises(ValidationError):
            PoseImport(name="Tree Pose")

    def test_unknown_difficulty(self):
        with pytest.raises(ValidationError):
            PoseImport(name="Tree Pose", imageAlt="alt", difficulty="expert")
