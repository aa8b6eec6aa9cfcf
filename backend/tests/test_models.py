"""
Unit tests for database models and their constraints
"""

import pytest
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from conftest import create_pose, create_sequence
from db.database import seed_lookup_tables
from models.pose import DIFFICULTY_NAMES, POSE_TYPE_NAMES, Difficulty, Pose, PoseType
from models.pose_version import PoseVersion
from models.sequence import Sequence, SequencePose, SequenceVisibility


def entry_for(sequence, pose, position):
    return SequencePose(
        sequence_id=sequence.id,
        pose_id=pose.id,
        pose_version_id=pose.current_version_id,
        position=position,
    )


class TestLookupTables:
    @pytest.mark.asyncio
    async def test_seeded(self, db_session):
        difficulties = (await db_session.execute(select(Difficulty.name))).scalars().all()
        types = (await db_session.execute(select(PoseType.name))).scalars().all()

        assert sorted(difficulties) == sorted(DIFFICULTY_NAMES)
        assert sorted(types) == sorted(POSE_TYPE_NAMES)

    @pytest.mark.asyncio
    async def test_ids_assigned_by_database(self, db_session):
        ids = (await db_session.execute(select(Difficulty.id))).scalars().all()

        assert len(ids) == len(DIFFICULTY_NAMES)
        assert all(isinstance(i, int) for i in ids)

    @pytest.mark.asyncio
    async def test_reseed_adds_nothing(self, db_session):
        assert await seed_lookup_tables(db_session) == 0

    @pytest.mark.asyncio
    async def test_unique_name(self, db_session):
        db_session.add(Difficulty(name="beginner"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()


class TestPoseModel:
    @pytest.mark.asyncio
    async def test_create_pose_points_at_first_version(self, db_session):
        pose = await create_pose(db_session, "Tree Pose", "Vrksasana", pose_type="balancing")

        version = await db_session.get(PoseVersion, pose.current_version_id)
        assert version.version == 1
        assert version.name == "Tree Pose"
        assert version.sanskrit_name == "Vrksasana"

    @pytest.mark.asyncio
    async def test_lookup_relationships_load(self, db_session):
        pose = await create_pose(
            db_session, "Camel Pose", difficulty="intermediate", pose_type="backbend"
        )
        pose_id = pose.id
        db_session.expunge_all()

        loaded = (await db_session.execute(select(Pose).where(Pose.id == pose_id))).unique().scalar_one()
        assert loaded.difficulty.name == "intermediate"
        assert loaded.pose_type.name == "backbend"

    @pytest.mark.asyncio
    async def test_image_alt_required(self, db_session):
        db_session.add(Pose(name="No Alt"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_version_number_unique_per_pose(self, db_session):
        pose = await create_pose(db_session, "Cobra Pose")
        db_session.add(PoseVersion(pose_id=pose.id, version=1, name="Cobra Pose"))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_repr(self, db_session):
        pose = await create_pose(db_session, "Lotus")
        assert "Lotus" in repr(pose)
        assert "Pose" in repr(pose)


class TestSequenceModel:
    @pytest.mark.asyncio
    async def test_defaults(self, db_session, user):
        sequence = await create_sequence(db_session, user, "Defaults")
        await db_session.refresh(sequence)

        assert sequence.visibility == SequenceVisibility.PRIVATE
        assert sequence.created_at is not None

    @pytest.mark.asyncio
    async def test_name_unique_per_user(self, db_session, user):
        await create_sequence(db_session, user, "Flow")
        db_session.add(Sequence(user_id=user.id, name="Flow"))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_same_name_for_different_users(self, db_session, user, other_user):
        await create_sequence(db_session, user, "Flow")
        await create_sequence(db_session, other_user, "Flow")

        count = (
            await db_session.execute(select(func.count(Sequence.id)).where(Sequence.name == "Flow"))
        ).scalar_one()
        assert count == 2


class TestSequencePoseModel:
    @pytest.mark.asyncio
    async def test_position_unique_within_sequence(self, db_session, sequence, sample_poses):
        db_session.add(entry_for(sequence, sample_poses[0], 1))
        await db_session.commit()

        db_session.add(entry_for(sequence, sample_poses[1], 1))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_same_position_in_different_sequences(self, db_session, user, sequence, sample_poses):
        other = await create_sequence(db_session, user, "Evening Flow")
        db_session.add(entry_for(sequence, sample_poses[0], 1))
        db_session.add(entry_for(other, sample_poses[0], 1))
        await db_session.commit()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [0, -3])
    async def test_position_must_be_positive(self, db_session, sequence, sample_poses, position):
        db_session.add(entry_for(sequence, sample_poses[0], position))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_same_pose_twice(self, db_session, sequence, sample_poses):
        db_session.add(entry_for(sequence, sample_poses[0], 1))
        db_session.add(entry_for(sequence, sample_poses[0], 2))
        await db_session.commit()

    @pytest.mark.asyncio
    async def test_deleting_sequence_removes_entries(self, db_session, sequence, sample_poses):
        sequence_id = sequence.id
        db_session.add(entry_for(sequence, sample_poses[0], 1))
        db_session.add(entry_for(sequence, sample_poses[1], 2))
        await db_session.commit()

        await db_session.execute(delete(Sequence).where(Sequence.id == sequence_id))
        await db_session.commit()

        remaining = (
            await db_session.execute(
                select(func.count(SequencePose.id)).where(SequencePose.sequence_id == sequence_id)
            )
        ).scalar_one()
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_referenced_pose_cannot_be_deleted(self, db_session, sequence, sample_poses):
        pose_id = sample_poses[0].id
        db_session.add(entry_for(sequence, sample_poses[0], 1))
        await db_session.commit()

        with pytest.raises(IntegrityError):
            await db_session.execute(delete(Pose).where(Pose.id == pose_id))
            await db_session.commit()
        await db_session.rollback()
