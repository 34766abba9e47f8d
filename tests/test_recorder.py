"""Tests for gesture snapshot recording and replay."""

import json

import pytest

from particle_morph.config import SimulationConfig
from particle_morph.gestures import GestureSnapshot
from particle_morph.pipeline import MorphPipeline
from particle_morph.recorder import RecordedSnapshot, SnapshotPlayer, SnapshotRecorder
from particle_morph.simulation import ParticleSimulation


def make_session(tmp_path):
    rec = SnapshotRecorder()
    rec.start()
    rec.add(GestureSnapshot(hand_detected=True, hand_spread=0.5), timestamp=0.0)
    rec.add(GestureSnapshot(fist=True, hand_detected=True, pointer=(0.1, 0.2)), timestamp=0.02)
    rec.add(None, timestamp=0.05)
    rec.add(GestureSnapshot(peace=True, hand_detected=True), timestamp=0.06)
    rec.stop()
    path = tmp_path / "session.json"
    rec.save(path)
    return path


class TestRecorder:
    def test_record_and_count(self):
        rec = SnapshotRecorder()
        rec.start()
        for _ in range(10):
            rec.add(GestureSnapshot())
        assert rec.is_recording
        assert rec.stop() == 10
        assert not rec.is_recording

    def test_not_recording_ignores_frames(self):
        rec = SnapshotRecorder()
        rec.add(GestureSnapshot())
        assert rec.frame_count == 0

    def test_wall_clock_timestamps(self):
        rec = SnapshotRecorder()
        rec.start()
        rec.add(GestureSnapshot())
        rec.add(GestureSnapshot())
        assert rec.duration >= 0.0

    def test_save_format(self, tmp_path):
        path = make_session(tmp_path)
        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["frame_count"] == 4
        assert data["duration"] == pytest.approx(0.06)
        assert data["frames"][2]["snapshot"] is None

    def test_restart_clears(self):
        rec = SnapshotRecorder()
        rec.start()
        rec.add(GestureSnapshot())
        rec.start()
        assert rec.frame_count == 0


class TestPlayer:
    def test_load(self, tmp_path):
        player = SnapshotPlayer.load(make_session(tmp_path))
        assert player.frame_count == 4
        assert player.duration == pytest.approx(0.06)
        assert player.get_frame(1).snapshot.fist
        assert player.get_frame(1).snapshot.pointer == pytest.approx((0.1, 0.2))
        assert player.get_frame(2).snapshot is None
        assert player.get_frame(10) is None
        assert player.get_frame(-1) is None

    def test_steps(self, tmp_path):
        player = SnapshotPlayer.load(make_session(tmp_path))
        dts = [dt for dt, _ in player.steps()]
        assert dts == pytest.approx([0.0, 0.02, 0.03, 0.01])

    def test_play(self, tmp_path):
        player = SnapshotPlayer.load(make_session(tmp_path))
        frames = list(player.play())
        assert len(frames) == 4
        assert all(isinstance(f, RecordedSnapshot) for f in frames)

    def test_play_realtime(self, tmp_path):
        player = SnapshotPlayer.load(make_session(tmp_path))
        assert len(list(player.play_realtime(speed=100.0))) == 4

    def test_empty_player(self):
        player = SnapshotPlayer([])
        assert player.duration == 0.0
        assert list(player.play_realtime()) == []

    def test_newer_version_rejected(self, tmp_path):
        path = tmp_path / "future.json"
        path.write_text(json.dumps({"version": 99, "frames": []}))
        with pytest.raises(ValueError):
            SnapshotPlayer.load(path)

    def test_replay_drives_pipeline(self, tmp_path):
        player = SnapshotPlayer.load(make_session(tmp_path))
        sim = ParticleSimulation(SimulationConfig(particle_count=50, seed=2))
        pipeline = MorphPipeline(sim)
        for dt, snapshot in player.steps():
            pipeline.step(dt, snapshot)
        assert sim.active_template.value == "flower"
        assert pipeline.stats.template_switches == 2
