"""Gesture snapshot recording and replay.

Record the snapshots a hand tracker produced during a session, then replay
them to drive the simulation headless:
- reproducible runs without a camera
- CI on machines with no video device
- demos that play back the same way every time
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from particle_morph.gestures import GestureSnapshot

FORMAT_VERSION = 1


@dataclass
class RecordedSnapshot:
    """One snapshot with its offset from the start of the recording."""
    timestamp: float  # seconds from recording start
    snapshot: Optional[GestureSnapshot]  # None = tracker produced nothing this frame

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "snapshot": self.snapshot.to_dict() if self.snapshot is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecordedSnapshot:
        raw = data.get("snapshot")
        return cls(
            timestamp=float(data.get("timestamp", 0.0)),
            snapshot=GestureSnapshot.from_dict(raw) if raw is not None else None,
        )


class SnapshotRecorder:
    """Collects snapshots with timestamps and writes them to JSON.

    Usage:
        recorder = SnapshotRecorder()
        recorder.start()
        recorder.add(snapshot)        # once per frame
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[RecordedSnapshot] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        self._frames = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns the number of frames captured."""
        self._recording = False
        return len(self._frames)

    def add(self, snapshot: Optional[GestureSnapshot], timestamp: Optional[float] = None):
        """Append a snapshot. Ignored unless recording.

        ``timestamp`` overrides the wall-clock offset (useful for synthetic sessions).
        """
        if not self._recording:
            return
        if timestamp is None:
            timestamp = time.monotonic() - self._start_time
        self._frames.append(RecordedSnapshot(timestamp=timestamp, snapshot=snapshot))

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [f.to_dict() for f in self._frames],
        }
        with open(path, "w") as f:
            json.dump(data, f)


class SnapshotPlayer:
    """Replays a recorded session.

    Usage:
        player = SnapshotPlayer.load("session.json")
        for dt, snapshot in player.steps():
            pipeline.step(dt, snapshot)
    """

    def __init__(self, frames: list[RecordedSnapshot]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> SnapshotPlayer:
        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version > FORMAT_VERSION:
            raise ValueError(f"{path}: unsupported recording version {version}")

        return cls([RecordedSnapshot.from_dict(f) for f in data.get("frames", [])])

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def play(self) -> Iterator[RecordedSnapshot]:
        """Iterate through all frames with no timing."""
        yield from self._frames

    def steps(self) -> Iterator[tuple[float, Optional[GestureSnapshot]]]:
        """Yield (dt, snapshot) pairs, dt being the gap to the previous frame."""
        previous = 0.0
        for frame in self._frames:
            dt = max(frame.timestamp - previous, 0.0)
            previous = frame.timestamp
            yield dt, frame.snapshot

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedSnapshot]:
        """Replay at recorded timing, scaled by ``speed``."""
        if not self._frames:
            return

        start = time.monotonic()
        for frame in self._frames:
            target_time = frame.timestamp / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield frame

    def get_frame(self, index: int) -> Optional[RecordedSnapshot]:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None
