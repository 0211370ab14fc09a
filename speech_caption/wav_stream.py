from __future__ import annotations

import wave
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class WavFormat:
    channels: int
    sample_width_bytes: int
    sample_rate: int
    n_frames: int
    comptype: str
    compname: str

    @property
    def duration_s(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.n_frames / float(self.sample_rate)


def inspect_wav(path: Path) -> WavFormat:
    """
    Read the RIFF/WAVE header of a file.

    Raises wave.Error (or EOFError for truncated files) when the file is not a
    readable PCM WAV. The audio itself is streamed by the speech SDK, we only
    look at the header.
    """
    path = path.resolve()
    with wave.open(str(path), "rb") as wf:
        return WavFormat(
            channels=wf.getnchannels(),
            sample_width_bytes=wf.getsampwidth(),
            sample_rate=wf.getframerate(),
            n_frames=wf.getnframes(),
            comptype=wf.getcomptype(),
            compname=wf.getcompname(),
        )
