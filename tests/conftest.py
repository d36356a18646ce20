"""Shared pytest fixtures for Loudness Batch Analyzer tests.

No test needs ffmpeg installed: subprocess.run and shutil.which are faked.
"""

import wave
from pathlib import Path
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from services.analyze_api.main import app

# Diagnostic text as printed by ffmpeg for
#   -af astats=length=1:measure_perchannel=none,ebur128=peak=true:dualmono=true:framelog=quiet
SAMPLE_REPORT = """\
Input #0, wav, from '/music/take1.wav':
  Duration: 00:00:03.00, bitrate: 1411 kb/s
  Stream #0:0: Audio: pcm_s16le ([1][0][0][0] / 0x0001), 44100 Hz, stereo, s16, 1411 kb/s
Stream mapping:
  Stream #0:0 -> #0:0 (pcm_s16le (native) -> pcm_s16le (native))
Output #0, null, to 'pipe:':
  Stream #0:0: Audio: pcm_s16le, 44100 Hz, stereo, s16, 1411 kb/s
[Parsed_astats_0 @ 0x55d5c8a0c040] Overall
[Parsed_astats_0 @ 0x55d5c8a0c040] DC offset: 0.000012
[Parsed_astats_0 @ 0x55d5c8a0c040] Min level: -0.697510
[Parsed_astats_0 @ 0x55d5c8a0c040] Max level: 0.697479
[Parsed_astats_0 @ 0x55d5c8a0c040] Peak level dB: -3.140000
[Parsed_astats_0 @ 0x55d5c8a0c040] RMS level dB: -18.200000
[Parsed_astats_0 @ 0x55d5c8a0c040] RMS peak dB: -12.043210
[Parsed_astats_0 @ 0x55d5c8a0c040] RMS trough dB: -40.512000
[Parsed_astats_0 @ 0x55d5c8a0c040] Noise floor dB: -inf
[Parsed_astats_0 @ 0x55d5c8a0c040] Noise floor count: 0
[Parsed_astats_0 @ 0x55d5c8a0c040] Number of samples: 132300
[Parsed_ebur128_1 @ 0x55d5c8a0d880] Summary:

  Integrated loudness:
    I:         -16.5 LUFS
    Threshold: -26.6 LUFS

  Loudness range:
    LRA:         5.3 LU
    Threshold: -36.6 LUFS
    LRA low:   -20.1 LUFS
    LRA high:  -14.8 LUFS

  True peak:
    Peak:       -2.9 dBFS
"""


def _completed_process(stdout: bytes, returncode: int = 0) -> mock.Mock:
    """Build a stand-in for subprocess.CompletedProcess."""
    result = mock.Mock()
    result.returncode = returncode
    result.stdout = stdout
    return result


@pytest.fixture
def sample_report():
    """Full ffmpeg diagnostic text for one file."""
    return SAMPLE_REPORT


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    """Pretend ffmpeg is on PATH and make every run print SAMPLE_REPORT.

    Yields:
        list: argv of every invocation, in call order.
    """
    calls = []

    def fake_run(cmd, stdout=None, stderr=None, check=False):
        calls.append(cmd)
        return _completed_process(SAMPLE_REPORT.encode("utf-8"))

    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("subprocess.run", fake_run)
    yield calls


@pytest.fixture
def no_ffmpeg(monkeypatch):
    """Pretend ffmpeg is not installed."""
    monkeypatch.setattr("shutil.which", lambda name: None)


def _write_silence(path: Path) -> None:
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(22050)
        wf.writeframes(b"\x00" * 2205 * 2)  # 0.1 second of silence


@pytest.fixture
def audio_files(tmp_path):
    """Create ten small WAV files.

    Returns:
        list[str]: Absolute paths, in creation order.
    """
    paths = []
    for i in range(10):
        path = tmp_path / f"track{i:02d}.wav"
        _write_silence(path)
        paths.append(str(path.resolve()))
    return paths


@pytest.fixture
def client():
    """Create a FastAPI test client for the analyze API."""
    with TestClient(app) as test_client:
        yield test_client
