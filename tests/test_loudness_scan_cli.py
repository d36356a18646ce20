"""Tests for the loudness_scan command-line script."""

from __future__ import annotations

import json
from pathlib import Path
from unittest import mock

import pytest

import scripts.loudness_scan as cli


def _records(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line]


def test_all_files_ok(fake_ffmpeg, audio_files, capsys):
    result = cli.main(audio_files[:3])

    captured = capsys.readouterr()
    records = _records(captured.out)
    assert result == cli.EXIT_OK
    assert len(records) == 3
    assert {r["Name"] for r in records} == {"track00.wav", "track01.wav", "track02.wav"}
    assert all(r["NoiseFloor"] == "-inf" for r in records)


def test_wildcard_input(fake_ffmpeg, audio_files, capsys):
    pattern = str(Path(audio_files[0]).parent / "track0[0-4].wav")

    result = cli.main([pattern, "--serial"])

    records = _records(capsys.readouterr().out)
    assert result == cli.EXIT_OK
    assert [r["Name"] for r in records] == [f"track0{i}.wav" for i in range(5)]


def test_serial_flag_keeps_order(fake_ffmpeg, audio_files, capsys):
    paths = list(reversed(audio_files[:4]))

    cli.main([*paths, "--serial"])

    assert [r["Name"] for r in _records(capsys.readouterr().out)] == [Path(p).name for p in paths]


def test_window_forwarded(fake_ffmpeg, audio_files):
    cli.main([audio_files[0], "--window", "2.5"])

    cmd = fake_ffmpeg[0]
    assert "length=2.5" in cmd[cmd.index("-af") + 1]


def test_unresolvable_input_aborts(fake_ffmpeg, audio_files, tmp_path, capsys):
    result = cli.main([audio_files[0], str(tmp_path / "nope.wav")])

    captured = capsys.readouterr()
    assert result == cli.EXIT_SETUP_FAILURE
    assert captured.out == ""
    assert "nope.wav" in captured.err
    assert fake_ffmpeg == []


def test_skip_missing(fake_ffmpeg, audio_files, tmp_path, capsys):
    result = cli.main([audio_files[0], str(tmp_path / "nope.wav"), "--skip-missing"])

    assert result == cli.EXIT_OK
    assert len(_records(capsys.readouterr().out)) == 1


def test_missing_ffmpeg(no_ffmpeg, audio_files, capsys):
    result = cli.main(audio_files[:2])

    captured = capsys.readouterr()
    assert result == cli.EXIT_SETUP_FAILURE
    assert captured.out == ""
    assert "Analyzer not found" in captured.err


def test_file_failure_exit_code(monkeypatch, audio_files, capsys):
    monkeypatch.setattr("shutil.which", lambda name: "/usr/bin/ffmpeg")

    def fake_run(cmd, stdout=None, stderr=None, check=False):
        result = mock.Mock()
        if cmd[cmd.index("-i") + 1].endswith("track01.wav"):
            result.returncode = 1
            result.stdout = b"Invalid data found when processing input\n"
        else:
            result.returncode = 0
            result.stdout = b"Peak level dB: -1.00\n"
        return result

    monkeypatch.setattr("subprocess.run", fake_run)

    result = cli.main(audio_files[:3])

    captured = capsys.readouterr()
    records = {r["Name"]: r for r in _records(captured.out)}
    assert result == cli.EXIT_FILE_FAILURES
    assert records["track01.wav"]["Error"] == "ANALYZER_FAILED"
    assert records["track00.wav"]["Peak"] == -1.0
    assert "1 of 3 files failed" in captured.err


@pytest.mark.parametrize("args", [["--window", "0"], ["--concurrency", "0"]])
def test_invalid_settings(fake_ffmpeg, audio_files, args, capsys):
    result = cli.main([audio_files[0], *args])

    assert result == cli.EXIT_SETUP_FAILURE
    assert "Error" in capsys.readouterr().err
