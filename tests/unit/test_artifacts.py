import logging
import re
from pathlib import Path

from lipsync_engine.artifacts import RunArtifacts, derive_artifact_path, dispose_artifacts, new_run_id


def test_run_id_combines_timestamp_and_random_token():
    assert re.fullmatch(r"\d{13}-[0-9a-f]{12}", new_run_id())


def test_derive_artifact_path_stays_next_to_input(tmp_path):
    source = tmp_path / "take one.mp3"

    derived = derive_artifact_path(source, "wav", run_id="123-abc")

    assert derived == tmp_path / "take one_123-abc.wav"


def test_derive_artifact_path_is_unique_without_run_id(tmp_path):
    source = tmp_path / "take.mp3"

    paths = {derive_artifact_path(source, ".wav") for _ in range(2000)}

    assert len(paths) == 2000


def test_run_artifacts_share_one_run_id(tmp_path):
    artifacts = RunArtifacts.derive(tmp_path / "voice.ogg")

    assert artifacts.audio_path.name == f"voice_{artifacts.run_id}.wav"
    assert artifacts.result_path.name == f"voice_{artifacts.run_id}.json"
    assert artifacts.paths() == [artifacts.audio_path, artifacts.result_path]


def test_dispose_removes_files_and_ignores_missing(tmp_path):
    present = tmp_path / "a.wav"
    present.write_bytes(b"data")

    failures = dispose_artifacts([present, tmp_path / "missing.json"])

    assert failures == []
    assert not present.exists()


def test_dispose_logs_and_returns_failures(tmp_path, mocker, caplog):
    target = tmp_path / "locked.wav"
    target.write_bytes(b"data")
    mocker.patch("lipsync_engine.artifacts.os.unlink", side_effect=PermissionError("denied"))

    with caplog.at_level(logging.WARNING, logger="lipsync_engine.artifacts"):
        failures = dispose_artifacts([target])

    assert len(failures) == 1
    assert failures[0].path == str(target)
    assert "artifact.cleanup_failed" in caplog.text
    assert Path(target).exists()
