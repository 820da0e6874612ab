import json

from mapleads.ops_logger import OpsLogger


def test_emit_writes_jsonl(tmp_path):
    path = tmp_path / "logs" / "ops.log"
    logger = OpsLogger(path, run_id="run-1")

    logger.emit("walk", records=3, stop_reason="stalled")
    logger.emit("summary", status="ok")

    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [l["event"] for l in lines] == ["walk", "summary"]
    assert lines[0]["mle_ops"] == 1
    assert lines[0]["run_id"] == "run-1"
    assert lines[0]["records"] == 3
    assert "ts" in lines[0]


def test_emit_mirrors_to_stdout(tmp_path, capsys):
    logger = OpsLogger(tmp_path / "ops.log", also_stdout=True)
    logger.emit("enrich", with_emails=2)
    out = capsys.readouterr().out
    assert '"event": "enrich"' in out


def test_unserializable_values_fall_back_to_str(tmp_path):
    path = tmp_path / "ops.log"
    OpsLogger(path).emit("summary", path=tmp_path)
    assert json.loads(path.read_text(encoding="utf-8"))["path"] == str(tmp_path)


def test_unwritable_log_does_not_raise(tmp_path):
    target = tmp_path / "dir-not-file"
    target.mkdir()
    OpsLogger(target).emit("summary", status="ok")
