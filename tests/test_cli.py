import io
import json
import sys

import pytest

from agent_meter.cli import main
from agent_meter.state import config, load_user_config

SESSION_LOG = """\
[Agent] Task 20% complete
Created file: src/app.py
Edit(src/config.py)
Tests: 8 passed, 2 failed
Error: flaky test
Progress: 100%
"""


@pytest.fixture
def session_log(tmp_path):
    path = tmp_path / "session.log"
    path.write_text(SESSION_LOG, encoding="utf-8")
    return path


def json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.strip()]


def test_json_mode_reports_events_and_summary(session_log, capsys):
    assert main(["--json", str(session_log)]) == 0
    records = json_lines(capsys.readouterr().out)

    assert [r["type"] for r in records] == [
        "progress", "file", "file", "test", "diagnostic", "progress", "summary",
    ]
    assert records[0] == {"type": "progress", "progress": 20, "source": "explicit"}
    assert records[1] == {"type": "file", "action": "created", "path": "src/app.py"}
    assert records[3] == {"type": "test", "passed": 8, "failed": 2, "total": 10}

    summary = records[-1]
    assert summary["progress"] == 100
    assert summary["files_changed"] == 2
    assert summary["status"] == "completed"
    assert summary["exit_code"] == 0


def test_text_mode_renders_events_and_summary(session_log, capsys):
    assert main([str(session_log)]) == 0
    out = capsys.readouterr().out
    assert "src/app.py" in out
    assert "8 passed, 2 failed" in out
    assert "flaky test" in out
    assert "Files changed" in out


def test_no_summary(session_log, capsys):
    main(["--no-summary", str(session_log)])
    assert "Files changed" not in capsys.readouterr().out


def test_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("All 3 tests passed\n"))
    assert main(["--json"]) == 0
    records = json_lines(capsys.readouterr().out)
    assert records[0] == {"type": "test", "passed": 3, "failed": 0, "total": 3}


def test_multiple_files_share_one_session(tmp_path, capsys):
    first = tmp_path / "a.log"
    second = tmp_path / "b.log"
    first.write_text("Created: src/a.ts\n", encoding="utf-8")
    second.write_text("Created: src/a.ts\nCreated: src/b.ts\n", encoding="utf-8")

    main(["--json", str(first), str(second)])
    records = json_lines(capsys.readouterr().out)
    paths = [r["path"] for r in records if r["type"] == "file"]
    assert paths == ["src/a.ts", "src/b.ts"]
    assert records[-1]["files_changed"] == 2


def test_echo_passes_raw_output(tmp_path, capsys):
    log = tmp_path / "raw.log"
    log.write_text("plain agent chatter\n", encoding="utf-8")
    main(["--echo", "--no-summary", str(log)])
    assert "plain agent chatter" in capsys.readouterr().out


def test_missing_file_fails(tmp_path, capsys):
    code = main(["--json", str(tmp_path / "nope.log")])
    captured = capsys.readouterr()
    assert code == 1
    assert "cannot read" in captured.err
    assert json_lines(captured.out)[-1]["status"] == "failed"


def test_threshold_flag_overrides_config(session_log, capsys):
    main(["--json", "--threshold", "50", str(session_log)])
    assert config.progress_threshold == 50


def test_negative_threshold_rejected(session_log):
    with pytest.raises(SystemExit):
        main(["--threshold", "-1", str(session_log)])


def test_save_defaults(session_log, capsys):
    main(["--save-defaults", "--threshold", "7", "--no-summary", str(session_log)])
    assert load_user_config() == {"progress_threshold": 7, "echo": False}


def test_exec_requires_command():
    with pytest.raises(SystemExit):
        main(["-x"])


def test_exec_mode_runs_command(capsys):
    script = "print('Progress: 40%'); print('Created: src/x.py')"
    code = main(["--json", "-x", "--", sys.executable, "-c", script])
    records = json_lines(capsys.readouterr().out)
    assert code == 0
    assert records[0] == {"type": "progress", "progress": 40, "source": "explicit"}
    assert records[1]["path"] == "src/x.py"
    assert records[-1]["status"] == "completed"


def test_exec_mode_propagates_exit_code(capsys):
    code = main(["--json", "-x", "--", sys.executable, "-c", "import sys; sys.exit(3)"])
    records = json_lines(capsys.readouterr().out)
    assert code == 3
    assert records[-1]["status"] == "failed"


def test_exec_mode_unknown_command(capsys):
    code = main(["-x", "--", "definitely-not-a-real-agent-binary"])
    assert code == 1
    assert "command not found" in capsys.readouterr().err


def test_stdin_with_invalid_utf8(monkeypatch, capsys):
    raw = io.BytesIO(b"Created: src/a.ts\n\xff\xfe garbage\nError: boom\n")
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(raw, encoding="utf-8", errors="strict"))
    assert main(["--json"]) == 0
    records = json_lines(capsys.readouterr().out)
    assert records[0] == {"type": "file", "action": "created", "path": "src/a.ts"}
    assert records[1] == {"type": "diagnostic", "message": "boom", "severity": "error"}
    assert records[-1]["status"] == "completed"


def test_exec_mode_unknown_command_still_prints_summary(capsys):
    code = main(["--json", "-x", "--", "definitely-not-a-real-agent-binary"])
    records = json_lines(capsys.readouterr().out)
    assert code == 1
    assert records[-1]["type"] == "summary"
    assert records[-1]["status"] == "failed"
    assert records[-1]["exit_code"] == 1
