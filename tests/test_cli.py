from pathlib import Path

import pytest

from app.cli import EXIT_FATAL, EXIT_OK, EXIT_SAVE_FAILED, build_parser, run_plan_check
from core.errors import HostDataError


@pytest.fixture
def fast_dvh(monkeypatch):
    from qa.config import get_dvh_config

    monkeypatch.setitem(get_dvh_config(), "settle_seconds", 0.0)


def test_success_presents_then_saves(full_source, tmp_path, capsys, fast_dvh):
    shown = []
    code = run_plan_check(lambda: full_source, shown.append, output_dir=tmp_path)
    assert code == EXIT_OK
    assert len(shown) == 1
    files = list(tmp_path.glob("PlanCheck_12345_DOE^JOHN_VMAT001_*.txt"))
    assert len(files) == 1
    out = capsys.readouterr().out
    assert "Plan check finished. Results saved to:" in out
    assert str(files[0]) in out


def test_fatal_error_produces_no_results(tmp_path, capsys):
    def open_source():
        raise HostDataError("Failed to initialize the host application connection.")

    shown = []
    assert run_plan_check(open_source, shown.append, output_dir=tmp_path) == EXIT_FATAL
    assert shown == []
    assert list(tmp_path.iterdir()) == []
    assert "[ERROR] Error during plan check:" in capsys.readouterr().err


def test_missing_patient_is_fatal(full_source, tmp_path, fast_dvh):
    full_source.patient = None
    assert run_plan_check(lambda: full_source, lambda r: None, output_dir=tmp_path) == EXIT_FATAL
    assert list(tmp_path.iterdir()) == []


def test_presentation_failure_still_saves(full_source, tmp_path, fast_dvh):
    def broken_ui(report):
        raise RuntimeError("port already in use")

    assert run_plan_check(lambda: full_source, broken_ui, output_dir=tmp_path) == EXIT_OK
    assert len(list(tmp_path.glob("*.txt"))) == 1


def test_interrupted_session_still_saves(full_source, tmp_path, fast_dvh):
    def interrupted(report):
        raise KeyboardInterrupt

    assert run_plan_check(lambda: full_source, interrupted, output_dir=tmp_path) == EXIT_OK
    assert len(list(tmp_path.glob("*.txt"))) == 1


def test_save_failure_is_reported(full_source, tmp_path, capsys, fast_dvh):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    assert run_plan_check(lambda: full_source, lambda r: None, output_dir=blocker) == EXIT_SAVE_FAILED
    assert "[ERROR] Error while saving the results file:" in capsys.readouterr().err


def test_parser_requires_exactly_one_source():
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args([])
    with pytest.raises(SystemExit):
        parser.parse_args(["--snapshot", "a.json", "--rtplan", "b.dcm"])


def test_parser_defaults():
    args = build_parser().parse_args(["--rtplan", "RTPLAN.dcm"])
    assert args.rtplan == Path("RTPLAN.dcm")
    assert args.snapshot is None
    assert args.output_dir is None
    assert args.no_ui is False
    assert args.host == "127.0.0.1"
    assert args.port == 8765
    assert args.no_browser is False
    assert args.log_level == "INFO"


def test_parser_overrides():
    args = build_parser().parse_args(
        ["--snapshot", "plan.json", "--no-ui", "--port", "9000", "--output-dir", "out", "--log-level", "debug"]
    )
    assert args.snapshot == Path("plan.json")
    assert args.no_ui is True
    assert args.port == 9000
    assert args.output_dir == Path("out")


def test_ui_that_cannot_start_still_saves(full_source, tmp_path, busy_port, fast_dvh):
    from app.ui_fastapi.main import serve_results

    def present(report):
        serve_results(report, host="127.0.0.1", port=busy_port, open_browser=False)

    assert run_plan_check(lambda: full_source, present, output_dir=tmp_path) == EXIT_OK
    assert len(list(tmp_path.glob("PlanCheck_*.txt"))) == 1
