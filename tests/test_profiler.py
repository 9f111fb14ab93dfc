import io
import sys

import pytest

from chip8emu.profiler import CSV_HEADER, OpcodeStats, Profiler


def test_stats_record_tracks_min_max_and_count():
    entry = OpcodeStats()
    entry.record(2.0)
    entry.record(4.0)
    assert entry.call_count == 2
    assert entry.min_time == 2.0
    assert entry.max_time == 4.0
    assert entry.average() == 3.0


def test_stats_defaults():
    entry = OpcodeStats()
    assert entry.average() == 0.0
    assert entry.min_time == sys.float_info.max
    assert entry.max_time == 0.0


def test_profile_opcode_returns_result_and_counts():
    prof = Profiler(True)
    assert prof.profile_opcode("ADD", lambda: 7) == 7
    prof.profile_opcode("ADD", lambda: None)
    prof.profile_opcode("SUB", lambda: None)
    stats = prof.stats()
    assert list(stats) == ["ADD", "SUB"]
    assert stats["ADD"].call_count == 2
    assert stats["SUB"].call_count == 1
    assert stats["ADD"].min_time <= stats["ADD"].average() <= stats["ADD"].max_time


def test_disabled_profiler_runs_but_records_nothing():
    calls = []
    prof = Profiler(False)
    assert prof.profile_opcode("X", lambda: calls.append(1) or "done") == "done"
    assert calls == [1]
    assert prof.stats() == {}


def test_write_csv_rows():
    prof = Profiler(True)
    prof.profile_opcode("6xkk", lambda: None)
    prof.profile_opcode("6xkk", lambda: None)
    out = io.StringIO()
    prof.write_csv(out)
    rows = out.getvalue().splitlines()
    assert len(rows) == 1
    name, count, avg, low, high = rows[0].split(",")
    assert (name, count) == ("6xkk", "2")
    assert float(low) <= float(avg) <= float(high)


def test_file_gets_header_and_rows_on_close(tmp_path, capsys):
    path = tmp_path / "profile.csv"
    prof = Profiler(True, path)
    prof.profile_opcode("OP", lambda: None)
    prof.close()
    lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
    assert lines[0] == CSV_HEADER
    assert lines[1].startswith("OP,1,")
    assert "Opcode profiling summary:" in capsys.readouterr().out


def test_disabled_profiler_file_is_empty(tmp_path):
    path = tmp_path / "profile.csv"
    with Profiler(False, path) as prof:
        prof.profile_opcode("OP", lambda: None)
    assert path.read_text(encoding="utf-8") == ""


def test_summary_lists_labels():
    prof = Profiler(True)
    prof.profile_opcode("Dxyn", lambda: None)
    text = prof.summary()
    assert text.startswith("\nOpcode profiling summary: \n")
    assert "Opcode \tCalls\tAvg(us)\tMin(us)\n" in text
    assert "\nDxyn\t1\t" in text


def test_close_is_idempotent(capsys):
    prof = Profiler(True)
    prof.close()
    prof.close()
    assert capsys.readouterr().out.count("Opcode profiling summary:") == 1


def test_context_manager_closes_file(tmp_path):
    path = tmp_path / "p.csv"
    with Profiler(True, path) as prof:
        prof.profile_opcode("A", lambda: None)
    assert path.read_text(encoding="utf-8").splitlines()[1].startswith("A,1,")


def test_exception_propagates_from_profiled_call():
    prof = Profiler(True)
    with pytest.raises(ZeroDivisionError):
        prof.profile_opcode("BAD", lambda: 1 / 0)