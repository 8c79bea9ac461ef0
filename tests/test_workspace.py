import os
import pickle
import time

import pytest

from v6intake.config import Workspace
from v6intake.core.errors import FormatError, IllegalTransition, WorkspaceError
from v6intake.core.metrics import MetricsCollector
from v6intake.workspace import (
    INITIAL_PHASE,
    TRANSITIONS,
    ModelBootstrap,
    PhaseStateStore,
    PipelinePhase,
    ResultWriter,
    load_model,
    reset_workspace,
)
from v6intake.workspace.writer import RECORDS_COUNTER, WRITE_TIMER

from conftest import ADDR_A, ADDR_B, ADDR_C


def _populate(base):
    (base / "models").mkdir(parents=True)
    (base / "ping_results" / "nested").mkdir(parents=True)
    files = [
        base / "state.txt",
        base / "models" / "old.model",
        base / "ping_results" / "a.txt",
        base / "ping_results" / "nested" / "b.txt",
    ]
    for f in files:
        f.write_text("x")
    return files


# ---------- WorkspaceReset ----------

def test_reset_deletes_files_and_keeps_directories(tmp_path):
    base = tmp_path / "output"
    files = _populate(base)
    assert reset_workspace(base) == len(files)
    assert not any(f.exists() for f in files)
    assert (base / "ping_results" / "nested").is_dir()


def test_reset_missing_directory_deletes_nothing(tmp_path):
    assert reset_workspace(tmp_path / "missing") == 0


def test_reset_failure_raises_and_keeps_partial_state(tmp_path, monkeypatch):
    base = tmp_path / "output"
    _populate(base)
    real_remove = os.remove
    calls = []

    def flaky_remove(path, *args, **kwargs):
        calls.append(path)
        if len(calls) == 2:
            raise PermissionError(13, "Permission denied", path)
        return real_remove(path, *args, **kwargs)

    monkeypatch.setattr(os, "remove", flaky_remove)
    with pytest.raises(WorkspaceError) as excinfo:
        reset_workspace(base)
    assert "after deleting 1 files" in str(excinfo.value)
    assert excinfo.value.errno == 13
    assert not os.path.exists(calls[0])
    assert os.path.exists(calls[1])


# ---------- ModelBootstrap ----------

def test_bootstrap_writes_empty_model(make_config):
    workspace = Workspace(make_config())
    path = ModelBootstrap(workspace).bootstrap("Model from seeds.txt")
    assert path.parent == workspace.model_dir
    assert path.suffix == ".model"
    model = load_model(path)
    assert model.name == "Model from seeds.txt"
    assert model.digest_count == 0


def test_bootstrap_write_failure_is_workspace_error(make_config, monkeypatch):
    def broken_dump(obj, f):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(pickle, "dump", broken_dump)
    with pytest.raises(WorkspaceError):
        ModelBootstrap(Workspace(make_config())).bootstrap("m")


def test_load_model_rejects_other_pickles(tmp_path):
    path = tmp_path / "bogus.model"
    path.write_bytes(pickle.dumps({"name": "not a model"}))
    with pytest.raises(FormatError):
        load_model(path)


def test_load_model_corrupt_bytes_is_format_error(tmp_path):
    path = tmp_path / "corrupt.model"
    # unsupported protocol number: pickle raises ValueError, not UnpicklingError
    path.write_bytes(b"\x80\x09garbage")
    with pytest.raises(FormatError):
        load_model(path)


def test_most_recent_file(tmp_path):
    assert Workspace.most_recent_file(tmp_path / "missing") is None
    old = tmp_path / "old"
    new = tmp_path / "new"
    old.write_text("1")
    new.write_text("2")
    now = time.time()
    os.utime(old, (now - 100, now - 100))
    os.utime(new, (now, now))
    (tmp_path / "subdir").mkdir()
    assert Workspace.most_recent_file(tmp_path) == new


# ---------- PhaseStateStore ----------

def test_state_missing_file_reads_initial_phase(tmp_path):
    assert PhaseStateStore(tmp_path / "state.txt").read() is INITIAL_PHASE


def test_state_write_then_read(tmp_path):
    store = PhaseStateStore(tmp_path / "state.txt")
    store.write(PipelinePhase.UPDATE_MODEL)
    assert store.read() is PipelinePhase.UPDATE_MODEL
    assert (tmp_path / "state.txt").read_text() == "UPDATE_MODEL\n"
    assert [p.name for p in tmp_path.iterdir()] == ["state.txt"]


def test_state_unknown_value_is_format_error(tmp_path):
    path = tmp_path / "state.txt"
    path.write_text("7\n")
    with pytest.raises(FormatError):
        PhaseStateStore(path).read()


def test_state_advance_follows_transition_table(tmp_path):
    store = PhaseStateStore(tmp_path / "state.txt")
    assert store.advance(PipelinePhase.NETWORK_GROUP) is PipelinePhase.GEN_ADDRESSES
    assert store.read() is PipelinePhase.NETWORK_GROUP


def test_state_illegal_advance_leaves_file_untouched(tmp_path):
    store = PhaseStateStore(tmp_path / "state.txt")
    store.write(PipelinePhase.NETWORK_GROUP)
    with pytest.raises(IllegalTransition):
        store.advance(PipelinePhase.UPDATE_MODEL)
    with pytest.raises(IllegalTransition):
        store.advance(PipelinePhase.GEN_ADDRESSES)
    assert store.read() is PipelinePhase.NETWORK_GROUP


def test_transition_table_covers_every_phase():
    assert set(TRANSITIONS) == set(PipelinePhase)
    for phase, targets in TRANSITIONS.items():
        assert targets
        assert phase not in targets


def test_state_failed_rename_keeps_old_value(tmp_path, monkeypatch):
    store = PhaseStateStore(tmp_path / "state.txt")
    store.write(PipelinePhase.PING_ADDRESSES)

    def broken_replace(src, dst):
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(WorkspaceError):
        store.write(PipelinePhase.NETWORK_GROUP)
    monkeypatch.undo()
    assert store.read() is PipelinePhase.PING_ADDRESSES
    assert [p.name for p in tmp_path.iterdir()] == ["state.txt"]


# ---------- ResultWriter ----------

def test_writer_appends_binary(tmp_path):
    metrics = MetricsCollector()
    writer = ResultWriter(metrics)
    path = tmp_path / "results.bin"
    assert writer.append([ADDR_A, ADDR_B], path, "bin") == 2
    writer.append([ADDR_C], path, "bin")
    assert path.read_bytes() == ADDR_A.packed + ADDR_B.packed + ADDR_C.packed
    assert metrics.get_timer(WRITE_TIMER).count == 2
    assert metrics.counter(RECORDS_COUNTER) == 3


def test_writer_appends_text(tmp_path):
    path = tmp_path / "results.txt"
    path.write_text("2001:db8::ffff\n")
    ResultWriter().append([ADDR_A], path, "text")
    assert path.read_text() == "2001:db8::ffff\n2001:db8::1\n"


def test_writer_unknown_encoding_writes_text(tmp_path, caplog):
    path = tmp_path / "results"
    ResultWriter().append([ADDR_B], path, "json")
    assert path.read_text() == "2001:db8::2\n"
    assert "Defaulting to text" in caplog.text


def test_writer_failure_is_workspace_error(tmp_path):
    metrics = MetricsCollector()
    with pytest.raises(WorkspaceError):
        ResultWriter(metrics).append([ADDR_A], tmp_path / "missing" / "results.txt")
    assert metrics.counter(RECORDS_COUNTER) == 0


def test_writer_drops_locks_after_writing(tmp_path):
    writer = ResultWriter()
    for i in range(5):
        writer.append([ADDR_A], tmp_path / f"results_{i}.txt")
    with pytest.raises(WorkspaceError):
        writer.append([ADDR_A], tmp_path / "missing" / "results.txt")
    assert writer._locks == {}
