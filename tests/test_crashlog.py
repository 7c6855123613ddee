import pytest

from utils import crashlog


@pytest.fixture(autouse=True)
def isolated(tmp_path):
    crashlog.configure(str(tmp_path / "logs"))
    yield
    crashlog.configure(None)
    crashlog.set_context(None)


def _fail() -> RuntimeError:
    try:
        raise RuntimeError("queue drained")
    except RuntimeError as e:
        return e


def test_log_dir_follows_config(tmp_path) -> None:
    assert crashlog.log_dir() == str(tmp_path / "logs")
    assert (tmp_path / "logs").is_dir()


def test_error_report_carries_session_context(tmp_path) -> None:
    crashlog.set_context(lambda: {"seed": 7, "queue": "B(treble,0)#0"})
    path = crashlog.log_exception("App.run", _fail())
    text = open(path, encoding="utf-8").read()
    assert path.startswith(str(tmp_path / "logs"))
    assert "[App.run] RuntimeError: queue drained" in text
    assert "seed: 7" in text
    assert "queue: B(treble,0)#0" in text
    assert "Traceback" in text


def test_broken_context_still_writes_report() -> None:
    def boom():
        raise KeyError("snapshot")

    crashlog.set_context(boom)
    text = open(crashlog.log_exception("x", _fail()), encoding="utf-8").read()
    assert "session context unavailable" in text
    assert "RuntimeError: queue drained" in text


def test_reports_do_not_overwrite_each_other() -> None:
    a = crashlog.log_exception("a", _fail())
    b = crashlog.log_exception("b", _fail())
    assert a != b
