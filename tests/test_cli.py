import sys

import pytest

from mailprobe.cli import chunk_emails, dial_tool, main, verify_flags


def test_chunk_emails_splits_with_short_tail():
    emails = [f"u{n}@example.com" for n in range(5)]
    chunks = chunk_emails(emails, 2)
    assert [len(chunk) for chunk in chunks] == [2, 2, 1]
    assert [email for chunk in chunks for email in chunk] == emails


def test_chunk_emails_empty_input():
    assert chunk_emails([], 100) == []


def test_chunk_emails_larger_than_input():
    assert chunk_emails(["a@example.com"], 100) == [["a@example.com"]]


@pytest.mark.parametrize("size", [0, -1])
def test_chunk_emails_rejects_non_positive_size(size):
    with pytest.raises(ValueError):
        chunk_emails(["a@example.com"], size)


@pytest.mark.parametrize(
    "mode, flags",
    [
        ("smtp", (True, True, True)),
        ("mx", (True, True, False)),
        ("regex", (True, False, False)),
        ("", (True, True, True)),
        ("anything", (True, True, True)),
    ],
)
def test_verify_flags(mode, flags):
    assert verify_flags(mode) == flags


def test_dial_tool_returns_output():
    output = dial_tool(sys.executable, ["-c", "print('dialled')"], retries=1, delay=0)
    assert output.strip() == "dialled"


def test_dial_tool_gives_up_after_retries(capsys):
    with pytest.raises(RuntimeError, match="2"):
        dial_tool(sys.executable, ["-c", "import sys; sys.exit(3)"], retries=2, delay=0)
    assert capsys.readouterr().out.count("执行失败") == 2


def test_dial_tool_missing_command():
    with pytest.raises(RuntimeError):
        dial_tool("mailprobe-no-such-command", None, retries=1, delay=0)


def test_main_reports_missing_data(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    missing = tmp_path / "missing.txt"
    (config_dir / "config.yml").write_text(
        "app:\n  mode: release\n  chunksize: 10\n"
        f"data:\n  path: {missing}\n  whitelist: {missing}\n  blacklist: {missing}\n",
        encoding="utf-8",
    )
    log_dir = tmp_path / "logs"
    assert main(["--config", str(config_dir), "--log-dir", str(log_dir)]) == 1
    logs = list(log_dir.glob("*.log"))
    assert len(logs) == 1
    assert "邮箱数据读取失败" in logs[0].read_text(encoding="utf-8")


def test_main_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        main(["--config", str(tmp_path), "--log-dir", str(tmp_path / "logs")])