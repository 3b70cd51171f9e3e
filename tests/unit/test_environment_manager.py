import pytest
from rcl.MANAGERS.environment_manager import EnvironmentManager


def test_explicit_overrides_file(tmp_path):
    (tmp_path / "cluster.env").write_text('IP=10.0.0.5\nINITIAL_PORT="7000"\n# comment\n')
    manager = EnvironmentManager(str(tmp_path), host_env={})
    env = manager.get_merged_environment({"IP": "127.0.0.1"}, ["cluster.env"])
    assert env == {"IP": "127.0.0.1", "INITIAL_PORT": "7000"}


def test_later_files_win(tmp_path):
    (tmp_path / "a.env").write_text("MASTERS=3\n")
    (tmp_path / "b.env").write_text("MASTERS=4\n")
    env = EnvironmentManager(str(tmp_path), host_env={}).get_merged_environment({}, ["a.env", "b.env"])
    assert env["MASTERS"] == "4"


def test_host_environment_not_inherited(tmp_path):
    env = EnvironmentManager(str(tmp_path), host_env={"HOME": "/root"}).get_merged_environment({}, [])
    assert env == {}


def test_bare_key_uses_host_value(tmp_path):
    (tmp_path / "pass.env").write_text("SENTINEL\nMISSING\n")
    manager = EnvironmentManager(str(tmp_path), host_env={"SENTINEL": "true"})
    assert manager.load_file("pass.env") == {"SENTINEL": "true"}


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        EnvironmentManager(str(tmp_path)).load_file("nope.env")


def test_parse_pairs():
    assert EnvironmentManager.parse_pairs(["A=1", "B=x=y", "C="]) == {"A": "1", "B": "x=y", "C": ""}


@pytest.mark.parametrize("pair", ["A", "=1"])
def test_parse_pairs_invalid(pair):
    with pytest.raises(ValueError):
        EnvironmentManager.parse_pairs([pair])
