# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for configuration loading and precedence.
"""
import pytest
from rcl.PARSERS.config_parser import ConfigParser


def ports_of(config):
    return [(m.host, m.container) for m in config.ports]


class TestConfigParser:
    """Tests for ConfigParser."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = ConfigParser(context={}).load(str(tmp_path / "rcl.yml"))
        assert config.name == "redis-cluster"
        assert config.environment == {"IP": "127.0.0.1"}
        assert ports_of(config) == [(p, p) for p in range(7000, 7006)]

    def test_no_path_gives_defaults(self):
        config = ConfigParser(context={}).load(None)
        assert config.image == "grokzen/redis-cluster:latest"

    def test_empty_file(self):
        config = ConfigParser(context={}).parse_from_string("")
        assert config.name == "redis-cluster"

    def test_file_values(self, tmp_path):
        path = tmp_path / "rcl.yml"
        path.write_text(
            "name: cluster-b\n"
            "image: grokzen/redis-cluster:6.2.0\n"
            "tty: false\n"
            "environment:\n"
            "  INITIAL_PORT: 8000\n"
            "ports:\n"
            "  - 8000-8005\n"
        )
        config = ConfigParser(context={}).load(str(path))
        assert config.name == "cluster-b"
        assert config.image == "grokzen/redis-cluster:6.2.0"
        assert config.tty is False
        assert config.remove is True
        assert config.environment == {"IP": "127.0.0.1", "INITIAL_PORT": "8000"}
        assert ports_of(config) == [(p, p) for p in range(8000, 8006)]

    def test_environment_list_form(self):
        config = ConfigParser(context={}).parse_from_string("environment: [IP=0.0.0.0, MASTERS=3]")
        assert config.environment == {"IP": "0.0.0.0", "MASTERS": "3"}

    def test_port_dict_form(self):
        config = ConfigParser(context={}).parse_from_string(
            "ports:\n  - target: 7000\n    published: 17000\n  - target: 7001\n")
        assert ports_of(config) == [(17000, 7000), (7001, 7001)]

    def test_port_dict_without_target(self):
        with pytest.raises(ValueError):
            ConfigParser(context={}).parse_from_string("ports:\n  - published: 17000\n")

    def test_env_file_relative_to_config(self, tmp_path):
        (tmp_path / "cluster.env").write_text("MASTERS=3\n")
        path = tmp_path / "rcl.yml"
        path.write_text("env_file: cluster.env\n")
        config = ConfigParser(context={}).load(str(path))
        assert config.environment["MASTERS"] == "3"

    def test_env_vars_override_file(self):
        context = {
            "RCL_NAME": "from-env",
            "RCL_IP": "10.0.0.1",
            "RCL_PORTS": "7000-7002",
            "RCL_RUNTIME": "podman",
            "RCL_IMAGE": "grokzen/redis-cluster:7.0.10",
        }
        config = ConfigParser(context=context).parse_from_string("name: from-file\nenvironment: {IP: 1.1.1.1}\n")
        assert config.name == "from-env"
        assert config.runtime == "podman"
        assert config.image == "grokzen/redis-cluster:7.0.10"
        assert config.environment["IP"] == "10.0.0.1"
        assert ports_of(config) == [(7000, 7000), (7001, 7001), (7002, 7002)]

    def test_overrides_win(self, tmp_path):
        (tmp_path / "extra.env").write_text("MASTERS=4\n")
        context = {"RCL_NAME": "from-env", "RCL_IP": "10.0.0.1", "RCL_PORTS": "7000"}
        overrides = {
            "name": "from-cli",
            "ip": "192.168.1.10",
            "ports": ["9000-9001"],
            "environment": {"SLAVES_PER_MASTER": "2"},
            "env_files": [str(tmp_path / "extra.env")],
            "remove": False,
            "init": None,
        }
        config = ConfigParser(context=context).parse_from_string("", overrides)
        assert config.name == "from-cli"
        assert config.remove is False
        assert config.init is True
        assert config.environment == {"IP": "192.168.1.10", "MASTERS": "4", "SLAVES_PER_MASTER": "2"}
        assert ports_of(config) == [(9000, 9000), (9001, 9001)]

    @pytest.mark.parametrize("content", [
        "- just\n- a list\n",
        "name: [unclosed\n",
        "ports: [abc]\n",
        "name: 'bad name'\n",
        "environment: 5\n",
        "environment: [5]\n",
        "env_file: [1]\n",
        "env_file: {a: b}\n",
        "ports: 3.5\n",
        "name: \"redis-cluster\\n\"\n",
    ])
    def test_invalid_content(self, content):
        with pytest.raises(ValueError):
            ConfigParser(context={}).parse_from_string(content)

    def test_missing_env_file(self):
        with pytest.raises(FileNotFoundError):
            ConfigParser(context={}).parse_from_string("env_file: [missing.env]\n")
