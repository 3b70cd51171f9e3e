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
Loading of the launcher configuration from rcl.yml, RCL_* variables and overrides.
"""
import os
import yaml
from typing import Any, Dict, List, Optional
from ..MODELS.launch_config import LaunchConfig, PortMapping
from ..MANAGERS.environment_manager import EnvironmentManager
from .port_parser import PortParser

ENV_PREFIX = "RCL_"
FLAG_FIELDS = ('remove', 'init', 'tty')


class ConfigParser:
    """
    Builds a LaunchConfig from defaults < config file < RCL_* variables < explicit overrides.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None, base_dir: str = "."):
        """
        Initializes the parser.

        :param context: Variables consulted for RCL_* overrides. Defaults to os.environ.
        :param base_dir: Directory that relative env_file paths are resolved against.
        """
        self.context = dict(os.environ) if context is None else context
        self.base_dir = base_dir
        self.env_manager = EnvironmentManager(base_dir, host_env=self.context)

    def load(self, config_path: Optional[str] = None,
             overrides: Optional[Dict[str, Any]] = None) -> LaunchConfig:
        """
        Loads the configuration. A missing config file means built-in defaults.

        :param config_path: Path to the YAML config file.
        :param overrides: Values given on the command line; None entries are ignored.
        :return: The validated configuration.
        """
        data: Dict[str, Any] = {}
        file_dir = self.base_dir
        if config_path and os.path.exists(config_path):
            with open(config_path, 'r') as f:
                data = self._read_yaml(f.read(), config_path)
            # env_file entries are relative to the file that names them
            file_dir = os.path.dirname(os.path.abspath(config_path))
        file_env = self._file_environment(data, file_dir)
        return self._build(data, file_env, overrides or {})

    def parse_from_string(self, content: str,
                          overrides: Optional[Dict[str, Any]] = None) -> LaunchConfig:
        """
        Parses YAML configuration content.

        :param content: YAML content of the config file.
        :param overrides: Values given on the command line.
        :return: The validated configuration.
        """
        data = self._read_yaml(content, "<string>")
        return self._build(data, self._file_environment(data, self.base_dir), overrides or {})

    def _read_yaml(self, content: str, source: str) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"Cannot parse {source}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{source} must contain a mapping at the top level")
        return data

    def _file_environment(self, data: Dict[str, Any], base_dir: str) -> Dict[str, str]:
        environment = data.get('environment') or {}
        if isinstance(environment, list):
            environment = EnvironmentManager.parse_pairs(environment)
        elif not isinstance(environment, dict):
            raise ValueError("'environment' must be a mapping or a list of KEY=VALUE")
        return EnvironmentManager(base_dir, host_env=self.context).get_merged_environment(
            {str(k): "" if v is None else str(v) for k, v in environment.items()},
            self._to_list(data.get('env_file')),
        )

    def _build(self, data: Dict[str, Any], file_env: Dict[str, str],
               overrides: Dict[str, Any]) -> LaunchConfig:
        fields: Dict[str, Any] = {}

        for key in ('runtime', 'name', 'image') + FLAG_FIELDS:
            if data.get(key) is not None:
                fields[key] = data[key]

        env_vars = {
            'runtime': self.context.get(f"{ENV_PREFIX}RUNTIME"),
            'name': self.context.get(f"{ENV_PREFIX}NAME"),
            'image': self.context.get(f"{ENV_PREFIX}IMAGE"),
        }
        for key, value in env_vars.items():
            if value:
                fields[key] = value

        for key in ('runtime', 'name', 'image') + FLAG_FIELDS:
            if overrides.get(key) is not None:
                fields[key] = overrides[key]

        # Environment
        environment = dict(LaunchConfig.model_fields['environment'].default_factory())
        environment.update(file_env)
        if self.context.get(f"{ENV_PREFIX}IP"):
            environment['IP'] = self.context[f"{ENV_PREFIX}IP"]
        environment.update(self.env_manager.get_merged_environment(
            overrides.get('environment') or {},
            self._to_list(overrides.get('env_files')),
        ))
        if overrides.get('ip'):
            environment['IP'] = overrides['ip']
        fields['environment'] = environment

        # Ports, the most specific source replaces the others
        ports = self._ports(data.get('ports'))
        if self.context.get(f"{ENV_PREFIX}PORTS"):
            ports = PortParser.parse(self.context[f"{ENV_PREFIX}PORTS"])
        if overrides.get('ports'):
            ports = PortParser.parse_all(overrides['ports'])
        if ports is not None:
            fields['ports'] = ports

        return LaunchConfig(**fields)

    def _ports(self, spec: Any) -> Optional[List[PortMapping]]:
        if spec is None:
            return None
        mappings = []
        for p in self._to_list(spec):
            if isinstance(p, dict):
                if 'target' not in p:
                    raise ValueError(f"Port entry {p} has no 'target'")
                mappings.append(PortMapping(host=p.get('published', p['target']),
                                            container=p['target'],
                                            host_ip=p.get('host_ip')))
            else:
                mappings.extend(PortParser.parse(str(p)))
        return mappings

    def _to_list(self, val: Any) -> List[Any]:
        """
        Helper to ensure a value is a list.
        """
        if val is None:
            return []
        if isinstance(val, (list, tuple)):
            return list(val)
        return [val]
