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
Managers for the environment passed into the cluster container.
"""
import os
from typing import Dict, Iterable, List, Optional
from dotenv import dotenv_values


class EnvironmentManager:
    """
    Merges container environment variables from .env files and explicit definitions.
    """
    def __init__(self, base_dir: str = ".", host_env: Optional[Dict[str, str]] = None):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        :param host_env: Host environment used for bare 'KEY' entries. Defaults to os.environ.
        """
        self.base_dir = base_dir
        self.host_env = dict(os.environ) if host_env is None else host_env

    def get_merged_environment(self,
                               explicit_env: Dict[str, str],
                               env_files: List[str]) -> Dict[str, str]:
        """
        Merges variables from the given .env files and explicit definitions.
        The host environment is not inherited wholesale.

        :param explicit_env: Explicitly defined variables; these win over file values.
        :param env_files: Paths to .env files, later files override earlier ones.
        :return: The merged environment, files first then explicit entries.
        :raises FileNotFoundError: If an env file does not exist.
        """
        merged: Dict[str, str] = {}
        for env_file in env_files:
            merged.update(self.load_file(env_file))
        merged.update(explicit_env)
        return merged

    def load_file(self, env_file: str) -> Dict[str, str]:
        """
        Loads one .env file. A bare 'KEY' line takes its value from the host
        environment and is dropped when the host does not define it.
        """
        if not isinstance(env_file, str):
            raise ValueError(f"Env file entry {env_file!r} must be a path")
        file_path = os.path.join(self.base_dir, env_file)
        if not os.path.isfile(file_path):
            raise FileNotFoundError(f"Env file {file_path} not found")

        env = {}
        for key, value in dotenv_values(file_path).items():
            if value is None:
                value = self.host_env.get(key)
                if value is None:
                    continue
            env[key] = value
        return env

    @staticmethod
    def parse_pairs(pairs: Iterable[str]) -> Dict[str, str]:
        """
        Parses KEY=VALUE strings as given on the command line.

        :raises ValueError: If a pair is not a string, has no '=' or has an empty key.
        """
        env = {}
        for pair in pairs:
            if not isinstance(pair, str):
                raise ValueError(f"Environment entry {pair!r} must be KEY=VALUE")
            if '=' not in pair:
                raise ValueError(f"Environment entry '{pair}' must be KEY=VALUE")
            key, value = pair.split('=', 1)
            if not key:
                raise ValueError(f"Environment entry '{pair}' has an empty name")
            env[key] = value
        return env
