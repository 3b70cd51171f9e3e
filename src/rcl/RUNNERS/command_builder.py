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
Construction of the container runtime invocation.
"""
import shlex
from typing import List
from ..MODELS.launch_config import LaunchConfig


class CommandBuilder:
    """
    Translates a LaunchConfig into the runtime's 'run' argument vector.
    """
    def build(self, config: LaunchConfig) -> List[str]:
        """
        Builds the full command, runtime executable first and image reference last.

        :param config: The launch configuration.
        :return: The argument vector.
        """
        command = [config.runtime, "run"]
        if config.remove:
            command.append("--rm")
        if config.init:
            command.append("--init")
        if config.tty:
            command.append("--tty")

        command += ["--name", config.name]

        for key, value in config.environment.items():
            command += ["-e", f"{key}={value}"]

        for mapping in config.ports:
            command += ["-p", mapping.publish_arg]

        command.append(config.image)
        return command

    def render(self, command: List[str]) -> str:
        """
        Renders an argument vector as a copy-pasteable shell command line.
        """
        return " ".join(shlex.quote(arg) for arg in command)
