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
Execution of the container runtime with the terminal handed over to it.
"""
import shlex
import subprocess
import os
import sys
from typing import List, Optional

# Exit statuses the POSIX shell reports when a command cannot be run
COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126


class ProcessRunner:
    """
    Runs a single foreground process and passes its exit status through.
    """
    def __init__(self, name: str):
        """
        Initializes the process runner.

        Args:
            name (str): Identifier used as the prefix of diagnostic lines.
        """
        self.name = name
        self.process: Optional[subprocess.Popen] = None
        self.start_error: Optional[int] = None

    def exec(self, command: List[str]) -> int:
        """
        Replaces the current process with the command. Only returns if the
        command could not be started.

        Args:
            command (List[str]): Command and arguments to execute.

        Returns:
            int: 127 if the executable was not found, 126 if it is not executable.
        """
        self._announce(command)
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            os.execvp(command[0], command)
        except OSError as e:
            return self._failed(command, e)
        return 0

    def run(self, command: List[str]) -> int:
        """
        Starts the command with the inherited terminal and waits for it to exit.

        An interrupt from the terminal reaches the child through the foreground
        process group, so Ctrl+C only stops the wait once the child has exited.

        Args:
            command (List[str]): Command and arguments to execute.

        Returns:
            int: The child's exit code, or 128+N if it was killed by signal N.
        """
        self._announce(command)
        try:
            # Avoid shell=True for security reasons (CWE-78)
            self.process = subprocess.Popen(command, shell=False)
        except OSError as e:
            return self._failed(command, e)

        while True:
            try:
                self.process.wait()
                break
            except KeyboardInterrupt:
                continue
        return self.exit_status()

    def status(self) -> str:
        """
        Gets the current state of the process.

        Returns:
            str: 'not-started', 'running' or 'exited(N)'.
        """
        if self.start_error is not None:
            return f"exited({self.start_error})"
        if self.process is None:
            return "not-started"
        if self.process.poll() is None:
            return "running"
        return f"exited({self.exit_status()})"

    def is_running(self) -> bool:
        """
        Checks if the process is currently running.
        """
        return self.process is not None and self.process.poll() is None

    def exit_status(self) -> Optional[int]:
        """
        Gets the exit status as a shell would report it.

        Returns:
            Optional[int]: Exit status if the process finished, None otherwise.
        """
        if self.start_error is not None:
            return self.start_error
        if self.process is None:
            return None
        code = self.process.poll()
        if code is not None and code < 0:
            return 128 - code
        return code

    def _announce(self, command: List[str]):
        print(f"[{self.name}] Starting command: {' '.join(shlex.quote(arg) for arg in command)}", file=sys.stderr)

    def _failed(self, command: List[str], error: OSError) -> int:
        if isinstance(error, FileNotFoundError):
            self.start_error = COMMAND_NOT_FOUND
            print(f"[{self.name}] {command[0]}: command not found", file=sys.stderr)
        elif isinstance(error, PermissionError):
            self.start_error = COMMAND_NOT_EXECUTABLE
            print(f"[{self.name}] {command[0]}: permission denied", file=sys.stderr)
        else:
            raise error
        return self.start_error
