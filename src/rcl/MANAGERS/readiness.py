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
Readiness polling for the published cluster ports.
"""
import sys
import time
from typing import Callable, List, Tuple
from tenacity import Retrying, retry_if_result, stop_after_delay, wait_fixed

from ..MODELS.launch_config import LaunchConfig
from ..UTILS.port_finder import accepts_connections


class ReadinessProbe:
    """
    Waits until every published host port of the cluster accepts TCP connections.
    """
    def __init__(self,
                 config: LaunchConfig,
                 timeout: float = 60.0,
                 interval: float = 1.0,
                 probe: Callable[[str, int], bool] = accepts_connections,
                 sleep: Callable[[float], None] = time.sleep):
        """
        :param config: Launch configuration whose ports are probed.
        :param timeout: Seconds to keep retrying before giving up.
        :param interval: Seconds between attempts.
        :param probe: Check for a single (host, port) endpoint.
        :param sleep: Sleep function used between attempts.
        """
        self.config = config
        self.timeout = timeout
        self.interval = interval
        self.probe = probe
        self.sleep = sleep

    def pending(self) -> List[Tuple[str, int]]:
        """
        Endpoints that do not accept connections yet.
        """
        return [(host, port) for host, port in self.config.endpoints() if not self.probe(host, port)]

    def wait(self) -> List[Tuple[str, int]]:
        """
        Polls until all endpoints are up or the timeout expires.

        An open port only means the node process is listening. It says nothing
        about whether the nodes have finished joining the cluster.

        :return: Endpoints still down when polling stopped; empty when ready.
        """
        retrying = Retrying(
            stop=stop_after_delay(self.timeout),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(bool),
            before_sleep=self._report,
            retry_error_callback=lambda state: state.outcome.result(),
            sleep=self.sleep,
        )
        return retrying(self.pending)

    def _report(self, retry_state):
        down = retry_state.outcome.result()
        ports = ", ".join(str(port) for _, port in down)
        print(f"[{self.config.name}] Waiting for ports: {ports}", file=sys.stderr)
