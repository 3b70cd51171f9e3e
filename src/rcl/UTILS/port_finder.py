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
Utilities for checking availability of host ports.
"""
import socket
from typing import Optional, Tuple
import psutil


def is_port_free(port: int, host: str = '') -> bool:
    """
    Checks if a TCP port can be bound on the host.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


def find_port_owner(port: int) -> Optional[Tuple[int, str]]:
    """
    Finds the process listening on a TCP port.

    :return: (pid, process name), or None if unknown or not visible to this user.
    """
    try:
        connections = psutil.net_connections(kind='tcp')
    except psutil.AccessDenied:
        return None

    for conn in connections:
        if conn.status != psutil.CONN_LISTEN or not conn.laddr or conn.laddr.port != port:
            continue
        if conn.pid is None:
            return None
        try:
            return conn.pid, psutil.Process(conn.pid).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return conn.pid, "?"
    return None


def accepts_connections(host: str, port: int, timeout: float = 1.0) -> bool:
    """
    Checks if something accepts TCP connections on host:port.
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False
