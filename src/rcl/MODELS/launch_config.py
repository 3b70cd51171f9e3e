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
Models for the launch configuration of the Redis cluster container.
"""
import re
from typing import List, Dict, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator

from ..REGISTRY.image_reference import ImageReference

CLUSTER_PORTS = range(7000, 7006)

_CONTAINER_NAME = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_.-]*")


class PortMapping(BaseModel):
    """
    A single published TCP port: host port -> container port.
    """
    host: int
    container: int
    host_ip: Optional[str] = None

    @field_validator('host', 'container')
    @classmethod
    def _check_range(cls, port: int) -> int:
        if not 1 <= port <= 65535:
            raise ValueError(f"Port {port} is out of range (1-65535)")
        return port

    @property
    def publish_arg(self) -> str:
        """Value for the runtime's -p flag."""
        if self.host_ip:
            return f"{self.host_ip}:{self.host}:{self.container}"
        return f"{self.host}:{self.container}"


def default_ports() -> List[PortMapping]:
    return [PortMapping(host=port, container=port) for port in CLUSTER_PORTS]


class LaunchConfig(BaseModel):
    """
    Everything needed to start the cluster container.
    The defaults reproduce the stock invocation of grokzen/redis-cluster.
    """
    runtime: str = "docker"

    # Run flags
    remove: bool = True
    init: bool = True
    tty: bool = True

    name: str = "redis-cluster"
    environment: Dict[str, str] = Field(default_factory=lambda: {"IP": "127.0.0.1"})
    ports: List[PortMapping] = Field(default_factory=default_ports)
    image: str = "grokzen/redis-cluster:latest"

    @field_validator('runtime')
    @classmethod
    def _check_runtime(cls, runtime: str) -> str:
        if not runtime.strip():
            raise ValueError("Container runtime must not be empty")
        return runtime

    @field_validator('name')
    @classmethod
    def _check_name(cls, name: str) -> str:
        if not _CONTAINER_NAME.fullmatch(name):
            raise ValueError(f"Invalid container name '{name}'")
        return name

    @field_validator('environment')
    @classmethod
    def _check_environment(cls, environment: Dict[str, str]) -> Dict[str, str]:
        for key in environment:
            if not key or '=' in key:
                raise ValueError(f"Invalid environment variable name '{key}'")
        return environment

    @field_validator('image')
    @classmethod
    def _check_image(cls, image: str) -> str:
        ImageReference.parse(image)
        return image

    @model_validator(mode='after')
    def _check_unique_host_ports(self) -> 'LaunchConfig':
        # An unbound mapping listens on every address, so it collides with any other on its port
        bound: Dict[int, set] = {}
        for mapping in self.ports:
            address = mapping.host_ip or "0.0.0.0"
            addresses = bound.setdefault(mapping.host, set())
            if addresses and (address in addresses or "0.0.0.0" in addresses or address == "0.0.0.0"):
                raise ValueError(f"Host port {mapping.host} is published more than once")
            addresses.add(address)
        return self

    @property
    def image_reference(self) -> ImageReference:
        return ImageReference.parse(self.image)

    @property
    def advertised_ip(self) -> str:
        """The address the cluster nodes announce, falling back to loopback."""
        return self.environment.get("IP") or "127.0.0.1"

    def endpoints(self) -> List[Tuple[str, int]]:
        """
        The (host, port) pairs a client on this machine connects to.
        """
        endpoints = []
        for mapping in self.ports:
            host = mapping.host_ip
            if not host or host == "0.0.0.0":
                host = self.advertised_ip
            endpoints.append((host, mapping.host))
        return endpoints

    def node_urls(self) -> List[str]:
        """
        Seed URLs for cluster clients, one per published port.
        """
        return [f"redis://{host}:{port}/" for host, port in self.endpoints()]
