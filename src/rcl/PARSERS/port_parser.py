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
Parser for port-publish expressions.

Accepted forms, optionally comma separated:
    7000                      -> 7000:7000
    17000:7000                -> host 17000, container 7000
    7000-7005                 -> 7000:7000 ... 7005:7005
    17000-17005:7000-7005     -> 17000:7000 ... 17005:7005
    127.0.0.1:7000:7000       -> bound to a single host address
"""
from typing import Iterable, List, Optional, Tuple
from ..MODELS.launch_config import PortMapping


class PortParser:
    """
    Turns textual port expressions into PortMapping lists.
    """
    @staticmethod
    def parse(expression: str) -> List[PortMapping]:
        """
        Parses a single (possibly comma separated) port expression.

        :param expression: The port expression.
        :return: Port mappings in the order they were written.
        :raises ValueError: If the expression is malformed.
        """
        mappings = []
        for item in expression.split(','):
            item = item.strip()
            if not item:
                raise ValueError(f"Empty port entry in '{expression}'")
            mappings.extend(PortParser._parse_item(item))
        return mappings

    @staticmethod
    def parse_all(expressions: Iterable[str]) -> List[PortMapping]:
        """
        Parses several expressions, e.g. repeated -p options.
        """
        mappings = []
        for expression in expressions:
            mappings.extend(PortParser.parse(str(expression)))
        return mappings

    @staticmethod
    def _parse_item(item: str) -> List[PortMapping]:
        parts = item.split(':')
        host_ip: Optional[str] = None
        if len(parts) == 3:
            host_ip, host_part, container_part = parts
            if not host_ip:
                raise ValueError(f"Empty host address in port entry '{item}'")
        elif len(parts) == 2:
            host_part, container_part = parts
        elif len(parts) == 1:
            host_part = container_part = parts[0]
        else:
            raise ValueError(f"Invalid port entry '{item}'")

        host_ports = PortParser._parse_range(host_part, item)
        container_ports = PortParser._parse_range(container_part, item)
        if len(host_ports) != len(container_ports):
            raise ValueError(f"Host and container port ranges differ in size in '{item}'")

        return [PortMapping(host=h, container=c, host_ip=host_ip)
                for h, c in zip(host_ports, container_ports)]

    @staticmethod
    def _parse_range(text: str, item: str) -> List[int]:
        start, end = PortParser._bounds(text, item)
        if not (1 <= start and end <= 65535):
            raise ValueError(f"Port range {start}-{end} is out of range (1-65535) in '{item}'")
        if end < start:
            raise ValueError(f"Port range {start}-{end} is reversed in '{item}'")
        return list(range(start, end + 1))

    @staticmethod
    def _bounds(text: str, item: str) -> Tuple[int, int]:
        try:
            if '-' in text:
                low, high = text.split('-', 1)
                return int(low), int(high)
            port = int(text)
            return port, port
        except ValueError:
            raise ValueError(f"Invalid port '{text}' in '{item}'") from None
