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
Image reference parsing and validation.
Parses references like 'grokzen/redis-cluster:latest' or 'localhost:5000/redis-cluster@sha256:...'.
"""

import re
from typing import Optional
from dataclasses import dataclass


_COMPONENT = re.compile(r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*")
_TAG = re.compile(r"[\w][\w.-]{0,127}")
_DIGEST = re.compile(r"[a-z0-9]+(?:[+._-][a-z0-9]+)*:[0-9a-fA-F]{32,}")


@dataclass
class ImageReference:
    """
    Parsed container image reference.

    Examples:
        - grokzen/redis-cluster -> docker.io/grokzen/redis-cluster:latest
        - redis:7 -> docker.io/library/redis:7
        - localhost:5000/redis-cluster:6.2 -> localhost:5000/redis-cluster:6.2
    """

    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    DEFAULT_REGISTRY = "docker.io"
    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse and validate an image reference string.

        Args:
            reference: Image reference string (e.g., 'grokzen/redis-cluster:latest')

        Returns:
            Parsed ImageReference object.

        Raises:
            ValueError: If the reference is empty or malformed.
        """
        if not reference or not reference.strip():
            raise ValueError("Empty image reference")
        original = reference
        if reference != reference.strip() or " " in reference:
            raise ValueError(f"Invalid image reference '{original}': contains whitespace")

        digest = None
        if "@" in reference:
            reference, digest = reference.rsplit("@", 1)
            if not _DIGEST.fullmatch(digest):
                raise ValueError(f"Invalid digest '{digest}' in image reference '{original}'")

        tag = None
        last_colon = reference.rfind(":")
        if last_colon != -1:
            after_colon = reference[last_colon + 1 :]
            # localhost:5000/image has a port, not a tag
            if "/" not in after_colon:
                tag = after_colon
                reference = reference[:last_colon]
                if not _TAG.fullmatch(tag):
                    raise ValueError(f"Invalid tag '{tag}' in image reference '{original}'")

        parts = reference.split("/")
        first_part = parts[0]
        if len(parts) > 1 and ("." in first_part or ":" in first_part or first_part == "localhost"):
            registry = first_part
            path = parts[1:]
        else:
            registry = cls.DEFAULT_REGISTRY
            path = parts if len(parts) > 1 else ["library", parts[0]]

        for component in path:
            if not _COMPONENT.fullmatch(component):
                raise ValueError(f"Invalid repository component '{component}' in image reference '{original}'")

        if not tag and not digest:
            tag = cls.DEFAULT_TAG

        return cls(registry=registry, repository="/".join(path), tag=tag, digest=digest)

    @property
    def pinned(self) -> bool:
        """True when the reference names an immutable digest rather than a tag."""
        return self.digest is not None

    @property
    def full_name(self) -> str:
        """Get full image name with registry."""
        name = f"{self.registry}/{self.repository}"
        if self.tag:
            name = f"{name}:{self.tag}"
        if self.digest:
            name = f"{name}@{self.digest}"
        return name

    @property
    def short_name(self) -> str:
        """Get short image name (without registry if default)."""
        if self.registry != self.DEFAULT_REGISTRY:
            return self.full_name
        repo = self.repository
        if repo.startswith("library/"):
            repo = repo[len("library/"):]
        if self.tag:
            repo = f"{repo}:{self.tag}"
        if self.digest:
            repo = f"{repo}@{self.digest}"
        return repo

    def __str__(self) -> str:
        return self.short_name

    def __repr__(self) -> str:
        return f"ImageReference({self.full_name})"
