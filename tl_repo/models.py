#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translation repository data model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from utils.core.paths import repo_path_to_fs


@dataclass(frozen=True)
class RepoFile:
    """One file listed by the repository manifest"""
    path: str
    hash: str
    size: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RepoFile":
        return cls(path=str(data["path"]), hash=str(data["hash"]).lower(), size=int(data["size"]))

    def fs_path(self, root_dir: Path) -> Path:
        return repo_path_to_fs(root_dir, self.path)


@dataclass
class RepoIndex:
    """Remote manifest: where files live and what they should hash to"""
    base_url: str
    zip_url: str
    zip_dir: str
    files: List[RepoFile] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RepoIndex":
        """Build an index from the decoded manifest

        Raises:
            KeyError, TypeError, ValueError: on a malformed manifest
        """
        return cls(
            base_url=str(data["base_url"]),
            zip_url=str(data["zip_url"]),
            zip_dir=str(data["zip_dir"]),
            files=[RepoFile.from_json(entry) for entry in data["files"]],
        )


@dataclass
class RepoCache:
    """Last verified hash of every file, plus the repository they came from"""
    base_url: str = ""
    files: Dict[str, str] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {"base_url": self.base_url, "files": dict(sorted(self.files.items()))}


class Strategy(Enum):
    INCREMENTAL = "incremental"
    ARCHIVE = "archive"


@dataclass
class UpdatePlan:
    """What a confirmed run will fetch and how"""
    is_new_repo: bool
    base_url: str
    zip_url: str
    zip_dir: str
    files: List[RepoFile]
    cached_files: Dict[str, str]
    update_size: int
    total_size: int
    strategy: Strategy = Strategy.INCREMENTAL
    large_overhead: bool = False

    @property
    def transfer_size(self) -> int:
        """Bytes the chosen strategy is expected to download"""
        return self.total_size if self.strategy is Strategy.ARCHIVE else self.update_size

    @property
    def is_empty(self) -> bool:
        return not self.files


@dataclass
class TransferOutcome:
    """Result of one worker pool run"""
    verified: Dict[str, str] = field(default_factory=dict)
    soft_errors: int = 0
    fatal_error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.fatal_error is not None
