"""Result models for git subcommands."""

from typing import Optional

from .base import ShapeModel, derive_compact_model


class GitStagedFile(ShapeModel):
    file: str
    status: str
    old_file: Optional[str] = None


class GitStatusResult(ShapeModel):
    success: bool
    branch: Optional[str] = None
    upstream: Optional[str] = None
    ahead: int = 0
    behind: int = 0
    staged: list[GitStagedFile] = []
    modified: list[str] = []
    deleted: list[str] = []
    untracked: list[str] = []
    conflicts: list[str] = []
    clean: Optional[bool] = None
    error: Optional[str] = None


GitStatusResultCompact = derive_compact_model(
    GitStatusResult, drop=("staged",), add={"staged_files": (list[str], [])}
)


class GitCommit(ShapeModel):
    hash: str
    hash_short: str
    author: str
    email: str
    date: str
    message: str
    refs: Optional[str] = None


class GitCommitSummary(ShapeModel):
    hash_short: str
    message: str
    refs: Optional[str] = None


class GitLogResult(ShapeModel):
    success: bool
    total: int = 0
    commits: list[GitCommit] = []
    error: Optional[str] = None


GitLogResultCompact = derive_compact_model(
    GitLogResult, drop=("commits",), add={"summaries": (list[GitCommitSummary], [])}
)


class GitDiffFile(ShapeModel):
    file: str
    status: str
    additions: int
    deletions: int
    binary: Optional[bool] = None
    old_file: Optional[str] = None


class GitFileStat(ShapeModel):
    file: str
    additions: int
    deletions: int


class GitDiffResult(ShapeModel):
    success: bool
    total_files: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    files: list[GitDiffFile] = []
    error: Optional[str] = None


GitDiffResultCompact = derive_compact_model(
    GitDiffResult, drop=("files",), add={"file_stats": (list[GitFileStat], [])}
)


class GitBranchEntry(ShapeModel):
    name: str
    current: bool = False


class GitBranchResult(ShapeModel):
    success: bool
    total: int = 0
    current: Optional[str] = None
    branches: list[GitBranchEntry] = []
    error: Optional[str] = None


GitBranchResultCompact = derive_compact_model(
    GitBranchResult, drop=("branches",), add={"names": (list[str], [])}
)
