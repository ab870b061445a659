# src/toolshape/tools/git.py
"""Parsers for machine-oriented git output: porcelain status, delimited log, numstat, branch list."""

import logging
import re
from typing import Any, Optional

from ..core.textutil import clean_lines, plural, strip_ansi, to_int
from ..core.types import RawCapture
from ..schemas.vcs import (
    GitBranchEntry,
    GitBranchResult,
    GitBranchResultCompact,
    GitCommit,
    GitDiffFile,
    GitDiffResult,
    GitDiffResultCompact,
    GitLogResult,
    GitLogResultCompact,
    GitStagedFile,
    GitStatusResult,
    GitStatusResultCompact,
)
from .base import CLEAN, ToolAdapter

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

STATUS_NAMES = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "T": "modified",
}
CONFLICT_CODES = {"UU", "AA", "DD", "AU", "UA", "DU", "UD"}

AHEAD_RE = re.compile(r"ahead (\d+)")
BEHIND_RE = re.compile(r"behind (\d+)")
NUMSTAT_RE = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")
NAME_STATUS_RE = re.compile(r"^([ACDMRTU])\d*\t(.+)$")
BRACE_RENAME_RE = re.compile(r"^(.*)\{(.*) => (.*)\}(.*)$")
PLAIN_RENAME_RE = re.compile(r"^(.+) => (.+)$")


def _unquote(path: str) -> str:
    path = path.strip()
    if len(path) >= 2 and path[0] == path[-1] == '"':
        return path[1:-1]
    return path


def _git_error(capture: RawCapture) -> Optional[str]:
    text = strip_ansi(capture.stderr).strip() or strip_ansi(capture.stdout).strip()
    return text or None


def _first_line(text: Optional[str]) -> str:
    return (text or "").strip().split("\n")[0]


class GitAdapter(ToolAdapter):
    """Every git subcommand exits 0 on success; 128 and friends are fatal."""

    exit_codes = {0: CLEAN}

    def failed_sentence(self, result) -> Optional[str]:
        if result.success:
            return None
        command = self.name.replace("-", " ")
        if result.error:
            return f"{command} failed: {_first_line(result.error)}"
        return f"{command} failed."


class GitStatusTool(GitAdapter):
    """Parses `git status --porcelain=v1 --branch`."""

    name = "git-status"
    description = "Show the working tree status"
    variants = {None: (GitStatusResult, GitStatusResultCompact)}

    @staticmethod
    def _branch_header(header: str) -> dict[str, Any]:
        # "## main...origin/main [ahead 2, behind 1]", "## main", "## No commits yet on main"
        text = header[3:].strip()
        for prefix in ("No commits yet on ", "Initial commit on "):
            if text.startswith(prefix):
                return {"branch": text[len(prefix):].strip()}
        if "..." not in text:
            if text.startswith("HEAD (no branch)"):
                return {"branch": "HEAD"}
            return {"branch": text.split(" ")[0]}
        name, rest = text.split("...", 1)
        ahead = AHEAD_RE.search(rest)
        behind = BEHIND_RE.search(rest)
        return {
            "branch": name,
            "upstream": rest.split(" ")[0] or None,
            "ahead": to_int(ahead.group(1)) if ahead else 0,
            "behind": to_int(behind.group(1)) if behind else 0,
        }

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> GitStatusResult:
        if not self.exit_success(capture.exit_code):
            return GitStatusResult(success=False, error=_git_error(capture))

        header: dict[str, Any] = {}
        staged, modified, deleted, untracked, conflicts = [], [], [], [], []
        for line in clean_lines(capture.stdout):
            if not line.strip():
                continue
            if line.startswith("## "):
                header = self._branch_header(line)
                continue
            if len(line) < 4:
                continue
            code = line[:2]
            index, worktree = code[0], code[1]
            path = line[3:]
            if code == "!!":
                continue
            if code == "??":
                untracked.append(_unquote(path))
                continue
            if code in CONFLICT_CODES:
                conflicts.append(_unquote(path))
                continue
            if index not in (" ", "?"):
                parts = path.split(" -> ")
                staged.append(
                    GitStagedFile(
                        file=_unquote(parts[-1]),
                        status=STATUS_NAMES.get(index, "modified"),
                        old_file=_unquote(parts[0]) if len(parts) > 1 else None,
                    )
                )
            current = _unquote(path.split(" -> ")[-1])
            if worktree == "M":
                modified.append(current)
            elif worktree == "D":
                deleted.append(current)

        clean = not (staged or modified or deleted or untracked or conflicts)
        return GitStatusResult(
            success=True,
            staged=staged,
            modified=modified,
            deleted=deleted,
            untracked=untracked,
            conflicts=conflicts,
            clean=clean,
            **header,
        )

    def surrogates(self, result: GitStatusResult) -> dict[str, Any]:
        return {"staged_files": [entry.file for entry in result.staged]}

    @staticmethod
    def _headline(result) -> str:
        line = f"On branch {result.branch}" if result.branch else "Working tree"
        tracking = []
        if result.ahead:
            tracking.append(f"ahead {result.ahead}")
        if result.behind:
            tracking.append(f"behind {result.behind}")
        if tracking:
            line += f" [{', '.join(tracking)}]"
        return line

    def _render(self, result, staged: list[str]) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.clean:
            return f"{self._headline(result)}: clean"
        parts = [self._headline(result)]
        if staged:
            parts.append(f"Staged: {', '.join(staged)}")
        for label, paths in (
            ("Modified", result.modified),
            ("Deleted", result.deleted),
            ("Untracked", result.untracked),
            ("Conflicts", result.conflicts),
        ):
            if paths:
                parts.append(f"{label}: {', '.join(paths)}")
        return "\n".join(parts)

    def format(self, result: GitStatusResult) -> str:
        return self._render(result, [f"{entry.status[0]}:{entry.file}" for entry in result.staged])

    def format_compact(self, result: GitStatusResultCompact) -> str:
        return self._render(result, result.staged_files)


class GitLogTool(GitAdapter):
    """
    Parses `git log` run with a delimited pretty format.

    Fields are hash, short hash, author, email, date, refs and message, joined
    by \\x1f; records end with \\x1e. Messages may span lines.
    """

    name = "git-log"
    description = "Show commit history"
    variants = {None: (GitLogResult, GitLogResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> GitLogResult:
        if not self.exit_success(capture.exit_code):
            return GitLogResult(success=False, error=_git_error(capture))

        text = strip_ansi(capture.stdout)
        records = text.split(RECORD_SEP) if RECORD_SEP in text else text.split("\n")
        commits = []
        for record in records:
            record = record.strip("\n")
            if not record.strip():
                continue
            fields = record.split(FIELD_SEP)
            if len(fields) < 7:
                logger.debug(f"git log: skipping record with {len(fields)} fields")
                continue
            hash_, hash_short, author, email, date, refs = fields[:6]
            commits.append(
                GitCommit(
                    hash=hash_.strip(),
                    hash_short=hash_short.strip(),
                    author=author,
                    email=email,
                    date=date,
                    message=FIELD_SEP.join(fields[6:]).strip(),
                    refs=refs.strip() or None,
                )
            )
        return GitLogResult(success=True, total=len(commits), commits=commits)

    def surrogates(self, result: GitLogResult) -> dict[str, Any]:
        return {
            "summaries": [
                {"hash_short": c.hash_short, "message": _first_line(c.message), "refs": c.refs}
                for c in result.commits
            ]
        }

    def format(self, result: GitLogResult) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.total == 0:
            return "No commits."
        return "\n".join(
            f"{c.hash_short} {_first_line(c.message)} ({c.author}, {c.date})"
            for c in result.commits
        )

    def format_compact(self, result: GitLogResultCompact) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.total == 0:
            return "No commits."
        return "\n".join(
            f"{s.hash_short} {s.message}" + (f" ({s.refs})" if s.refs else "")
            for s in result.summaries
        )


def _split_rename(path: str) -> tuple[str, Optional[str]]:
    """Resolve numstat rename notation to (new path, old path)."""
    brace = BRACE_RENAME_RE.match(path)
    if brace:
        prefix, old, new, suffix = brace.groups()
        old_path = (prefix + old + suffix).replace("//", "/")
        new_path = (prefix + new + suffix).replace("//", "/")
        return new_path, old_path
    plain = PLAIN_RENAME_RE.match(path)
    if plain:
        return plain.group(2), plain.group(1)
    return path, None


class GitDiffTool(GitAdapter):
    """Parses `git diff --numstat`, optionally followed by `--name-status` lines."""

    name = "git-diff"
    description = "Summarize changes between commits or the working tree"
    variants = {None: (GitDiffResult, GitDiffResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> GitDiffResult:
        if not self.exit_success(capture.exit_code):
            return GitDiffResult(success=False, error=_git_error(capture))

        numstat = []
        name_status: dict[str, str] = {}
        for line in clean_lines(capture.stdout):
            stat = NUMSTAT_RE.match(line)
            if stat:
                numstat.append(stat.groups())
                continue
            named = NAME_STATUS_RE.match(line)
            if named:
                paths = named.group(2).split("\t")
                name_status[paths[-1]] = STATUS_NAMES.get(named.group(1), "modified")

        files = []
        for added, removed, raw_path in numstat:
            path, old_path = _split_rename(raw_path)
            binary = added == "-" and removed == "-"
            additions = 0 if added == "-" else to_int(added)
            deletions = 0 if removed == "-" else to_int(removed)
            status = name_status.get(path)
            if status is None:
                if old_path:
                    status = "renamed"
                elif additions > 0 and deletions == 0:
                    status = "added"
                elif deletions > 0 and additions == 0:
                    status = "deleted"
                else:
                    status = "modified"
            files.append(
                GitDiffFile(
                    file=path,
                    status=status,
                    additions=additions,
                    deletions=deletions,
                    binary=True if binary else None,
                    old_file=old_path,
                )
            )

        return GitDiffResult(
            success=True,
            total_files=len(files),
            total_additions=sum(f.additions for f in files),
            total_deletions=sum(f.deletions for f in files),
            files=files,
        )

    def surrogates(self, result: GitDiffResult) -> dict[str, Any]:
        return {
            "file_stats": [
                {"file": f.file, "additions": f.additions, "deletions": f.deletions}
                for f in result.files
            ]
        }

    def _render(self, result, lines: list[str]) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.total_files == 0:
            return "No changes."
        header = (
            f"{plural(result.total_files, 'file')} changed, "
            f"+{result.total_additions} -{result.total_deletions}"
        )
        return "\n".join([header] + lines)

    def format(self, result: GitDiffResult) -> str:
        lines = []
        for f in result.files:
            entry = f"  {f.file} (binary)" if f.binary else f"  {f.file} +{f.additions} -{f.deletions}"
            if f.old_file:
                entry += f" (from {f.old_file})"
            lines.append(entry)
        return self._render(result, lines)

    def format_compact(self, result: GitDiffResultCompact) -> str:
        return self._render(
            result, [f"  {s.file} +{s.additions} -{s.deletions}" for s in result.file_stats]
        )


class GitBranchTool(GitAdapter):
    """Parses plain `git branch` listings."""

    name = "git-branch"
    description = "List branches"
    variants = {None: (GitBranchResult, GitBranchResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> GitBranchResult:
        if not self.exit_success(capture.exit_code):
            return GitBranchResult(success=False, error=_git_error(capture))

        branches = []
        current = None
        for line in clean_lines(capture.stdout):
            if not line.strip():
                continue
            is_current = line.startswith("* ")
            text = line[2:].strip()
            # "(HEAD detached at 1a2b3c4)" is one name despite its spaces.
            if text.startswith("("):
                name = text[: text.index(")") + 1] if ")" in text else text
            else:
                parts = text.split()
                # A line cut off after its marker carries no name.
                if not parts:
                    continue
                name = parts[0]
            if is_current:
                current = name
            branches.append(GitBranchEntry(name=name, current=is_current))
        return GitBranchResult(success=True, total=len(branches), current=current, branches=branches)

    def surrogates(self, result: GitBranchResult) -> dict[str, Any]:
        return {"names": [branch.name for branch in result.branches]}

    def _render(self, result, names: list[str]) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.total == 0:
            return "No branches."
        return "\n".join(f"{'* ' if name == result.current else '  '}{name}" for name in names)

    def format(self, result: GitBranchResult) -> str:
        return self._render(result, [branch.name for branch in result.branches])

    def format_compact(self, result: GitBranchResultCompact) -> str:
        return self._render(result, result.names)
