# src/toolshape/tools/docker.py
"""Parsers for docker and docker compose: JSON listings, BuildKit progress and log streams."""

import json
import logging
import re
from typing import Any, Optional

from ..core.textutil import clean_lines, fmt_num, plural, strip_ansi, to_int
from ..core.types import RawCapture
from ..schemas.container import (
    ComposeLogEntry,
    ComposeService,
    DockerBuildResult,
    DockerBuildResultCompact,
    DockerComposeLogsResult,
    DockerComposeLogsResultCompact,
    DockerComposePsResult,
    DockerComposePsResultCompact,
    DockerContainer,
    DockerLogsResult,
    DockerLogsResultCompact,
    DockerPort,
    DockerPsResult,
    DockerPsResultCompact,
)
from .base import CLEAN, ToolAdapter

logger = logging.getLogger(__name__)

# Log-style compact forms keep this many lines from each end.
HEAD_SIZE = 5
TAIL_SIZE = 5

STOPPED_STATES = ("exited", "dead", "removing")

BUILDKIT_STEP_RE = re.compile(r"^#(\d+) \[(?:[\w.-]+ )?\d+/\d+\]")
BUILDKIT_CACHED_RE = re.compile(r"^#(\d+) CACHED\s*$")
CLASSIC_STEP_RE = re.compile(r"^Step \d+/\d+ :")
CLASSIC_CACHED_RE = re.compile(r"^\s*---> Using cache")
IMAGE_ID_RE = re.compile(r"(?:writing image sha256:|^Successfully built )([0-9a-f]{12})")
BUILD_ERROR_RE = re.compile(r"^(?:#\d+ )?ERROR: (.+)$")
CLASSIC_ERROR_RE = re.compile(r"^The command .+ returned a non-zero code: \d+$")
COMPOSE_LOG_RE = re.compile(r"^(\S+?)\s*\|\s?(.*)$")
TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2}))\s+(.*)$"
)


def _docker_error(capture: RawCapture) -> Optional[str]:
    text = strip_ansi(capture.stderr).strip() or strip_ansi(capture.stdout).strip()
    return text or None


def _json_records(text: str, source: str) -> list[dict[str, Any]]:
    """
    Read `--format json` output.

    Newer docker and compose releases print one object per line; older compose
    releases print a single array. Lines that are not JSON objects are skipped.
    """
    stripped = strip_ansi(text).strip()
    if stripped.startswith("["):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            logger.warning(f"{source}: could not decode JSON array output: {e}")
            return []
        return [record for record in data if isinstance(record, dict)] if isinstance(data, list) else []

    records = []
    for line in stripped.split("\n"):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"{source}: skipping non-JSON line {line[:60]!r}")
            continue
        if isinstance(record, dict):
            records.append(record)
    return records


def _state_from_status(status: str) -> str:
    lowered = status.lower()
    if "(paused)" in lowered:
        return "paused"
    if lowered.startswith("up"):
        return "running"
    for prefix, state in (
        ("exited", "exited"),
        ("created", "created"),
        ("restarting", "restarting"),
        ("removal in progress", "removing"),
        ("dead", "dead"),
    ):
        if lowered.startswith(prefix):
            return state
    return "unknown"


def _unique_ports(ports: list[DockerPort]) -> list[DockerPort]:
    # docker lists a mapping once per address family ("0.0.0.0:80->80/tcp, [::]:80->80/tcp").
    seen = set()
    unique = []
    for port in ports:
        key = (port.container, port.host, port.protocol)
        if key not in seen:
            seen.add(key)
            unique.append(port)
    return unique


def _parse_ports(text: Optional[str]) -> list[DockerPort]:
    """'0.0.0.0:8080->80/tcp, 53/udp' -> ports; a range keeps its first port."""
    ports = []
    for part in (text or "").split(","):
        part = part.strip()
        if not part:
            continue
        host = None
        if "->" in part:
            host_side, part = part.split("->", 1)
            host = to_int(host_side.rsplit(":", 1)[-1].split("-")[0]) or None
        number, _, protocol = part.partition("/")
        container = to_int(number.split("-")[0])
        if not container:
            continue
        ports.append(DockerPort(container=container, host=host, protocol=protocol or "tcp"))
    return _unique_ports(ports)


def _publishers(entries: Any) -> list[DockerPort]:
    """Compose `Publishers`: a published port of 0 means nothing is bound on the host."""
    ports = []
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, dict):
            continue
        target = to_int(entry.get("TargetPort", entry.get("target_port")))
        if not target:
            continue
        published = to_int(entry.get("PublishedPort", entry.get("published_port")))
        protocol = str(entry.get("Protocol") or entry.get("protocol") or "tcp")
        ports.append(DockerPort(container=target, host=published or None, protocol=protocol))
    return _unique_ports(ports)


def _render_ports(ports: list[DockerPort]) -> str:
    if not ports:
        return ""
    rendered = [
        f"{p.host}->{p.container}/{p.protocol}" if p.host else f"{p.container}/{p.protocol}"
        for p in ports
    ]
    return f" [{', '.join(rendered)}]"


def _head_and_tail(items: list) -> tuple[list, list]:
    head = items[:HEAD_SIZE]
    tail = items[-TAIL_SIZE:] if len(items) > HEAD_SIZE + TAIL_SIZE else []
    return head, tail


class DockerAdapter(ToolAdapter):
    """docker exits 0 on success, 1 on a failed command and 125 when the daemon refuses it."""

    exit_codes = {0: CLEAN}

    def failed_sentence(self, result) -> Optional[str]:
        if result.success:
            return None
        command = self.name.replace("-", " ")
        if result.error:
            return f"{command} failed: {result.error.splitlines()[0]}"
        return f"{command} failed."


class DockerPsTool(DockerAdapter):
    """Parses `docker ps --format json`."""

    name = "docker-ps"
    description = "List containers"
    variants = {None: (DockerPsResult, DockerPsResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> DockerPsResult:
        if not self.exit_success(capture.exit_code):
            return DockerPsResult(success=False, error=_docker_error(capture))

        containers = []
        for record in _json_records(capture.stdout, self.name):
            status = str(record.get("Status") or "")
            state = str(record.get("State") or "").lower() or _state_from_status(status)
            containers.append(
                DockerContainer(
                    id=str(record.get("ID") or ""),
                    name=str(record.get("Names") or ""),
                    image=str(record.get("Image") or ""),
                    status=status,
                    state=state,
                    ports=_parse_ports(record.get("Ports")),
                    created=record.get("RunningFor") or record.get("CreatedAt") or None,
                )
            )
        running = sum(1 for c in containers if c.state == "running")
        return DockerPsResult(
            success=True,
            total=len(containers),
            running=running,
            stopped=len(containers) - running,
            containers=containers,
        )

    def surrogates(self, result: DockerPsResult) -> dict[str, Any]:
        return {
            "summaries": [
                {"id": c.id[:12], "name": c.name, "image": c.image, "status": c.status}
                for c in result.containers
            ]
        }

    def _render(self, result, lines: list[str]) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.total == 0:
            return "No containers."
        header = (
            f"{plural(result.total, 'container')} "
            f"({result.running} running, {result.stopped} stopped)"
        )
        return "\n".join([header] + lines)

    def format(self, result: DockerPsResult) -> str:
        return self._render(
            result,
            [
                f"  {c.state:<10} {c.name} ({c.image}){_render_ports(c.ports)}"
                for c in result.containers
            ],
        )

    def format_compact(self, result: DockerPsResultCompact) -> str:
        return self._render(
            result, [f"  {s.id} {s.name} ({s.image}) {s.status}" for s in result.summaries]
        )


class DockerBuildTool(DockerAdapter):
    """
    Parses `docker build` progress.

    Handles BuildKit's numbered `#N [k/n]` progress and the classic builder's
    `Step k/n :` lines. Both write progress to stderr, so the combined streams
    are read.
    """

    name = "docker-build"
    description = "Build an image from a Dockerfile"
    variants = {None: (DockerBuildResult, DockerBuildResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> DockerBuildResult:
        buildkit_steps, buildkit_cached = set(), set()
        classic_steps = classic_cached = 0
        image_id = None
        errors: list[str] = []

        for line in clean_lines(capture.combined):
            line = line.rstrip()
            step = BUILDKIT_STEP_RE.match(line)
            if step:
                buildkit_steps.add(step.group(1))
            cached = BUILDKIT_CACHED_RE.match(line)
            if cached:
                buildkit_cached.add(cached.group(1))
            if CLASSIC_STEP_RE.match(line):
                classic_steps += 1
            elif CLASSIC_CACHED_RE.match(line):
                classic_cached += 1
            image = IMAGE_ID_RE.search(line)
            if image:
                image_id = image.group(1)
            error = BUILD_ERROR_RE.match(line)
            message = error.group(1).strip() if error else None
            if message is None and CLASSIC_ERROR_RE.match(line):
                message = line.strip()
            if message and message not in errors:
                errors.append(message)

        success = self.exit_success(capture.exit_code)
        if not success and not errors:
            fallback = _docker_error(capture)
            if fallback:
                errors.append(fallback.splitlines()[-1])

        return DockerBuildResult(
            success=success,
            image_id=image_id if success else None,
            steps=len(buildkit_steps) or classic_steps,
            cached_steps=len(buildkit_cached & buildkit_steps) or classic_cached,
            duration=capture.duration,
            errors=errors,
        )

    def surrogates(self, result: DockerBuildResult) -> dict[str, Any]:
        return {"error_count": len(result.errors)}

    @staticmethod
    def _summary(result) -> str:
        if not result.success:
            return "Build failed"
        parts = ["Build succeeded" + (f" → {result.image_id}" if result.image_id else "")]
        if result.steps:
            parts.append(plural(result.steps, "step"))
        if result.cached_steps:
            parts.append(f"{result.cached_steps} cached")
        if result.duration:
            parts.append(f"{fmt_num(result.duration)}s")
        return ", ".join(parts)

    def format(self, result: DockerBuildResult) -> str:
        return "\n".join([self._summary(result)] + [f"  {e}" for e in result.errors])

    def format_compact(self, result: DockerBuildResultCompact) -> str:
        line = self._summary(result)
        if result.error_count:
            line += f" ({plural(result.error_count, 'error')})"
        return line


class DockerLogsTool(DockerAdapter):
    """
    Parses `docker logs` output.

    The container's stdout and stderr arrive on the matching streams; stdout
    lines come first. A capture cut by the output budget is reported as truncated.
    """

    name = "docker-logs"
    description = "Fetch the logs of a container"
    variants = {None: (DockerLogsResult, DockerLogsResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> DockerLogsResult:
        truncated = True if capture.truncated else None
        if not self.exit_success(capture.exit_code):
            return DockerLogsResult(success=False, truncated=truncated, error=_docker_error(capture))

        lines = [
            line.rstrip()
            for stream in (capture.stdout, capture.stderr)
            for line in clean_lines(stream)
            if line.strip()
        ]
        return DockerLogsResult(success=True, total=len(lines), lines=lines, truncated=truncated)

    def surrogates(self, result: DockerLogsResult) -> dict[str, Any]:
        head, tail = _head_and_tail(result.lines)
        return {"head": head, "tail": tail}

    @staticmethod
    def _header(result) -> str:
        header = plural(result.total, "line")
        if result.truncated:
            header += " (truncated)"
        return header

    def format(self, result: DockerLogsResult) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        return "\n".join([self._header(result)] + result.lines)

    def format_compact(self, result: DockerLogsResultCompact) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        lines = [self._header(result)] + result.head
        if result.tail:
            omitted = result.total - len(result.head) - len(result.tail)
            lines.append(f"  ... {plural(omitted, 'line')} omitted ...")
            lines.extend(result.tail)
        return "\n".join(lines)


class DockerComposePsTool(DockerAdapter):
    """Parses `docker compose ps --format json`, in both its NDJSON and array forms."""

    name = "docker-compose-ps"
    description = "List the containers of a compose project"
    variants = {None: (DockerComposePsResult, DockerComposePsResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> DockerComposePsResult:
        if not self.exit_success(capture.exit_code):
            return DockerComposePsResult(success=False, error=_docker_error(capture))

        services = []
        for record in _json_records(capture.stdout, self.name):
            status = str(record.get("Status") or "")
            state = str(record.get("State") or "").lower() or _state_from_status(status)
            publishers = record.get("Publishers")
            ports = _publishers(publishers) if publishers else _parse_ports(record.get("Ports"))
            # Running containers report ExitCode 0, which says nothing.
            exit_code = record.get("ExitCode") if state in STOPPED_STATES else None
            services.append(
                ComposeService(
                    name=str(record.get("Name") or ""),
                    service=str(record.get("Service") or ""),
                    state=state,
                    status=status or None,
                    ports=ports,
                    health=record.get("Health") or None,
                    exit_code=None if exit_code is None else to_int(exit_code),
                )
            )
        return DockerComposePsResult(
            success=True,
            total=len(services),
            running=sum(1 for s in services if s.state == "running"),
            stopped=sum(1 for s in services if s.state in STOPPED_STATES),
            services=services,
        )

    def surrogates(self, result: DockerComposePsResult) -> dict[str, Any]:
        return {
            "summaries": [
                {"name": s.name, "service": s.service, "state": s.state, "exit_code": s.exit_code}
                for s in result.services
            ]
        }

    def _render(self, result, lines: list[str]) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        if result.total == 0:
            return "No compose services found."
        header = (
            f"{plural(result.total, 'service')} "
            f"({result.running} running, {result.stopped} stopped):"
        )
        return "\n".join([header] + lines)

    def format(self, result: DockerComposePsResult) -> str:
        lines = []
        for s in result.services:
            line = f"  {s.state:<10} {s.name} ({s.service})"
            if s.status:
                line += f" {s.status}"
            line += _render_ports(s.ports)
            if s.health:
                line += f" health={s.health}"
            if s.exit_code is not None:
                line += f" exit={s.exit_code}"
            lines.append(line)
        return self._render(result, lines)

    def format_compact(self, result: DockerComposePsResultCompact) -> str:
        return self._render(
            result,
            [
                f"  {s.state:<10} {s.name} ({s.service})"
                + (f" exit={s.exit_code}" if s.exit_code is not None else "")
                for s in result.summaries
            ],
        )


class DockerComposeLogsTool(DockerAdapter):
    """Parses `docker compose logs`, optionally run with `--timestamps`."""

    name = "docker-compose-logs"
    description = "Fetch the logs of a compose project"
    variants = {None: (DockerComposeLogsResult, DockerComposeLogsResultCompact)}

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> DockerComposeLogsResult:
        truncated = True if capture.truncated else None
        if not self.exit_success(capture.exit_code):
            return DockerComposeLogsResult(
                success=False, truncated=truncated, error=_docker_error(capture)
            )

        entries = []
        services: list[str] = []
        for line in clean_lines(capture.stdout):
            if not line.strip():
                continue
            prefixed = COMPOSE_LOG_RE.match(line)
            if prefixed:
                service, message = prefixed.group(1), prefixed.group(2)
            else:
                service, message = "unknown", line
            stamped = TIMESTAMP_RE.match(message)
            timestamp = None
            if stamped:
                timestamp, message = stamped.group(1), stamped.group(2)
            if service not in services:
                services.append(service)
            entries.append(
                ComposeLogEntry(service=service, message=message.rstrip(), timestamp=timestamp)
            )
        return DockerComposeLogsResult(
            success=True,
            total=len(entries),
            services=services,
            entries=entries,
            truncated=truncated,
        )

    def surrogates(self, result: DockerComposeLogsResult) -> dict[str, Any]:
        head, tail = _head_and_tail(result.entries)
        return {"head": head, "tail": tail}

    @staticmethod
    def _entry(entry: ComposeLogEntry) -> str:
        stamp = f"{entry.timestamp} " if entry.timestamp else ""
        return f"  {entry.service} | {stamp}{entry.message}"

    @staticmethod
    def _header(result) -> str:
        header = (
            f"Compose logs: {plural(len(result.services), 'service')}, "
            f"{plural(result.total, 'entry', 'entries')}"
        )
        if result.truncated:
            header += " (truncated)"
        return header

    def format(self, result: DockerComposeLogsResult) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        return "\n".join([self._header(result)] + [self._entry(e) for e in result.entries])

    def format_compact(self, result: DockerComposeLogsResultCompact) -> str:
        failed = self.failed_sentence(result)
        if failed:
            return failed
        lines = [self._header(result)] + [self._entry(e) for e in result.head]
        if result.tail:
            omitted = result.total - len(result.head) - len(result.tail)
            lines.append(f"  ... {plural(omitted, 'entry', 'entries')} omitted ...")
            lines.extend(self._entry(e) for e in result.tail)
        return "\n".join(lines)
