import json

import pytest

from toolshape.core.types import RawCapture
from toolshape.tools.docker import (
    DockerBuildTool,
    DockerComposeLogsTool,
    DockerComposePsTool,
    DockerLogsTool,
    DockerPsTool,
)


def ndjson(*records):
    return "\n".join(json.dumps(record) for record in records) + "\n"


@pytest.fixture
def ps_capture():
    stdout = ndjson(
        {
            "ID": "3f4e1a2b9c8d7e6f",
            "Names": "web",
            "Image": "nginx:1.25",
            "Status": "Up 2 hours",
            "State": "running",
            "Ports": "0.0.0.0:8080->80/tcp, [::]:8080->80/tcp",
            "CreatedAt": "2024-06-01 10:00:00 +0000 UTC",
            "RunningFor": "2 hours ago",
        },
        {
            "ID": "a1b2c3d4e5f60718",
            "Names": "db",
            "Image": "postgres:16",
            "Status": "Up 2 hours",
            "State": "running",
            "Ports": "5432/tcp",
            "RunningFor": "2 hours ago",
        },
        {
            "ID": "0011223344556677",
            "Names": "job",
            "Image": "alpine",
            "Status": "Exited (1) 5 minutes ago",
            "Ports": "",
            "RunningFor": "10 minutes ago",
        },
    )
    return RawCapture(stdout="WARNING: client version is old\n" + stdout, stderr="")


BUILDKIT_LOG = "\n".join(
    [
        '#0 building with "default" instance using docker driver',
        "#1 [internal] load build definition from Dockerfile",
        "#1 transferring dockerfile: 215B done",
        "#1 DONE 0.0s",
        "#2 [internal] load metadata for docker.io/library/python:3.12-slim",
        "#2 DONE 0.9s",
        "#3 [1/4] FROM docker.io/library/python:3.12-slim@sha256:abcd",
        "#3 DONE 0.0s",
        "#4 [2/4] WORKDIR /app",
        "#4 CACHED",
        "#5 [3/4] COPY requirements.txt .",
        "#5 CACHED",
        "#6 [4/4] RUN pip install -r requirements.txt",
        "#6 DONE 12.3s",
        "#7 exporting to image",
        "#7 exporting layers 0.1s done",
        "#7 writing image sha256:9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08 done",
        "#7 naming to docker.io/library/app:latest done",
        "#7 DONE 0.2s",
    ]
)

BUILDKIT_FAILURE = "\n".join(
    [
        "#5 [3/4] RUN pip install nope",
        "#5 0.912 ERROR: Could not find a version that satisfies the requirement nope",
        '#5 ERROR: process "/bin/sh -c pip install nope" did not complete successfully: exit code: 1',
        "------",
        " > [3/4] RUN pip install nope:",
        "------",
        'ERROR: failed to solve: process "/bin/sh -c pip install nope" did not complete successfully: exit code: 1',
    ]
)


def assert_docker_schema(payload):
    assert isinstance(payload, dict)
    assert isinstance(payload["success"], bool)
    assert "" not in payload.values()


class TestDockerPs:
    """`docker ps --format json` listings."""

    def test_containers(self, ps_capture):
        result = DockerPsTool().parse_output(ps_capture)
        assert_docker_schema(result.dump())
        assert (result.total, result.running, result.stopped) == (3, 2, 1)
        web, db, job = result.containers
        assert [(p.host, p.container, p.protocol) for p in web.ports] == [(8080, 80, "tcp")]
        assert [(p.host, p.container) for p in db.ports] == [(None, 5432)]
        assert web.created == "2 hours ago"
        assert job.dump() == {
            "id": "0011223344556677",
            "name": "job",
            "image": "alpine",
            "status": "Exited (1) 5 minutes ago",
            "state": "exited",
            "ports": [],
            "created": "10 minutes ago",
        }

    def test_format(self, ps_capture):
        tool = DockerPsTool()
        assert tool.format(tool.parse_output(ps_capture)).splitlines() == [
            "3 containers (2 running, 1 stopped)",
            "  running    web (nginx:1.25) [8080->80/tcp]",
            "  running    db (postgres:16) [5432/tcp]",
            "  exited     job (alpine)",
        ]

    def test_compact(self, ps_capture):
        tool = DockerPsTool()
        compact = tool.compact(tool.parse_output(ps_capture))
        payload = compact.dump()
        assert "containers" not in payload
        assert payload["summaries"][0] == {
            "id": "3f4e1a2b9c8d",
            "name": "web",
            "image": "nginx:1.25",
            "status": "Up 2 hours",
        }
        assert tool.format_compact(compact).splitlines()[1] == "  3f4e1a2b9c8d web (nginx:1.25) Up 2 hours"

    def test_empty(self):
        tool = DockerPsTool()
        assert tool.format(tool.parse_output(RawCapture())) == "No containers."

    def test_daemon_unreachable(self):
        capture = RawCapture(
            stdout="",
            stderr="Cannot connect to the Docker daemon at unix:///var/run/docker.sock. Is the docker daemon running?\n",
            exit_code=1,
        )
        tool = DockerPsTool()
        result = tool.parse_output(capture)
        assert result.dump() == {
            "success": False,
            "total": 0,
            "running": 0,
            "stopped": 0,
            "containers": [],
            "error": "Cannot connect to the Docker daemon at unix:///var/run/docker.sock. Is the docker daemon running?",
        }
        assert tool.format(result).startswith("docker ps failed: Cannot connect")


class TestDockerBuild:
    """BuildKit and classic builder progress."""

    def test_buildkit_success(self):
        tool = DockerBuildTool()
        result = tool.parse_output(RawCapture(stdout="", stderr=BUILDKIT_LOG, duration=14.5))
        assert result.success is True
        assert result.image_id == "9f86d081884c"
        assert (result.steps, result.cached_steps) == (4, 2)
        assert result.errors == []
        assert tool.format(result) == "Build succeeded → 9f86d081884c, 4 steps, 2 cached, 14.5s"

    def test_buildkit_failure(self):
        tool = DockerBuildTool()
        result = tool.parse_output(RawCapture(stdout="", stderr=BUILDKIT_FAILURE, exit_code=1))
        assert result.success is False
        assert "imageId" not in result.dump()
        assert result.steps == 1
        assert result.errors == [
            'process "/bin/sh -c pip install nope" did not complete successfully: exit code: 1',
            'failed to solve: process "/bin/sh -c pip install nope" did not complete successfully: exit code: 1',
        ]
        lines = tool.format(result).splitlines()
        assert lines[0] == "Build failed"
        assert len(lines) == 3

        compact = tool.compact(result)
        assert "errors" not in compact.dump()
        assert compact.error_count == 2
        assert tool.format_compact(compact) == "Build failed (2 errors)"

    def test_classic_builder(self):
        stdout = "\n".join(
            [
                "Step 1/3 : FROM alpine",
                " ---> 1d34ffeaf190",
                "Step 2/3 : RUN apk add curl",
                " ---> Using cache",
                " ---> 2b4c5d6e7f80",
                'Step 3/3 : CMD ["sh"]',
                " ---> Running in 4f5e6d7c8b9a",
                " ---> 7a8b9c0d1e2f",
                "Successfully built 7a8b9c0d1e2f",
                "Successfully tagged app:latest",
            ]
        )
        tool = DockerBuildTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert (result.steps, result.cached_steps, result.image_id) == (3, 1, "7a8b9c0d1e2f")
        assert tool.format(result) == "Build succeeded → 7a8b9c0d1e2f, 3 steps, 1 cached"

    def test_failure_without_error_lines_keeps_last_stderr_line(self):
        capture = RawCapture(stdout="", stderr="unable to prepare context: path \"nope\" not found\n", exit_code=1)
        result = DockerBuildTool().parse_output(capture)
        assert result.errors == ['unable to prepare context: path "nope" not found']


class TestDockerLogs:
    """Plain container logs with head and tail compaction."""

    def test_streams_are_combined(self):
        capture = RawCapture(stdout="GET / 200\nGET /health 200\n", stderr="warning: slow query\n")
        tool = DockerLogsTool()
        result = tool.parse_output(capture)
        assert result.lines == ["GET / 200", "GET /health 200", "warning: slow query"]
        assert "truncated" not in result.dump()
        assert tool.format(result).splitlines()[0] == "3 lines"

    def test_truncation_is_reported(self):
        capture = RawCapture(stdout="first\nsecond…", stderr="", truncated=True)
        tool = DockerLogsTool()
        result = tool.parse_output(capture)
        assert result.truncated is True
        assert tool.format(result).splitlines()[0] == "2 lines (truncated)"

    def test_compact_head_and_tail(self):
        stdout = "\n".join(f"line {i}" for i in range(12))
        tool = DockerLogsTool()
        compact = tool.compact(tool.parse_output(RawCapture(stdout=stdout, stderr="", truncated=True)))
        assert compact.dump() == {
            "success": True,
            "total": 12,
            "truncated": True,
            "head": ["line 0", "line 1", "line 2", "line 3", "line 4"],
            "tail": ["line 7", "line 8", "line 9", "line 10", "line 11"],
        }
        lines = tool.format_compact(compact).splitlines()
        assert lines[0] == "12 lines (truncated)"
        assert lines[6] == "  ... 2 lines omitted ..."
        assert lines[-1] == "line 11"

    def test_short_log_has_no_tail(self):
        tool = DockerLogsTool()
        compact = tool.compact(tool.parse_output(RawCapture(stdout="a\nb\n", stderr="")))
        assert (compact.head, compact.tail) == (["a", "b"], [])

    def test_missing_container(self):
        capture = RawCapture(stdout="", stderr="Error response from daemon: No such container: ghost\n", exit_code=1)
        tool = DockerLogsTool()
        result = tool.parse_output(capture)
        assert result.success is False
        assert result.lines == []
        assert tool.format(result) == "docker logs failed: Error response from daemon: No such container: ghost"


class TestDockerComposePs:
    """`docker compose ps --format json`."""

    @pytest.fixture
    def compose_capture(self):
        stdout = ndjson(
            {
                "Name": "shop-web-1",
                "Service": "web",
                "State": "running",
                "Status": "Up 3 minutes (healthy)",
                "Health": "healthy",
                "ExitCode": 0,
                "Publishers": [
                    {"URL": "0.0.0.0", "TargetPort": 80, "PublishedPort": 8080, "Protocol": "tcp"},
                    {"URL": "::", "TargetPort": 80, "PublishedPort": 8080, "Protocol": "tcp"},
                    {"URL": "", "TargetPort": 443, "PublishedPort": 0, "Protocol": "tcp"},
                ],
            },
            {
                "Name": "shop-worker-1",
                "Service": "worker",
                "State": "exited",
                "Status": "Exited (1) 10 seconds ago",
                "Health": "",
                "ExitCode": 1,
                "Publishers": None,
            },
        )
        return RawCapture(stdout=stdout, stderr="")

    def test_services(self, compose_capture):
        result = DockerComposePsTool().parse_output(compose_capture)
        assert_docker_schema(result.dump())
        assert (result.total, result.running, result.stopped) == (2, 1, 1)
        web, worker = result.services
        assert [(p.host, p.container) for p in web.ports] == [(8080, 80), (None, 443)]
        assert web.exit_code is None
        assert worker.health is None
        assert worker.exit_code == 1

    def test_format(self, compose_capture):
        tool = DockerComposePsTool()
        result = tool.parse_output(compose_capture)
        assert tool.format(result).splitlines() == [
            "2 services (1 running, 1 stopped):",
            "  running    shop-web-1 (web) Up 3 minutes (healthy) [8080->80/tcp, 443/tcp] health=healthy",
            "  exited     shop-worker-1 (worker) Exited (1) 10 seconds ago exit=1",
        ]
        assert tool.format_compact(tool.compact(result)).splitlines() == [
            "2 services (1 running, 1 stopped):",
            "  running    shop-web-1 (web)",
            "  exited     shop-worker-1 (worker) exit=1",
        ]

    def test_array_output_with_port_string(self):
        stdout = '[{"Name": "a-1", "Service": "a", "State": "running", "Status": "Up", "Ports": "0.0.0.0:3000->3000/tcp"}]'
        result = DockerComposePsTool().parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.total == 1
        assert result.services[0].ports[0].dump() == {"container": 3000, "host": 3000, "protocol": "tcp"}

    def test_no_services(self):
        tool = DockerComposePsTool()
        assert tool.format(tool.parse_output(RawCapture())) == "No compose services found."


class TestDockerComposeLogs:
    """Service-prefixed compose log lines."""

    def test_entries_and_timestamps(self):
        stdout = (
            "web-1     | 2024-06-01T10:00:00.000000000Z Listening on :80\n"
            "worker-1  | 2024-06-01T10:00:01.500000000Z job started\n"
            "web-1     | GET / 200\n"
        )
        tool = DockerComposeLogsTool()
        result = tool.parse_output(RawCapture(stdout=stdout, stderr=""))
        assert result.services == ["web-1", "worker-1"]
        assert result.total == 3
        assert result.entries[0].timestamp == "2024-06-01T10:00:00.000000000Z"
        assert result.entries[2].dump() == {"service": "web-1", "message": "GET / 200"}
        assert tool.format(result).splitlines() == [
            "Compose logs: 2 services, 3 entries",
            "  web-1 | 2024-06-01T10:00:00.000000000Z Listening on :80",
            "  worker-1 | 2024-06-01T10:00:01.500000000Z job started",
            "  web-1 | GET / 200",
        ]

    def test_unprefixed_line(self):
        result = DockerComposeLogsTool().parse_output(RawCapture(stdout="plain line\n", stderr=""))
        assert result.entries[0].service == "unknown"

    def test_compact_keeps_truncation(self):
        stdout = "\n".join(f"api-1  | request {i}" for i in range(11))
        tool = DockerComposeLogsTool()
        compact = tool.compact(tool.parse_output(RawCapture(stdout=stdout, stderr="", truncated=True)))
        payload = compact.dump()
        assert "entries" not in payload
        assert payload["truncated"] is True
        assert [e["message"] for e in payload["tail"]] == [f"request {i}" for i in range(6, 11)]
        lines = tool.format_compact(compact).splitlines()
        assert lines[0] == "Compose logs: 1 service, 11 entries (truncated)"
        assert lines[6] == "  ... 1 entry omitted ..."
