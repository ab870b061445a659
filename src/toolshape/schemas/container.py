"""Result models for docker and docker compose subcommands."""

from typing import Optional

from .base import ShapeModel, derive_compact_model


class DockerPort(ShapeModel):
    container: int
    host: Optional[int] = None
    protocol: str = "tcp"


class DockerContainer(ShapeModel):
    id: str
    name: str
    image: str
    status: str
    state: str
    ports: list[DockerPort] = []
    created: Optional[str] = None


class DockerContainerSummary(ShapeModel):
    id: str
    name: str
    image: str
    status: str


class DockerPsResult(ShapeModel):
    success: bool
    total: int = 0
    running: int = 0
    stopped: int = 0
    containers: list[DockerContainer] = []
    error: Optional[str] = None


DockerPsResultCompact = derive_compact_model(
    DockerPsResult, drop=("containers",), add={"summaries": (list[DockerContainerSummary], [])}
)


class DockerBuildResult(ShapeModel):
    success: bool
    image_id: Optional[str] = None
    steps: int = 0
    cached_steps: int = 0
    duration: float = 0.0
    errors: list[str] = []


DockerBuildResultCompact = derive_compact_model(
    DockerBuildResult, drop=("errors",), add={"error_count": (int, 0)}
)


class DockerLogsResult(ShapeModel):
    success: bool
    total: int = 0
    lines: list[str] = []
    truncated: Optional[bool] = None
    error: Optional[str] = None


DockerLogsResultCompact = derive_compact_model(
    DockerLogsResult,
    drop=("lines",),
    add={"head": (list[str], []), "tail": (list[str], [])},
)


class ComposeService(ShapeModel):
    name: str
    service: str
    state: str
    status: Optional[str] = None
    ports: list[DockerPort] = []
    health: Optional[str] = None
    exit_code: Optional[int] = None


class ComposeServiceSummary(ShapeModel):
    name: str
    service: str
    state: str
    exit_code: Optional[int] = None


class DockerComposePsResult(ShapeModel):
    success: bool
    total: int = 0
    running: int = 0
    stopped: int = 0
    services: list[ComposeService] = []
    error: Optional[str] = None


DockerComposePsResultCompact = derive_compact_model(
    DockerComposePsResult,
    drop=("services",),
    add={"summaries": (list[ComposeServiceSummary], [])},
)


class ComposeLogEntry(ShapeModel):
    service: str
    message: str
    timestamp: Optional[str] = None


class DockerComposeLogsResult(ShapeModel):
    success: bool
    total: int = 0
    services: list[str] = []
    entries: list[ComposeLogEntry] = []
    truncated: Optional[bool] = None
    error: Optional[str] = None


DockerComposeLogsResultCompact = derive_compact_model(
    DockerComposeLogsResult,
    drop=("entries",),
    add={"head": (list[ComposeLogEntry], []), "tail": (list[ComposeLogEntry], [])},
)
