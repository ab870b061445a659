"""
Result models for environment and package managers with several actions.

Each tool's result is a union discriminated by `action`. Every variant forbids
unknown keys, so a payload that borrows a field from another variant fails
validation instead of being coerced into whichever variant fits best.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .base import Package, ShapeModel, derive_compact_model

# --- conda ---


class CondaPackage(ShapeModel):
    name: str
    version: str
    channel: Optional[str] = None
    build_string: Optional[str] = None


class CondaEnvironment(ShapeModel):
    name: str
    path: str
    active: bool = False


class CondaList(ShapeModel):
    action: Literal["list"] = "list"
    success: bool
    total: int = 0
    packages: list[CondaPackage] = []
    parse_error: Optional[str] = None


class CondaInfo(ShapeModel):
    action: Literal["info"] = "info"
    success: bool
    conda_version: Optional[str] = None
    platform: Optional[str] = None
    python_version: Optional[str] = None
    default_prefix: Optional[str] = None
    active_prefix: Optional[str] = None
    channels: list[str] = []
    envs_dirs: list[str] = []
    pkgs_dirs: list[str] = []
    parse_error: Optional[str] = None


class CondaEnvList(ShapeModel):
    action: Literal["env-list"] = "env-list"
    success: bool
    total: int = 0
    environments: list[CondaEnvironment] = []
    parse_error: Optional[str] = None


class CondaMutation(ShapeModel):
    action: Literal["install", "create", "remove", "update"]
    success: bool
    total_added: int = 0
    total_removed: int = 0
    added: list[CondaPackage] = []
    removed: list[CondaPackage] = []
    prefix: Optional[str] = None
    dry_run: bool = False
    error: Optional[str] = None
    parse_error: Optional[str] = None


CondaListCompact = derive_compact_model(CondaList, drop=("packages",))
CondaInfoCompact = derive_compact_model(
    CondaInfo, drop=("channels", "envs_dirs", "pkgs_dirs")
)
CondaEnvListCompact = derive_compact_model(
    CondaEnvList,
    drop=("environments",),
    add={"names": (list[str], [])},
)
CondaMutationCompact = derive_compact_model(CondaMutation, drop=("added", "removed"))

CondaResult = Annotated[
    Union[CondaList, CondaInfo, CondaEnvList, CondaMutation],
    Field(discriminator="action"),
]
CondaResultCompact = Annotated[
    Union[CondaListCompact, CondaInfoCompact, CondaEnvListCompact, CondaMutationCompact],
    Field(discriminator="action"),
]

# --- pyenv ---


class PyenvVersionEntry(ShapeModel):
    version: str
    current: bool = False
    origin: Optional[str] = None


class PyenvVersions(ShapeModel):
    action: Literal["versions"] = "versions"
    success: bool
    total: int = 0
    current: Optional[str] = None
    versions: list[PyenvVersionEntry] = []
    error: Optional[str] = None


class PyenvVersion(ShapeModel):
    action: Literal["version"] = "version"
    success: bool
    version: Optional[str] = None
    origin: Optional[str] = None
    error: Optional[str] = None


class PyenvInstall(ShapeModel):
    action: Literal["install"] = "install"
    success: bool
    installed: Optional[str] = None
    path: Optional[str] = None
    already_installed: bool = False
    error: Optional[str] = None


class PyenvLocal(ShapeModel):
    action: Literal["local"] = "local"
    success: bool
    local_version: Optional[str] = None
    error: Optional[str] = None


class PyenvGlobal(ShapeModel):
    action: Literal["global"] = "global"
    success: bool
    global_version: Optional[str] = None
    error: Optional[str] = None


class PyenvInstallList(ShapeModel):
    action: Literal["install-list"] = "install-list"
    success: bool
    total: int = 0
    available_versions: list[str] = []
    error: Optional[str] = None


class PyenvWhich(ShapeModel):
    action: Literal["which"] = "which"
    success: bool
    command_path: Optional[str] = None
    error: Optional[str] = None


class PyenvRehash(ShapeModel):
    action: Literal["rehash"] = "rehash"
    success: bool
    error: Optional[str] = None


PyenvVersionsCompact = derive_compact_model(
    PyenvVersions,
    drop=("versions",),
    add={"names": (list[str], [])},
)
PyenvVersionCompact = derive_compact_model(PyenvVersion, drop=("origin",))
PyenvInstallCompact = derive_compact_model(PyenvInstall, drop=("path",))
PyenvLocalCompact = derive_compact_model(PyenvLocal, drop=())
PyenvGlobalCompact = derive_compact_model(PyenvGlobal, drop=())
PyenvInstallListCompact = derive_compact_model(
    PyenvInstallList, drop=("available_versions",)
)
PyenvWhichCompact = derive_compact_model(PyenvWhich, drop=())
PyenvRehashCompact = derive_compact_model(PyenvRehash, drop=())

PyenvResult = Annotated[
    Union[
        PyenvVersions,
        PyenvVersion,
        PyenvInstall,
        PyenvLocal,
        PyenvGlobal,
        PyenvInstallList,
        PyenvWhich,
        PyenvRehash,
    ],
    Field(discriminator="action"),
]
PyenvResultCompact = Annotated[
    Union[
        PyenvVersionsCompact,
        PyenvVersionCompact,
        PyenvInstallCompact,
        PyenvLocalCompact,
        PyenvGlobalCompact,
        PyenvInstallListCompact,
        PyenvWhichCompact,
        PyenvRehashCompact,
    ],
    Field(discriminator="action"),
]

# --- poetry ---


class PoetryPackage(ShapeModel):
    name: str
    version: str
    description: Optional[str] = None
    installed: bool = True


class PoetryUpdate(ShapeModel):
    name: str
    from_version: str
    to_version: str


class PoetryShow(ShapeModel):
    action: Literal["show"] = "show"
    success: bool
    total: int = 0
    packages: list[PoetryPackage] = []
    error: Optional[str] = None


class PoetryBuild(ShapeModel):
    action: Literal["build"] = "build"
    success: bool
    total: int = 0
    artifacts: list[str] = []
    error: Optional[str] = None


class PoetryChanges(ShapeModel):
    action: Literal["install", "add", "remove", "update"]
    success: bool
    total_installed: int = 0
    total_updated: int = 0
    total_removed: int = 0
    installed: list[Package] = []
    updated: list[PoetryUpdate] = []
    removed: list[Package] = []
    lock_written: bool = False
    error: Optional[str] = None


class PoetryLock(ShapeModel):
    action: Literal["lock"] = "lock"
    success: bool
    lock_written: bool = False
    error: Optional[str] = None


class PoetryCheck(ShapeModel):
    action: Literal["check"] = "check"
    success: bool
    valid: bool = False
    error_count: int = 0
    warning_count: int = 0
    errors: list[str] = []
    warnings: list[str] = []


class PoetryExport(ShapeModel):
    action: Literal["export"] = "export"
    success: bool
    total: int = 0
    requirements: list[str] = []
    error: Optional[str] = None


PoetryShowCompact = derive_compact_model(
    PoetryShow,
    drop=("packages",),
    add={"names": (list[str], [])},
)
PoetryBuildCompact = derive_compact_model(PoetryBuild, drop=("artifacts",))
PoetryChangesCompact = derive_compact_model(
    PoetryChanges, drop=("installed", "updated", "removed")
)
PoetryLockCompact = derive_compact_model(PoetryLock, drop=())
PoetryCheckCompact = derive_compact_model(PoetryCheck, drop=("errors", "warnings"))
PoetryExportCompact = derive_compact_model(PoetryExport, drop=("requirements",))

PoetryResult = Annotated[
    Union[PoetryShow, PoetryBuild, PoetryChanges, PoetryLock, PoetryCheck, PoetryExport],
    Field(discriminator="action"),
]
PoetryResultCompact = Annotated[
    Union[
        PoetryShowCompact,
        PoetryBuildCompact,
        PoetryChangesCompact,
        PoetryLockCompact,
        PoetryCheckCompact,
        PoetryExportCompact,
    ],
    Field(discriminator="action"),
]

