"""Pydantic models matching the dashboard's TypeScript types."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TranscriptKind = Literal["input", "output", "system"]
InstanceStatus = Literal["working", "idle", "offline"]


def scrub_unencodable(value: Optional[str]) -> Optional[str]:
    """Replace lone surrogates (from JSON ``\\udXXX`` escapes) so the text encodes as UTF-8."""
    if value is None:
        return None
    return value.encode("utf-8", "replace").decode("utf-8")


# ── Process / session source models ────────────────────────────────

class ProcessRecord(BaseModel):
    pid: int
    terminal: Optional[str] = None
    workingDirectory: str
    cpuPercent: float = 0.0
    memoryEstimateMb: float = 0.0

    # /proc readlink surrogate-escapes undecodable path bytes
    @field_validator("terminal", "workingDirectory")
    @classmethod
    def _scrub_text(cls, value: Optional[str]) -> Optional[str]:
        return scrub_unencodable(value)


class SessionDescriptor(BaseModel):
    """One entry of a project's ``sessions-index.json``.

    Index files use the CLI's own key names (``fullPath``, ``firstPrompt``,
    ``created``, ``modified``); those are accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sessionId: str
    logFilePath: str = Field(alias="fullPath")
    firstPromptPreview: Optional[str] = Field(default=None, alias="firstPrompt")
    messageCount: int
    createdAt: str = Field(alias="created")
    modifiedAt: str = Field(alias="modified")
    gitBranch: Optional[str] = None
    projectPath: str
    isSidechain: bool

    @field_validator(
        "sessionId",
        "logFilePath",
        "firstPromptPreview",
        "createdAt",
        "modifiedAt",
        "gitBranch",
        "projectPath",
    )
    @classmethod
    def _scrub_text(cls, value: Optional[str]) -> Optional[str]:
        return scrub_unencodable(value)


class SessionIndex(BaseModel):
    version: int
    entries: list[SessionDescriptor] = Field(default_factory=list)


# ── Instance view models ───────────────────────────────────────────

class TranscriptLine(BaseModel):
    id: str
    kind: TranscriptKind = "system"
    content: str = ""
    timestamp: str = ""

    @field_validator("content", "timestamp")
    @classmethod
    def _scrub_text(cls, value: str) -> str:
        return scrub_unencodable(value)


class InstanceMetrics(BaseModel):
    contextUsagePercent: float = 0.0
    costEstimate: float = 0.0
    linesAdded: int = 0
    linesRemoved: int = 0
    tokensIn: int = 0
    tokensOut: int = 0


class Instance(BaseModel):
    id: str
    displayName: str
    modelLabel: str = "Claude"
    status: InstanceStatus
    projectName: str
    branch: str = "main"
    workingDirectory: str
    currentTask: Optional[str] = None
    metrics: InstanceMetrics = Field(default_factory=InstanceMetrics)
    recentLines: list[TranscriptLine] = Field(default_factory=list)
    startedAt: str = ""
    lastActivityAt: str = ""
    pid: Optional[int] = None
    sessionId: Optional[str] = None
    logFilePath: Optional[str] = None


class OpenTerminalRequest(BaseModel):
    workingDirectory: str
    sessionId: Optional[str] = None
