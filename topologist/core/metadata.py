"""Local state persistence: project config, session history and analysis cache."""

import json
import logging
import os
import shutil
import tempfile
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

from ..config.settings import settings
from .errors import MetadataError, NotInitializedError

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
HISTORY_FILE = "commit_history.json"
CACHE_FILE = "analysis_cache.json"
CONFIG_VERSION = "1.0"
GITIGNORE_COMMENT = "# Topologist commit phases"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class ProjectConfig:
    """Per-project settings and the set of completed phase numbers."""

    version: str
    project_id: str
    created: datetime
    commit_strategy: str = "phasal"
    size_tracking: bool = True
    auto_gitignore: bool = True
    phases_completed: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created"] = _to_iso(self.created)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectConfig":
        return cls(
            version=data["version"],
            project_id=data["project_id"],
            created=_from_iso(data["created"]),
            commit_strategy=data.get("commit_strategy", "phasal"),
            size_tracking=bool(data.get("size_tracking", True)),
            auto_gitignore=bool(data.get("auto_gitignore", True)),
            phases_completed=[int(n) for n in data.get("phases_completed", [])],
        )


@dataclass
class PhaseExecution:
    """One executed phase and the commit it produced."""

    phase: int
    commit_hash: str
    files_count: int
    size_change: int
    category: str
    executed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["executed_at"] = _to_iso(self.executed_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhaseExecution":
        return cls(
            phase=int(data["phase"]),
            commit_hash=data["commit_hash"],
            files_count=int(data["files_count"]),
            size_change=int(data["size_change"]),
            category=data.get("category", "Unknown"),
            executed_at=_from_iso(data["executed_at"]),
        )


@dataclass
class SessionImpact:
    """Aggregate effect of a completed session."""

    commits: int
    files_added: int
    files_modified: int
    net_insertions: int
    net_deletions: int


@dataclass
class SessionHistory:
    """A run of phase executions between its start and an explicit completion."""

    session_id: str
    started: datetime
    completed: datetime | None = None
    phases: list[PhaseExecution] = field(default_factory=list)
    total_planned_phases: int | None = None
    total_impact: SessionImpact | None = None

    @property
    def is_open(self) -> bool:
        return self.completed is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "session_id": self.session_id,
            "started": _to_iso(self.started),
            "phases": [p.to_dict() for p in self.phases],
        }
        if self.completed is not None:
            data["completed"] = _to_iso(self.completed)
        if self.total_planned_phases is not None:
            data["total_planned_phases"] = self.total_planned_phases
        if self.total_impact is not None:
            data["total_impact"] = asdict(self.total_impact)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionHistory":
        impact = data.get("total_impact")
        return cls(
            session_id=data["session_id"],
            started=_from_iso(data["started"]),
            completed=_from_iso(data.get("completed")),
            phases=[PhaseExecution.from_dict(p) for p in data.get("phases", [])],
            total_planned_phases=data.get("total_planned_phases"),
            total_impact=SessionImpact(**impact) if impact else None,
        )


@dataclass
class AnalysisCache:
    """Short-lived record of the last analyzed repository fingerprint."""

    repository_hash: str
    file_count: int
    cached_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository_hash": self.repository_hash,
            "file_count": self.file_count,
            "cached_at": _to_iso(self.cached_at),
            "expires_at": _to_iso(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisCache":
        return cls(
            repository_hash=data["repository_hash"],
            file_count=int(data["file_count"]),
            cached_at=_from_iso(data["cached_at"]),
            expires_at=_from_iso(data["expires_at"]),
        )


@dataclass
class ProjectStats:
    """Totals across every recorded session."""

    project_id: str
    created: datetime
    total_sessions: int
    total_phases: int
    total_files_processed: int
    current_session_active: bool


def atomic_write_json(filepath: Path, data: Any) -> None:
    """Write JSON through a temp file in the same directory and rename it into place."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(suffix=".tmp", prefix=filepath.stem + "_", dir=filepath.parent)
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(temp_path, filepath)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


class MetadataStore:
    """Owns the hidden state directory of one project."""

    def __init__(
        self,
        project_root: str | Path = ".",
        state_dir_name: str | None = None,
        cache_ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.project_root = Path(project_root)
        self.state_dir_name = state_dir_name or settings.state_dir_name
        self.metadata_dir = self.project_root / self.state_dir_name
        self.cache_ttl = cache_ttl or timedelta(seconds=settings.cache_ttl_seconds)
        self.clock = clock

    @property
    def config_path(self) -> Path:
        return self.metadata_dir / CONFIG_FILE

    @property
    def history_path(self) -> Path:
        return self.metadata_dir / HISTORY_FILE

    @property
    def cache_path(self) -> Path:
        return self.metadata_dir / CACHE_FILE

    @property
    def gitignore_path(self) -> Path:
        return self.project_root / ".gitignore"

    def _read_json(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise MetadataError(f"Failed to read {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        try:
            atomic_write_json(path, data)
        except OSError as e:
            raise MetadataError(f"Failed to write {path}: {e}") from e

    def is_initialized(self) -> bool:
        return self.config_path.is_file()

    def initialize_project(self) -> ProjectConfig:
        """
        Create the state directory, config and history if they are missing.

        Safe to call repeatedly: an existing config keeps its project id,
        creation time and completed phases.

        Returns:
            The project configuration in effect
        """
        if self.is_initialized():
            config = self.load_project_config()
        else:
            config = ProjectConfig(
                version=CONFIG_VERSION,
                project_id=str(uuid.uuid4()),
                created=self.clock(),
            )
            self.save_project_config(config)
            logger.info("Initialized topology metadata in %s", self.metadata_dir)

        if not self.history_path.exists():
            self._save_sessions([])

        if config.auto_gitignore:
            self._add_to_gitignore()

        return config

    def load_project_config(self) -> ProjectConfig:
        if not self.is_initialized():
            raise NotInitializedError("Project not initialized. Run 'topologist init' first.")

        data = self._read_json(self.config_path)
        try:
            return ProjectConfig.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataError(f"Malformed project config {self.config_path}: {e}") from e

    def save_project_config(self, config: ProjectConfig) -> None:
        self._write_json(self.config_path, config.to_dict())

    def set_commit_strategy(self, strategy: str) -> None:
        config = self.load_project_config()
        if config.commit_strategy != strategy:
            config.commit_strategy = strategy
            self.save_project_config(config)

    def _load_sessions(self) -> list[SessionHistory]:
        if not self.history_path.exists():
            return []

        data = self._read_json(self.history_path)
        try:
            return [SessionHistory.from_dict(s) for s in data["sessions"]]
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataError(f"Malformed commit history {self.history_path}: {e}") from e

    def _save_sessions(self, sessions: list[SessionHistory]) -> None:
        self._write_json(self.history_path, {"sessions": [s.to_dict() for s in sessions]})

    def _open_session(self, sessions: list[SessionHistory]) -> SessionHistory:
        """Return the open session, appending a new one if the latest is completed."""
        if sessions and sessions[-1].is_open:
            return sessions[-1]

        session = SessionHistory(session_id=str(uuid.uuid4()), started=self.clock())
        sessions.append(session)
        logger.debug("Started session %s", session.session_id)
        return session

    def get_sessions(self) -> list[SessionHistory]:
        return self._load_sessions()

    def start_session(self, total_planned_phases: int | None = None) -> SessionHistory:
        """Open a session if none is open and record how many phases are planned."""
        sessions = self._load_sessions()
        session = self._open_session(sessions)
        if total_planned_phases is not None:
            session.total_planned_phases = total_planned_phases
        self._save_sessions(sessions)
        return session

    def record_phase_execution(
        self,
        phase_number: int,
        commit_hash: str,
        files_count: int,
        estimated_size: int,
        category: str = "Unknown",
    ) -> PhaseExecution:
        """
        Append an executed phase to the open session and mark it completed.

        Args:
            phase_number: 1-based phase number from the plan
            commit_hash: Hash of the commit the phase produced
            files_count: Number of files committed
            estimated_size: Heuristic size of the phase
            category: Dominant category of the phase

        Returns:
            The recorded execution
        """
        config = self.load_project_config()
        sessions = self._load_sessions()
        session = self._open_session(sessions)

        execution = PhaseExecution(
            phase=phase_number,
            commit_hash=commit_hash,
            files_count=files_count,
            size_change=estimated_size,
            category=category,
            executed_at=self.clock(),
        )
        session.phases.append(execution)

        if phase_number not in config.phases_completed:
            config.phases_completed = sorted({*config.phases_completed, phase_number})
            self.save_project_config(config)

        self._save_sessions(sessions)
        logger.info("Recorded phase %d as %s", phase_number, commit_hash)
        return execution

    def get_current_session(self) -> SessionHistory | None:
        for session in reversed(self._load_sessions()):
            if session.is_open:
                return session
        return None

    def complete_current_session(self) -> SessionHistory | None:
        """
        Close the latest session and compute its impact.

        A session that is already completed is returned unchanged.
        """
        sessions = self._load_sessions()
        if not sessions:
            return None

        session = sessions[-1]
        if not session.is_open:
            return session

        session.completed = self.clock()
        session.total_impact = SessionImpact(
            commits=len(session.phases),
            files_added=sum(p.files_count for p in session.phases),
            files_modified=0,
            net_insertions=sum(p.size_change for p in session.phases),
            net_deletions=0,
        )
        self._save_sessions(sessions)
        return session

    def cache_analysis(self, file_count: int, repository_hash: str) -> AnalysisCache:
        now = self.clock()
        cache = AnalysisCache(
            repository_hash=repository_hash,
            file_count=file_count,
            cached_at=now,
            expires_at=now + self.cache_ttl,
        )
        self._write_json(self.cache_path, cache.to_dict())
        return cache

    def load_cached_analysis(self) -> AnalysisCache | None:
        """Return the cached analysis if it has not expired; expired entries are deleted."""
        if not self.cache_path.exists():
            return None

        try:
            cache = AnalysisCache.from_dict(self._read_json(self.cache_path))
        except (MetadataError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable analysis cache: %s", e)
            self.cache_path.unlink(missing_ok=True)
            return None

        if self.clock() > cache.expires_at:
            logger.debug("Analysis cache expired at %s", cache.expires_at.isoformat())
            self.cache_path.unlink(missing_ok=True)
            return None

        return cache

    def _ignore_entries(self) -> set[str]:
        return {self.state_dir_name, f"{self.state_dir_name}/"}

    def _read_gitignore(self) -> str:
        try:
            return self.gitignore_path.read_text(encoding="utf-8")
        except OSError as e:
            raise MetadataError(f"Failed to read {self.gitignore_path}: {e}") from e

    def _write_gitignore(self, content: str | None) -> None:
        """Replace the .gitignore content; ``None`` deletes the file."""
        try:
            if content is None:
                self.gitignore_path.unlink()
            else:
                self.gitignore_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise MetadataError(f"Failed to write {self.gitignore_path}: {e}") from e

    def _add_to_gitignore(self) -> None:
        content = ""
        if self.gitignore_path.exists():
            content = self._read_gitignore()

        entries = self._ignore_entries()
        if any(line.strip() in entries for line in content.splitlines()):
            return

        if content and not content.endswith("\n"):
            content += "\n"
        if content:
            content += "\n"
        content += f"{GITIGNORE_COMMENT}\n{self.state_dir_name}/\n"
        self._write_gitignore(content)

    def _remove_from_gitignore(self) -> None:
        if not self.gitignore_path.exists():
            return

        removable = self._ignore_entries() | {GITIGNORE_COMMENT}
        lines = [line for line in self._read_gitignore().splitlines() if line.strip() not in removable]
        while lines and not lines[-1].strip():
            lines.pop()

        self._write_gitignore("\n".join(lines) + "\n" if lines else None)

    def clean_all_metadata(self) -> None:
        """Remove the state directory and its .gitignore entry."""
        if self.metadata_dir.exists():
            shutil.rmtree(self.metadata_dir)
        self._remove_from_gitignore()
        logger.info("Removed topology metadata from %s", self.project_root)

    def get_project_stats(self) -> ProjectStats:
        config = self.load_project_config()
        sessions = self._load_sessions()

        return ProjectStats(
            project_id=config.project_id,
            created=config.created,
            total_sessions=len(sessions),
            total_phases=sum(len(s.phases) for s in sessions),
            total_files_processed=sum(p.files_count for s in sessions for p in s.phases),
            current_session_active=any(s.is_open for s in sessions),
        )
