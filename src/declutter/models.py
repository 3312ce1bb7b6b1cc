"""Data models for declutter."""

import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


class RiskTier(str, Enum):
    """How safe deleting a match is presumed to be."""

    LOW = "low"  # Regenerated automatically or plainly garbage
    MEDIUM = "medium"  # Usually safe, worth a glance
    HIGH = "high"  # May hold user data

    @property
    def rank(self) -> int:
        """Position in the low < medium < high ordering."""
        return _RISK_ORDER.index(self)


_RISK_ORDER = [RiskTier.LOW, RiskTier.MEDIUM, RiskTier.HIGH]


class ScanCriterion(BaseModel):
    """Optional pattern/size/age constraints used to classify one entry.

    A criterion with nothing set matches every entry it is shown.
    """

    model_config = ConfigDict(frozen=True)

    pattern: Optional[str] = Field(
        None, description="Regular expression searched in the base name (case-sensitive)"
    )
    size_threshold: Optional[int] = Field(
        None, ge=0, description="Entry must be strictly larger than this many bytes"
    )
    age_threshold: Optional[timedelta] = Field(
        None, description="Entry must be unmodified for strictly longer than this"
    )

    @property
    def is_unconstrained(self) -> bool:
        return self.pattern is None and self.size_threshold is None and self.age_threshold is None


class Category(BaseModel):
    """Definition of a built-in scan category."""

    name: str = Field(..., description="Human-readable name, also the category key")
    risk_tier: RiskTier = Field(..., description="Default risk for every match in this category")
    criterion: ScanCriterion = Field(default_factory=ScanCriterion)
    paths: list[str] = Field(
        default_factory=list, description="Roots known to hold this kind of waste (supports ~)"
    )
    description: str = Field("", description="What this category contains")


class ScanLocation(BaseModel):
    """A root the user asked to have scanned."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., description="Display name")
    path: str = Field(..., description="Root path to traverse")
    access_token: Optional[str] = Field(
        None, description="Opaque token needed to read the root, resolved by a LocationProvider"
    )
    categories: list[str] = Field(default_factory=list)
    is_enabled: bool = True

    @property
    def primary_category(self) -> str:
        """The category that drives classification for this location."""
        return self.categories[0] if self.categories else "Other"


class ProblemEntry(BaseModel):
    """A single file or directory reported by a scan."""

    path: str = Field(..., description="Absolute path, unique within one scan")
    name: str = Field(..., description="Base name for display")
    size_bytes: int = Field(..., description="Reclaimable bytes if deleted as a unit")
    modified: datetime
    category: str
    risk_tier: RiskTier
    is_directory: bool = False
    selected: bool = Field(False, description="Marked for deletion by the user")

    @property
    def size_human(self) -> str:
        return format_size(self.size_bytes)


class ScanReport(BaseModel):
    """Merged output of one traversal or one multi-location scan."""

    entries: list[ProblemEntry] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list, description="Soft errors, in order")
    cancelled: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def total_bytes(self) -> int:
        """Sum of entry sizes.

        A directory entry and its matching descendants are both counted, so
        this can over-report the space that deleting everything would free.
        """
        return sum(e.size_bytes for e in self.entries)

    def extend(self, other: "ScanReport") -> None:
        self.entries.extend(other.entries)
        self.errors.extend(other.errors)
        self.cancelled = self.cancelled or other.cancelled

    def by_risk(self, risk_tier: RiskTier) -> list[ProblemEntry]:
        return [e for e in self.entries if e.risk_tier == risk_tier]


class RuleAction(str, Enum):
    """What a rule target does to each match."""

    DELETE = "delete"
    MOVE_TO_TRASH = "move_to_trash"
    COMPRESS = "compress"  # Accepted and logged, never touches the file

    @property
    def label(self) -> str:
        return {
            RuleAction.DELETE: "Delete",
            RuleAction.MOVE_TO_TRASH: "Move to Trash",
            RuleAction.COMPRESS: "Compress",
        }[self]


class Schedule(str, Enum):
    """How often an enabled rule runs automatically."""

    MANUAL = "manual"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RuleTarget(BaseModel):
    """One root path + criterion + action within a rule."""

    path: str = Field(..., description="Root to traverse (supports ~)")
    criterion: ScanCriterion = Field(default_factory=ScanCriterion)
    action: RuleAction = RuleAction.MOVE_TO_TRASH
    category: Optional[str] = Field(None, description="Category recorded when the target was created")
    include_directories: bool = Field(
        False, description="Also act on whole directories whose aggregate size matches"
    )


class CleaningRule(BaseModel):
    """A persisted, schedulable automated cleanup definition."""

    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    icon: str = "folder"
    targets: list[RuleTarget] = Field(default_factory=list)
    schedule: Schedule = Schedule.MANUAL
    is_enabled: bool = False
    last_run: Optional[datetime] = None


class RuleExecutionResult(BaseModel):
    """Outcome of running every target of one rule."""

    rule_id: str
    rule_name: str
    executed_at: datetime = Field(default_factory=datetime.now)
    processed_paths: list[str] = Field(default_factory=list)
    space_freed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def files_processed(self) -> int:
        return len(self.processed_paths)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class CleanupResult(BaseModel):
    """Result of removing user-selected scan entries."""

    bytes_freed: int = 0
    entries_removed: int = 0
    removed_paths: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


class DiskUsage(BaseModel):
    """Overall disk usage information."""

    total_bytes: int = Field(..., description="Total disk size in bytes")
    used_bytes: int = Field(..., description="Used space in bytes")
    free_bytes: int = Field(..., description="Free space in bytes")
    mount_point: str = Field("/", description="Mount point")

    @property
    def total_gb(self) -> float:
        return self.total_bytes / (1000**3)

    @property
    def used_gb(self) -> float:
        return self.used_bytes / (1000**3)

    @property
    def free_gb(self) -> float:
        return self.free_bytes / (1000**3)

    @property
    def used_percent(self) -> float:
        """Percentage of disk used."""
        return (self.used_bytes / self.total_bytes) * 100 if self.total_bytes > 0 else 0


class DiskUsageSnapshot(BaseModel):
    """Disk usage recorded at one point in time."""

    timestamp: datetime = Field(default_factory=datetime.now)
    used_bytes: int
    total_bytes: int

    @property
    def used_fraction(self) -> float:
        return self.used_bytes / self.total_bytes if self.total_bytes > 0 else 0.0
