"""Built-in scan category definitions for declutter."""

from declutter.models import Category, RiskTier, ScanCriterion

OTHER = "Other"

# All built-in categories, keyed by name
CATEGORIES: dict[str, Category] = {
    # =============================================================================
    # LOW RISK - regenerated automatically or plainly garbage
    # =============================================================================
    "Incomplete Downloads": Category(
        name="Incomplete Downloads",
        risk_tier=RiskTier.LOW,
        criterion=ScanCriterion(
            pattern=r"\.part$|\.download$|\.crdownload$|\.unconfirmed$|\.downloading$",
            size_threshold=10_000_000,  # 10 MB
        ),
        paths=["~/Downloads"],
        description="Partial files left behind by interrupted browser downloads",
    ),
    "Application Caches": Category(
        name="Application Caches",
        risk_tier=RiskTier.LOW,
        criterion=ScanCriterion(size_threshold=100_000_000),  # 100 MB
        paths=["~/.cache", "~/Library/Caches"],
        description="Caches that applications rebuild on demand",
    ),
    "Trash Items": Category(
        name="Trash Items",
        risk_tier=RiskTier.LOW,
        criterion=ScanCriterion(size_threshold=100_000_000),  # 100 MB
        paths=["~/.local/share/Trash", "~/.Trash"],
        description="Files already moved to the trash",
    ),
    # =============================================================================
    # MEDIUM RISK - usually safe, worth a glance
    # =============================================================================
    "Developer Files": Category(
        name="Developer Files",
        risk_tier=RiskTier.MEDIUM,
        criterion=ScanCriterion(
            pattern=r"DerivedData|CoreSimulator|node_modules|__pycache__",
            size_threshold=500_000_000,  # 500 MB
        ),
        paths=["~/Library/Developer"],
        description="Build products, simulators and dependency folders",
    ),
    "System Logs": Category(
        name="System Logs",
        risk_tier=RiskTier.MEDIUM,
        criterion=ScanCriterion(
            pattern=r"\.log$|\.log\.[0-9]+$",
            size_threshold=50_000_000,  # 50 MB
        ),
        paths=["~/.local/state", "~/Library/Logs"],
        description="Application and rotated log files",
    ),
    "Docker": Category(
        name="Docker",
        risk_tier=RiskTier.MEDIUM,
        criterion=ScanCriterion(
            pattern=r"^(containers|volumes)$",
            size_threshold=1_000_000_000,  # 1 GB
        ),
        paths=["~/.local/share/docker"],
        description="Container layers and volumes",
    ),
    # =============================================================================
    # Fallback for locations tagged with an unknown category
    # =============================================================================
    OTHER: Category(
        name=OTHER,
        risk_tier=RiskTier.LOW,
        criterion=ScanCriterion(size_threshold=10_000_000),  # 10 MB
        description="Anything large in a user-chosen folder",
    ),
}


def get_category(name: str | None) -> Category:
    """Get a category by name, falling back to the generic 'Other' category."""
    if name is None:
        return CATEGORIES[OTHER]
    return CATEGORIES.get(name, CATEGORIES[OTHER])


def get_all_categories() -> list[Category]:
    """Get all categories."""
    return list(CATEGORIES.values())


def criterion_for_category(name: str | None) -> ScanCriterion:
    """Criterion a scan uses for a location whose primary category is name."""
    return get_category(name).criterion


def risk_for_category(name: str | None) -> RiskTier:
    """Risk tier assigned to every match in a category."""
    return get_category(name).risk_tier
