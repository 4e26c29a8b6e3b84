"""Build errors: structural configuration failures and recovered per-item issues"""

import logging
from dataclasses import dataclass


logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """A content definition or pipeline is invalid; the build cannot run."""


@dataclass(frozen=True)
class Issue:
    """A recovered per-content problem (the item is still built)."""
    slug:    str
    field:   str | None
    message: str

    def __str__(self) -> str:
        where = f"{self.slug}:{self.field}" if self.field else self.slug
        return f"{where}: {self.message}"


def report(issues: list[Issue] | None, slug: str, field: str | None, message: str) -> None:
    """Log an issue at WARNING and record it when an issue list is supplied."""
    issue = Issue(slug=slug, field=field, message=message)
    logger.warning("%s", issue)
    if issues is not None:
        issues.append(issue)
