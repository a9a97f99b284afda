"""Resolve a GitHub repository to the project tracking it."""

from typing import Optional

from correlator.models import Project
from correlator.storage import Store
from correlator.utils.logging import get_logger

logger = get_logger(__name__)


async def find_project_for_repository(store: Store, full_name: str) -> Optional[Project]:
    """
    The single project whose repo name equals ``full_name`` or whose repo URL contains it.

    Zero or several matches are logged and yield None; the delivery is then
    acknowledged without processing.
    """
    projects = await store.find_projects_by_repository(full_name)

    if not projects:
        logger.warning(
            f"No project found for repository {full_name}",
            extra={"repository": full_name},
        )
        return None

    if len(projects) > 1:
        logger.warning(
            f"Repository {full_name} is claimed by {len(projects)} projects; skipping event",
            extra={"repository": full_name, "project_ids": [p.id for p in projects]},
        )
        return None

    return projects[0]
