"""Least-loaded assignee selection for generated tickets."""

from typing import Dict, List, Optional, Sequence

from correlator.models import MemberRole, ProjectMember
from correlator.storage import Store

# Role hint -> roles tried in order before falling back to all members
ROLE_PREFERENCES: Dict[str, Sequence[MemberRole]] = {
    "engineer": (MemberRole.ENGINEER,),
    "pm": (MemberRole.PM, MemberRole.ADMIN),
    "admin": (MemberRole.ADMIN,),
    "any": (),
}


def by_workload(members: Sequence[ProjectMember], workloads: Dict[str, int]) -> List[ProjectMember]:
    """Members sorted by ascending workload; ties keep membership order."""
    return sorted(members, key=lambda member: workloads.get(member.user_id, 0))


def choose_assignee(
    members: Sequence[ProjectMember],
    workloads: Dict[str, int],
    role_hint: str,
) -> Optional[ProjectMember]:
    """
    Pick the least-loaded member for a role hint.

    Falls through the preferred roles for the hint, then to the least-loaded
    member overall. Returns None only for a project without members.
    """
    for role in ROLE_PREFERENCES.get(role_hint, ()):
        candidates = by_workload([m for m in members if m.role == role], workloads)
        if candidates:
            return candidates[0]

    overall = by_workload(members, workloads)
    return overall[0] if overall else None


async def load_workloads(store: Store, project_id: str, members: Sequence[ProjectMember]) -> Dict[str, int]:
    """Open (todo/in_progress) assignment count per member."""
    return {
        member.user_id: await store.count_open_assignments(project_id, member.user_id)
        for member in members
    }
