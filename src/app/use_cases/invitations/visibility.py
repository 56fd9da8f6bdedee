"""
Who may see which invitations.

- invitations.view.all: every invitation of the organization
- invitations.view.unit: invitations of the actor's own unit
- invitations.view.own: invitations the actor issued
"""

from src.app.services.permission_evaluator import PermissionEvaluator
from src.domain.entities import Actor, Capability, Invitation


def can_view(permissions: PermissionEvaluator, actor: Actor, invitation: Invitation) -> bool:
    if invitation.organization_id != actor.organization_id:
        return False
    if permissions.can(actor.role, Capability.invitations_view_all):
        return True
    if (
        permissions.can(actor.role, Capability.invitations_view_unit)
        and actor.unit_id is not None
        and invitation.unit_id == actor.unit_id
    ):
        return True
    return (
        permissions.can(actor.role, Capability.invitations_view_own)
        and invitation.created_by == actor.user_id
    )
