"""
Capabilities and the default role -> capability table.

A capability is an atomic permission grant checked by set membership,
never by comparing role names.
"""

from enum import Enum
from typing import Dict, FrozenSet

from .enums import MembershipRole


class Capability(str, Enum):
    # Organization
    org_view = "org.view"
    org_settings = "org.settings"
    org_billing = "org.billing"
    org_delete = "org.delete"
    org_transfer = "org.transfer"
    # Members
    members_view = "members.view"
    members_invite = "members.invite"
    members_remove = "members.remove"
    members_roles = "members.roles"
    members_roles_admin = "members.roles.admin"
    members_roles_owner = "members.roles.owner"
    # Units
    units_view = "units.view"
    units_create = "units.create"
    units_edit = "units.edit"
    units_delete = "units.delete"
    units_assign = "units.assign"
    # Invitations
    invitations_view_own = "invitations.view.own"
    invitations_view_unit = "invitations.view.unit"
    invitations_view_all = "invitations.view.all"
    invitations_create = "invitations.create"
    invitations_cancel = "invitations.cancel"
    invitations_cancel_all = "invitations.cancel.all"
    # Access
    access_scan = "access.scan"
    access_manual = "access.manual"
    access_logs_view = "access.logs.view"
    access_logs_export = "access.logs.export"
    # Community
    announcements_view = "announcements.view"
    amenities_view = "amenities.view"
    amenities_reserve = "amenities.reserve"
    packages_view_own = "packages.view.own"
    packages_view_all = "packages.view.all"
    packages_register = "packages.register"
    packages_deliver = "packages.deliver"
    maintenance_view_own = "maintenance.view.own"
    maintenance_create = "maintenance.create"
    polls_view = "polls.view"
    polls_vote = "polls.vote"
    documents_view = "documents.view"
    vehicles_view_own = "vehicles.view.own"
    vehicles_view_all = "vehicles.view.all"
    vehicles_manage_own = "vehicles.manage.own"
    directory_view = "directory.view"
    emergency_alert = "emergency.alert"


ALL_CAPABILITIES: FrozenSet[str] = frozenset(c.value for c in Capability)

_ADMIN_EXCLUDED = {
    Capability.org_delete.value,
    Capability.org_transfer.value,
    Capability.members_roles_owner.value,
}

_GUARD = {
    Capability.org_view,
    Capability.members_view,
    Capability.units_view,
    Capability.invitations_view_all,
    Capability.access_scan,
    Capability.access_manual,
    Capability.access_logs_view,
    Capability.packages_view_all,
    Capability.packages_register,
    Capability.packages_deliver,
    Capability.vehicles_view_all,
    Capability.directory_view,
    Capability.emergency_alert,
}

_RESIDENT = {
    Capability.org_view,
    Capability.invitations_view_own,
    Capability.invitations_view_unit,
    Capability.invitations_create,
    Capability.invitations_cancel,
    Capability.announcements_view,
    Capability.amenities_view,
    Capability.amenities_reserve,
    Capability.packages_view_own,
    Capability.maintenance_view_own,
    Capability.maintenance_create,
    Capability.polls_view,
    Capability.polls_vote,
    Capability.documents_view,
    Capability.vehicles_view_own,
    Capability.vehicles_manage_own,
    Capability.directory_view,
}

DEFAULT_ROLE_CAPABILITIES: Dict[str, FrozenSet[str]] = {
    MembershipRole.super_admin.value: ALL_CAPABILITIES,
    MembershipRole.admin.value: ALL_CAPABILITIES - _ADMIN_EXCLUDED,
    MembershipRole.guard.value: frozenset(c.value for c in _GUARD),
    MembershipRole.resident.value: frozenset(c.value for c in _RESIDENT),
}
