"""
Access Decision Engine

Decides whether a principal may perform an action on a resource. Every
resource boundary consults the same declarative rule table keyed by
``(action, resource_type)``; nothing here touches the database.

Decision precedence (first match wins):
1. admin role: total override
2. elevated roles listed on the rule
3. ownership (subject or owner) for self-scoped rules
4. relationships: direct manager, department manager, designated
   reviewer, active team member
5. document sharing levels (view < comment < edit) and public documents
6. deny with reason ``InsufficientRole``

Callers build a ``ResourceContext`` from freshly read state right before
the check, so relationship data is verified at the time of the action.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from core.exceptions import AccountInactive, Forbidden, InsufficientRole

# Role names
ADMIN = 'admin'
HR = 'hr'
MANAGER = 'manager'
EMPLOYEE = 'employee'

ALL_ROLES = frozenset({ADMIN, HR, MANAGER, EMPLOYEE})

# Resource types
EMPLOYEE_RESOURCE = 'employee'
WARNING_RESOURCE = 'warning'
APPRAISAL_RESOURCE = 'appraisal'
PROJECT_RESOURCE = 'project'
DOCUMENT_RESOURCE = 'document'

# Ordered share levels
SHARE_LEVELS = ('view', 'comment', 'edit')

INACTIVE_STATUSES = frozenset({'suspended', 'terminated'})


def share_rank(level: Optional[str]) -> int:
    """Position of a share level in the view < comment < edit ordering, -1 if unknown."""
    try:
        return SHARE_LEVELS.index(level)
    except ValueError:
        return -1


@dataclass(frozen=True)
class Identity:
    """Resolved principal as seen by the access engine."""
    id: int
    role: str
    status: str
    permissions: Tuple[str, ...] = ()
    department: Optional[str] = None
    manager_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    @property
    def is_elevated(self) -> bool:
        return self.role in (ADMIN, HR)

    def has_permission(self, codename: str) -> bool:
        return codename in self.permissions


@dataclass(frozen=True)
class ResourceContext:
    """
    Snapshot of the facts about one resource that access rules look at.

    Attributes:
        resource_type: One of the *_RESOURCE constants
        subject_id: Principal the resource is about (the employee)
        owner_id: Principal who owns the resource (the uploader)
        manager_id: Direct manager of the subject, or the project manager
        reviewer_id: Designated reviewer of an appraisal
        member_ids: Principals on the active project team
        department: Department the resource belongs to
        is_public: Whether the document is visible to everyone
        shares: Mapping of principal id to share level
    """
    resource_type: str
    subject_id: Optional[int] = None
    owner_id: Optional[int] = None
    manager_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    member_ids: FrozenSet[int] = frozenset()
    department: Optional[str] = None
    is_public: bool = False
    shares: Mapping[int, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AccessRule:
    """One row of the rule table."""
    roles: FrozenSet[str] = frozenset()
    self_scope: bool = False
    manager_scope: bool = False
    department_scope: bool = False
    reviewer_scope: bool = False
    member_scope: bool = False
    share_level: Optional[str] = None
    public: bool = False


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    rule: Optional[str] = None

    def __bool__(self):
        return self.allowed


def _rule(*roles, **flags) -> AccessRule:
    return AccessRule(roles=frozenset(roles), **flags)


ACCESS_RULES: Dict[Tuple[str, str], AccessRule] = {
    # Employees
    ('list', EMPLOYEE_RESOURCE): _rule(HR, MANAGER),
    ('create', EMPLOYEE_RESOURCE): _rule(HR),
    ('view', EMPLOYEE_RESOURCE): _rule(HR, self_scope=True, manager_scope=True),
    ('update', EMPLOYEE_RESOURCE): _rule(HR),
    ('change_role', EMPLOYEE_RESOURCE): _rule(),
    ('change_status', EMPLOYEE_RESOURCE): _rule(HR),
    ('delete', EMPLOYEE_RESOURCE): _rule(),
    ('view_team', EMPLOYEE_RESOURCE): _rule(HR, MANAGER),
    ('stats', EMPLOYEE_RESOURCE): _rule(HR),
    ('upload_document', EMPLOYEE_RESOURCE): _rule(HR, self_scope=True),
    ('list_documents', EMPLOYEE_RESOURCE): _rule(HR, self_scope=True, manager_scope=True),
    ('verify_document', EMPLOYEE_RESOURCE): _rule(HR),

    # Warnings
    ('list', WARNING_RESOURCE): _rule(HR, MANAGER),
    ('create', WARNING_RESOURCE): _rule(HR, manager_scope=True),
    ('view', WARNING_RESOURCE): _rule(HR, manager_scope=True),
    ('update', WARNING_RESOURCE): _rule(HR, manager_scope=True),
    ('resolve', WARNING_RESOURCE): _rule(HR, manager_scope=True),
    ('escalate', WARNING_RESOURCE): _rule(HR, manager_scope=True),
    ('withdraw', WARNING_RESOURCE): _rule(HR),
    ('delete', WARNING_RESOURCE): _rule(HR),
    ('stats', WARNING_RESOURCE): _rule(HR, MANAGER),

    # Appraisals
    ('list', APPRAISAL_RESOURCE): _rule(HR, MANAGER, EMPLOYEE),
    ('list_for_user', APPRAISAL_RESOURCE): _rule(HR, manager_scope=True),
    ('create', APPRAISAL_RESOURCE): _rule(HR, manager_scope=True),
    ('view', APPRAISAL_RESOURCE): _rule(HR, self_scope=True, manager_scope=True, reviewer_scope=True),
    ('update', APPRAISAL_RESOURCE): _rule(HR, manager_scope=True, reviewer_scope=True),
    ('cancel', APPRAISAL_RESOURCE): _rule(HR, manager_scope=True, reviewer_scope=True),
    ('submit_self_assessment', APPRAISAL_RESOURCE): _rule(self_scope=True),
    ('submit_review', APPRAISAL_RESOURCE): _rule(reviewer_scope=True),
    ('delete', APPRAISAL_RESOURCE): _rule(HR),
    ('stats', APPRAISAL_RESOURCE): _rule(HR, MANAGER),

    # Projects
    ('list', PROJECT_RESOURCE): _rule(HR, MANAGER, EMPLOYEE),
    ('create', PROJECT_RESOURCE): _rule(MANAGER),
    ('view', PROJECT_RESOURCE): _rule(HR, manager_scope=True, member_scope=True),
    ('view_team', PROJECT_RESOURCE): _rule(HR, manager_scope=True, member_scope=True),
    ('update', PROJECT_RESOURCE): _rule(manager_scope=True),
    ('assign_manager', PROJECT_RESOURCE): _rule(manager_scope=True),
    ('manage_team', PROJECT_RESOURCE): _rule(manager_scope=True),
    ('manage_tasks', PROJECT_RESOURCE): _rule(manager_scope=True),
    ('attach_document', PROJECT_RESOURCE): _rule(manager_scope=True, member_scope=True),
    ('detach_document', PROJECT_RESOURCE): _rule(manager_scope=True),
    ('delete', PROJECT_RESOURCE): _rule(),
    ('stats', PROJECT_RESOURCE): _rule(HR, MANAGER),

    # Documents
    ('list', DOCUMENT_RESOURCE): _rule(HR, MANAGER, EMPLOYEE),
    ('upload', DOCUMENT_RESOURCE): _rule(HR, MANAGER, EMPLOYEE),
    ('view', DOCUMENT_RESOURCE): _rule(
        HR, self_scope=True, department_scope=True, member_scope=True, share_level='view', public=True
    ),
    ('download', DOCUMENT_RESOURCE): _rule(
        HR, self_scope=True, department_scope=True, member_scope=True, share_level='view', public=True
    ),
    ('update', DOCUMENT_RESOURCE): _rule(HR, self_scope=True, share_level='edit'),
    ('share', DOCUMENT_RESOURCE): _rule(HR, self_scope=True),
    ('delete', DOCUMENT_RESOURCE): _rule(HR),
    ('stats', DOCUMENT_RESOURCE): _rule(HR),
}


def get_rule(action: str, resource_type: str) -> Optional[AccessRule]:
    return ACCESS_RULES.get((action, resource_type))


def can_perform(
    identity: Identity,
    action: str,
    resource_type: str,
    resource: Optional[ResourceContext] = None,
) -> Decision:
    """
    Decide whether ``identity`` may perform ``action`` on a resource type.

    Args:
        identity: The resolved principal.
        action: Action name as it appears in ACCESS_RULES.
        resource_type: Resource type the action targets.
        resource: Snapshot of the target resource, None for collection-level
            actions (list, create, stats).

    Returns:
        Decision: ``allowed`` plus the reason for a denial or the rule
        that granted access.
    """
    if identity.status in INACTIVE_STATUSES:
        return Decision(False, reason='AccountInactive')

    if identity.role == ADMIN:
        return Decision(True, rule='admin')

    rule = get_rule(action, resource_type)
    if rule is None:
        return Decision(False, reason='InsufficientRole')

    if identity.role in rule.roles:
        return Decision(True, rule='role')

    if resource is None:
        return Decision(False, reason='InsufficientRole')

    if rule.self_scope and identity.id in (resource.subject_id, resource.owner_id):
        return Decision(True, rule='ownership')

    if identity.role == MANAGER:
        if rule.manager_scope and resource.manager_id is not None and identity.id == resource.manager_id:
            return Decision(True, rule='relationship')
        if (
            rule.department_scope
            and resource.department
            and resource.department == identity.department
        ):
            return Decision(True, rule='department')

    if rule.reviewer_scope and resource.reviewer_id is not None and identity.id == resource.reviewer_id:
        return Decision(True, rule='reviewer')

    if rule.member_scope and identity.id in resource.member_ids:
        return Decision(True, rule='membership')

    if rule.share_level:
        granted = resource.shares.get(identity.id)
        if granted is not None and share_rank(granted) >= share_rank(rule.share_level):
            return Decision(True, rule='share')
        if rule.public and resource.is_public:
            return Decision(True, rule='public')

    return Decision(False, reason='InsufficientRole')


def ensure_can_perform(
    identity: Identity,
    action: str,
    resource_type: str,
    resource: Optional[ResourceContext] = None,
) -> Decision:
    """
    Like ``can_perform`` but raises on denial.

    Raises:
        AccountInactive: When the principal is suspended or terminated.
        InsufficientRole: When no rule grants access.
    """
    decision = can_perform(identity, action, resource_type, resource)
    if decision.allowed:
        return decision

    if decision.reason == 'AccountInactive':
        raise AccountInactive(status=identity.status)
    if decision.reason == 'InsufficientRole':
        raise InsufficientRole(
            f"Not authorized to {action.replace('_', ' ')} this {resource_type}.",
            action=action,
            resource_type=resource_type,
        )
    raise Forbidden(action=action, resource_type=resource_type)
