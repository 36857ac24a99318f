"""
Core Permissions - DRF adapters over the access decision engine.

Viewsets never compare role names themselves. Collection-level actions
(list, create, stats) are checked here against the rule table; actions on
a single record are checked by the service layer once it has loaded the
record and built its ResourceContext.

USAGE:
    class ProjectViewSet(IdentityViewSetMixin, viewsets.GenericViewSet):
        permission_classes = [IsAuthenticated, RuleTablePermission]
        resource_type = PROJECT_RESOURCE
        collection_actions = {'list': 'list', 'create': 'create', 'stats': 'stats'}
"""

import logging

from rest_framework import permissions
from rest_framework.request import Request
from rest_framework.views import APIView

from core.access import ensure_can_perform

logger = logging.getLogger('security.permissions')


class RuleTablePermission(permissions.BasePermission):
    """
    Checks collection-level viewset actions against the rule table.

    The view declares ``resource_type`` and ``collection_actions``, a mapping
    of viewset action name to rule-table action. Actions missing from the
    mapping pass through to the service layer.
    """

    def has_permission(self, request: Request, view: APIView) -> bool:
        collection_actions = getattr(view, 'collection_actions', {})
        rule_action = collection_actions.get(getattr(view, 'action', None))
        if rule_action is None:
            return True

        identity = view.get_identity()
        decision = ensure_can_perform(identity, rule_action, view.resource_type)
        logger.debug(
            "Access granted: user=%s action=%s resource=%s rule=%s",
            identity.id, rule_action, view.resource_type, decision.rule
        )
        return True
