"""
Tests for projects.

This module tests:
- Project creation, updates and manager reassignment
- Team membership (add, reactivate, update, remove)
- Tasks, assignee checks and progress
- Documents attached to a project
- Project statistics and API endpoints
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from projects.analytics import project_summary
from projects.models import ProjectMember
from projects.services import ProjectService
from core.exceptions import (
    Conflict, Forbidden, InsufficientRole, InvalidOperation, NotFound, ValidationError,
)


def project_data(**overrides):
    data = {
        'name': 'Payroll migration',
        'description': 'Move payroll onto the new ledger.',
        'start_date': timezone.localdate(),
    }
    data.update(overrides)
    return data


# =============================================================================
# PROJECT LIFECYCLE
# =============================================================================

@pytest.mark.integration
class TestProjectLifecycle:

    def test_manager_creates_and_joins_team(self, manager_principal, identity_for):
        project = ProjectService().create(identity_for(manager_principal), project_data())

        assert project.manager == manager_principal
        assert project.status == 'planning'
        member = project.members.get()
        assert member.user == manager_principal
        assert member.role == ProjectMember.Role.MANAGER
        assert member.allocation == 100

    def test_admin_creates_for_named_manager(self, admin_principal, manager_factory, identity_for):
        manager = manager_factory()
        project = ProjectService().create(identity_for(admin_principal), project_data(manager=manager))
        assert project.manager == manager
        assert project.active_member_ids() == {manager.pk}

    def test_employee_manager_rejected(self, admin_principal, user_factory, identity_for):
        with pytest.raises(ValidationError) as excinfo:
            ProjectService().create(identity_for(admin_principal), project_data(manager=user_factory()))
        assert excinfo.value.field == 'manager'

    @pytest.mark.parametrize('principal', ['hr_principal', 'employee_principal'])
    def test_non_managers_cannot_create(self, request, identity_for, principal):
        user = request.getfixturevalue(principal)
        with pytest.raises(InsufficientRole):
            ProjectService().create(identity_for(user), project_data())

    def test_end_before_start(self, manager_principal, identity_for):
        with pytest.raises(ValidationError) as excinfo:
            ProjectService().create(
                identity_for(manager_principal),
                project_data(end_date=timezone.localdate() - timedelta(days=1)),
            )
        assert excinfo.value.field == 'end_date'

    def test_only_project_manager_updates(self, project_factory, manager_factory, hr_principal, identity_for):
        project = project_factory()
        service = ProjectService()

        updated = service.update(identity_for(project.manager), project.pk, {'status': 'on_hold'})
        assert updated.status == 'on_hold'

        for outsider in (manager_factory(), hr_principal):
            with pytest.raises(InsufficientRole):
                service.update(identity_for(outsider), project.pk, {'status': 'completed'})

    def test_update_cannot_change_manager(self, project_factory, identity_for):
        project = project_factory()
        with pytest.raises(InvalidOperation):
            ProjectService().update(identity_for(project.manager), project.pk, {'manager': 1})

    def test_only_admin_deletes(self, project_factory, admin_principal, identity_for):
        project = project_factory()
        service = ProjectService()
        with pytest.raises(InsufficientRole):
            service.delete(identity_for(project.manager), project.pk)

        service.delete(identity_for(admin_principal), project.pk)
        with pytest.raises(NotFound):
            service.get_project(identity_for(admin_principal), project.pk)

    def test_assign_manager(self, project_factory, manager_factory, identity_for):
        project = project_factory()
        previous = project.manager
        successor = manager_factory()

        project = ProjectService().assign_manager(identity_for(previous), project.pk, successor.pk)

        assert project.manager == successor
        assert project.active_member_ids() == {successor.pk}
        old_entry = project.members.get(user=previous)
        assert not old_entry.is_active
        assert old_entry.end_date == timezone.localdate()

    def test_assign_manager_promotes_existing_member(
        self, project_factory, project_member_factory, manager_factory, identity_for
    ):
        project = project_factory()
        successor = manager_factory()
        project_member_factory(project=project, user=successor, allocation=20)

        ProjectService().assign_manager(identity_for(project.manager), project.pk, successor.pk)

        entry = project.members.get(user=successor)
        assert entry.role == ProjectMember.Role.MANAGER
        assert entry.allocation == 100


# =============================================================================
# TEAM
# =============================================================================

@pytest.mark.integration
class TestProjectTeam:

    def test_add_member(self, project_factory, user_factory, identity_for):
        project = project_factory()
        developer = user_factory()
        member = ProjectService().add_member(identity_for(project.manager), project.pk, developer.pk, allocation=40)

        assert member.is_active
        assert member.allocation == 40
        assert developer.pk in project.active_member_ids()

    def test_add_active_member_conflicts(self, project_member_factory, identity_for):
        member = project_member_factory()
        with pytest.raises(Conflict):
            ProjectService().add_member(identity_for(member.project.manager), member.project_id, member.user_id)

    def test_readd_reactivates_same_row(self, project_member_factory, identity_for):
        member = project_member_factory(is_active=False, end_date=timezone.localdate())
        project = member.project

        readded = ProjectService().add_member(
            identity_for(project.manager), project.pk, member.user_id, role='tester', allocation=30
        )

        assert readded.pk == member.pk
        assert readded.is_active
        assert readded.end_date is None
        assert readded.role == 'tester'
        assert project.members.filter(user_id=member.user_id).count() == 1

    def test_manager_role_reserved(self, project_factory, user_factory, identity_for):
        project = project_factory()
        with pytest.raises(ValidationError) as excinfo:
            ProjectService().add_member(identity_for(project.manager), project.pk, user_factory().pk, role='manager')
        assert excinfo.value.field == 'role'

    @pytest.mark.parametrize('allocation', [0, 101])
    def test_allocation_range(self, project_factory, user_factory, identity_for, allocation):
        project = project_factory()
        with pytest.raises(ValidationError):
            ProjectService().add_member(
                identity_for(project.manager), project.pk, user_factory().pk, allocation=allocation
            )

    def test_inactive_user_rejected(self, project_factory, user_factory, identity_for):
        project = project_factory()
        with pytest.raises(ValidationError):
            ProjectService().add_member(
                identity_for(project.manager), project.pk, user_factory(status='suspended').pk
            )

    def test_member_cannot_manage_team(self, project_member_factory, user_factory, identity_for):
        member = project_member_factory()
        with pytest.raises(InsufficientRole):
            ProjectService().add_member(identity_for(member.user), member.project_id, user_factory().pk)

    def test_update_member(self, project_member_factory, identity_for):
        member = project_member_factory()
        updated = ProjectService().update_member(
            identity_for(member.project.manager), member.project_id, member.user_id, role='analyst', allocation=80
        )
        assert updated.role == 'analyst'
        assert updated.allocation == 80

    def test_update_member_cannot_grant_manager_role(self, project_member_factory, identity_for):
        member = project_member_factory()
        with pytest.raises(ValidationError):
            ProjectService().update_member(
                identity_for(member.project.manager), member.project_id, member.user_id, role='manager'
            )

    def test_remove_member(self, project_member_factory, identity_for):
        member = project_member_factory()
        ProjectService().remove_member(identity_for(member.project.manager), member.project_id, member.user_id)

        member.refresh_from_db()
        assert not member.is_active
        assert member.end_date == timezone.localdate()

    def test_cannot_remove_manager(self, project_factory, identity_for):
        project = project_factory()
        with pytest.raises(InvalidOperation):
            ProjectService().remove_member(identity_for(project.manager), project.pk, project.manager_id)

    def test_remove_non_member(self, project_factory, user_factory, identity_for):
        project = project_factory()
        with pytest.raises(InvalidOperation):
            ProjectService().remove_member(identity_for(project.manager), project.pk, user_factory().pk)


# =============================================================================
# TASKS
# =============================================================================

@pytest.mark.integration
class TestProjectTasks:

    def test_assignee_must_be_active_member(self, project_factory, user_factory, identity_for):
        project = project_factory()
        with pytest.raises(ValidationError) as excinfo:
            ProjectService().create_task(
                identity_for(project.manager), project.pk, {'name': 'Audit', 'assignee': user_factory()}
            )
        assert excinfo.value.field == 'assignee'

    def test_completion_is_stamped_and_cleared(self, project_member_factory, identity_for):
        member = project_member_factory()
        manager = identity_for(member.project.manager)
        service = ProjectService()

        task = service.create_task(manager, member.project_id, {'name': 'Audit', 'assignee': member.user})
        assert task.completed_at is None

        task = service.update_task(manager, member.project_id, task.pk, {'status': 'completed'})
        assert task.completed_at is not None
        assert task.completed_by_id == manager.id

        task = service.update_task(manager, member.project_id, task.pk, {'status': 'in_progress'})
        assert task.completed_at is None
        assert task.completed_by is None

    def test_update_unknown_task(self, project_factory, project_task_factory, identity_for):
        project = project_factory()
        foreign_task = project_task_factory()
        with pytest.raises(NotFound):
            ProjectService().update_task(identity_for(project.manager), project.pk, foreign_task.pk, {'status': 'review'})

    def test_progress(self, project_factory, project_task_factory):
        project = project_factory()
        assert project.progress == 0

        project_task_factory(project=project, status='completed')
        project_task_factory.create_batch(2, project=project)
        assert project.progress == 33

    def test_members_can_view_tasks(self, project_member_factory, project_task_factory, identity_for):
        member = project_member_factory()
        project_task_factory(project=member.project)
        assert ProjectService().tasks(identity_for(member.user), member.project_id).count() == 1


# =============================================================================
# DOCUMENTS
# =============================================================================

@pytest.mark.integration
class TestProjectDocuments:

    def test_member_attaches_own_document(self, project_member_factory, document_factory, identity_for):
        member = project_member_factory()
        document = document_factory(uploaded_by=member.user)

        link = ProjectService().attach_document(
            identity_for(member.user), member.project_id, document.pk, description='Kickoff deck'
        )

        assert link.added_by == member.user
        assert list(member.project.documents.all()) == [document]
        document.refresh_from_db()
        assert document.version == 1

    def test_attach_requires_share_right_on_document(
        self, project_member_factory, document_factory, identity_for
    ):
        member = project_member_factory()
        document = document_factory()
        with pytest.raises(Forbidden):
            ProjectService().attach_document(identity_for(member.user), member.project_id, document.pk)
        assert not member.project.document_links.exists()

    def test_outsider_cannot_attach(self, project_factory, document_factory, identity_for):
        project = project_factory()
        document = document_factory()
        with pytest.raises(InsufficientRole):
            ProjectService().attach_document(identity_for(document.uploaded_by), project.pk, document.pk)

    def test_attach_twice_conflicts(self, project_factory, project_document_factory, identity_for):
        project = project_factory()
        link = project_document_factory(project=project, document__uploaded_by=project.manager)
        with pytest.raises(Conflict):
            ProjectService().attach_document(identity_for(project.manager), project.pk, link.document_id)

    def test_attach_deleted_document(self, project_factory, document_factory, identity_for):
        project = project_factory()
        document = document_factory(uploaded_by=project.manager)
        document.delete(user_id=project.manager_id)
        with pytest.raises(NotFound):
            ProjectService().attach_document(identity_for(project.manager), project.pk, document.pk)

    def test_list_hides_deleted_documents(self, project_document_factory, project_member_factory, identity_for):
        link = project_document_factory()
        project_document_factory(project=link.project).document.delete(user_id=link.project.manager_id)
        member = project_member_factory(project=link.project)

        links = ProjectService().documents(identity_for(member.user), link.project_id)
        assert [item.document_id for item in links] == [link.document_id]

    def test_manager_detaches(self, project_document_factory, identity_for):
        link = project_document_factory()
        ProjectService().detach_document(identity_for(link.project.manager), link.project_id, link.document_id)
        assert not link.project.document_links.exists()

    def test_member_cannot_detach(self, project_document_factory, project_member_factory, identity_for):
        link = project_document_factory()
        member = project_member_factory(project=link.project)
        with pytest.raises(InsufficientRole):
            ProjectService().detach_document(identity_for(member.user), link.project_id, link.document_id)

    def test_detach_unattached(self, project_factory, document_factory, identity_for):
        project = project_factory()
        with pytest.raises(NotFound):
            ProjectService().detach_document(identity_for(project.manager), project.pk, document_factory().pk)


# =============================================================================
# QUERIES AND STATS
# =============================================================================

@pytest.mark.integration
class TestProjectQueries:

    def test_visible_to_manager_and_members(self, project_factory, project_member_factory, user_factory, identity_for):
        member = project_member_factory()
        project_factory()
        service = ProjectService()

        assert list(service.visible_projects(identity_for(member.user))) == [member.project]
        assert list(service.visible_projects(identity_for(member.project.manager))) == [member.project]
        assert not service.visible_projects(identity_for(user_factory())).exists()

    def test_former_member_loses_access(self, project_member_factory, identity_for):
        member = project_member_factory(is_active=False)
        with pytest.raises(InsufficientRole):
            ProjectService().get_project(identity_for(member.user), member.project_id)

    def test_hr_sees_all(self, hr_principal, project_factory, identity_for):
        project_factory.create_batch(3)
        assert ProjectService().visible_projects(identity_for(hr_principal)).count() == 3

    def test_stats(self, hr_principal, project_factory, identity_for):
        project_factory(budget=Decimal('1000.00'))
        project_factory(budget=Decimal('3000.00'), priority='high')
        project_factory(status='completed')

        summary = project_summary(identity_for(hr_principal))

        assert summary['total'] == 3
        assert summary['by_status']['in_progress']['count'] == 2
        assert summary['by_status']['in_progress']['total_budget'] == 4000.0
        assert summary['by_status']['in_progress']['avg_budget'] == 2000.0
        assert summary['by_priority'] == {'low': 0, 'medium': 2, 'high': 1, 'critical': 0}

    def test_manager_stats_scoped(self, project_factory, identity_for):
        mine = project_factory()
        project_factory()
        summary = project_summary(identity_for(mine.manager))
        assert summary['total'] == 1


# =============================================================================
# API
# =============================================================================

@pytest.mark.api
class TestProjectViewSet:
    """Tests for ProjectViewSet."""

    def test_create(self, client_for, manager_principal):
        response = client_for(manager_principal).post(reverse('api_v1:projects:project-list'), {
            'name': 'Benefits portal',
            'description': 'Self-service benefits enrolment.',
            'start_date': timezone.localdate().isoformat(),
            'budget': '25000.00',
            'settings': {'is_public': False},
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.data['data']
        assert data['manager']['id'] == manager_principal.pk
        assert len(data['team']) == 1
        assert data['progress'] == 0

    def test_employee_cannot_create(self, client_for, employee_principal):
        response = client_for(employee_principal).post(
            reverse('api_v1:projects:project-list'), project_data(start_date='2026-01-01'), format='json'
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_filtered_by_status(self, client_for, hr_principal, project_factory):
        project_factory(status='on_hold')
        project_factory()
        response = client_for(hr_principal).get(reverse('api_v1:projects:project-list'), {'status': 'on_hold'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1

    def test_me(self, client_for, project_member_factory):
        member = project_member_factory()
        response = client_for(member.user).get(reverse('api_v1:projects:project-me'))
        assert response.data['count'] == 1

    def test_team_add_and_conflict(self, client_for, project_factory, user_factory):
        project = project_factory()
        client = client_for(project.manager)
        url = reverse('api_v1:projects:project-team', args=[project.pk])
        developer = user_factory()

        response = client.post(url, {'user': developer.pk, 'role': 'designer', 'allocation': 60}, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['role'] == 'designer'

        response = client.post(url, {'user': developer.pk}, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT

        response = client.get(url)
        assert response.data['count'] == 2

    def test_remove_manager_rejected(self, client_for, project_factory):
        project = project_factory()
        response = client_for(project.manager).delete(
            reverse('api_v1:projects:project-team-member', kwargs={'pk': project.pk, 'user_id': project.manager_id})
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'INVALID_OPERATION'

    def test_update_member(self, client_for, project_member_factory):
        member = project_member_factory()
        response = client_for(member.project.manager).patch(
            reverse('api_v1:projects:project-team-member', kwargs={'pk': member.project_id, 'user_id': member.user_id}),
            {'allocation': 75},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['allocation'] == 75

    def test_reassign_manager(self, client_for, project_factory, manager_factory):
        project = project_factory()
        successor = manager_factory()
        response = client_for(project.manager).put(
            reverse('api_v1:projects:project-manager', args=[project.pk]), {'manager': successor.pk}, format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['manager']['id'] == successor.pk

    def test_tasks(self, client_for, project_member_factory):
        member = project_member_factory()
        client = client_for(member.project.manager)
        url = reverse('api_v1:projects:project-tasks', args=[member.project_id])

        response = client.post(url, {'name': 'Write runbook', 'assignee': member.user_id}, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        task_id = response.data['data']['id']

        response = client.patch(url, {'task': task_id, 'status': 'completed'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['completed_at'] is not None

        response = client_for(member.user).get(url)
        assert response.data['count'] == 1

    def test_task_update_requires_task(self, client_for, project_factory):
        project = project_factory()
        response = client_for(project.manager).patch(
            reverse('api_v1:projects:project-tasks', args=[project.pk]), {'status': 'review'}, format='json'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stats(self, client_for, hr_principal, project_factory):
        project_factory()
        response = client_for(hr_principal).get(reverse('api_v1:projects:project-stats'))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['total'] == 1

    def test_documents_attach_list_detach(self, client_for, project_member_factory, document_factory):
        member = project_member_factory()
        document = document_factory(uploaded_by=member.project.manager)
        client = client_for(member.project.manager)
        url = reverse('api_v1:projects:project-documents', args=[member.project_id])

        response = client.post(url, {'document': str(document.pk), 'description': 'Scope'}, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['filename'] == document.filename

        response = client_for(member.user).get(url)
        assert response.data['count'] == 1
        assert response.data['data'][0]['url'].endswith(f'/documents/{document.pk}/download/')

        response = client_for(member.user).delete(
            reverse('api_v1:projects:project-project-document', kwargs={'pk': member.project_id, 'document_id': document.pk})
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = client.delete(
            reverse('api_v1:projects:project-project-document', kwargs={'pk': member.project_id, 'document_id': document.pk})
        )
        assert response.status_code == status.HTTP_200_OK
        assert not member.project.document_links.exists()
