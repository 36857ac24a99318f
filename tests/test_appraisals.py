"""
Tests for appraisals.

This module tests:
- Overall rating derivation
- Appraisal creation rules (reviewer, duplicates, dates)
- Self-assessment / review / cancel transitions
- Visibility and statistics
- Appraisal API endpoints
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from appraisals.analytics import appraisal_summary
from appraisals.models import Appraisal
from appraisals.rating import GoalScore, KPIScore, calculate_overall_rating
from appraisals.services import AppraisalService
from core.exceptions import (
    Conflict, InsufficientRole, InvalidTransition, PreconditionFailed, ValidationError,
)


# =============================================================================
# RATING
# =============================================================================

@pytest.mark.unit
class TestOverallRating:

    def test_manual_rating_wins(self):
        assert calculate_overall_rating(4, [GoalScore(2, 100)]) == 4

    def test_nothing_to_rate(self):
        assert calculate_overall_rating(None) is None
        assert calculate_overall_rating(None, [GoalScore(None, 50)], [KPIScore(None, 10)]) is None

    def test_goals_weighted(self):
        goals = [GoalScore(4, 60), GoalScore(5, 40)]
        assert calculate_overall_rating(None, goals) == 4.4

    def test_kpis_fill_remaining_weight(self):
        goals = [GoalScore(4, 50)]
        kpis = [KPIScore(80, 100), KPIScore(50, 50)]
        # 4 * 0.5 + 4 * 0.25 + 5 * 0.25
        assert calculate_overall_rating(None, goals, kpis) == 4.25

    def test_kpi_rating_capped(self):
        assert calculate_overall_rating(None, [], [KPIScore(300, 100)]) == 5.0

    def test_kpi_without_target_ignored(self):
        assert calculate_overall_rating(None, [], [KPIScore(10, 0), KPIScore(50, 100)]) == 1.25

    def test_goal_rating_clamped(self):
        assert calculate_overall_rating(None, [GoalScore(9, 100)]) == 5.0

    def test_kpis_ignored_when_goals_fill_weight(self):
        assert calculate_overall_rating(None, [GoalScore(3, 100)], [KPIScore(100, 100)]) == 3.0

    def test_decimal_inputs(self):
        assert calculate_overall_rating(None, [], [KPIScore(Decimal('75.00'), Decimal('100.00'))]) == 3.75


# =============================================================================
# CREATION
# =============================================================================

@pytest.mark.integration
class TestCreateAppraisal:

    def _data(self, employee, reviewer, **overrides):
        data = {
            'employee': employee,
            'reviewer': reviewer,
            'due_date': timezone.localdate() + timedelta(days=30),
            'cycle': 'Q3 2026',
        }
        data.update(overrides)
        return data

    def test_manager_creates_for_report(self, manager_principal, employee_principal, identity_for):
        appraisal = AppraisalService().create(
            identity_for(manager_principal),
            self._data(employee_principal, manager_principal, goals=[{'title': 'Ship v2', 'weightage': 100}]),
        )

        assert appraisal.status == Appraisal.Status.DRAFT
        assert appraisal.appraisal_date == timezone.localdate()
        assert appraisal.goals.count() == 1

    def test_manager_cannot_create_for_other_team(self, manager_principal, user_factory, identity_for):
        with pytest.raises(InsufficientRole):
            AppraisalService().create(identity_for(manager_principal), self._data(user_factory(), manager_principal))

    def test_employee_reviewer_rejected(self, hr_principal, user_factory, identity_for):
        with pytest.raises(ValidationError) as excinfo:
            AppraisalService().create(identity_for(hr_principal), self._data(user_factory(), user_factory()))
        assert excinfo.value.field == 'reviewer'

    def test_suspended_reviewer_rejected(self, hr_principal, user_factory, manager_factory, identity_for):
        reviewer = manager_factory(status='suspended')
        with pytest.raises(ValidationError):
            AppraisalService().create(identity_for(hr_principal), self._data(user_factory(), reviewer))

    def test_inactive_employee_rejected(self, hr_principal, user_factory, identity_for):
        with pytest.raises(ValidationError) as excinfo:
            AppraisalService().create(
                identity_for(hr_principal), self._data(user_factory(status='terminated'), hr_principal)
            )
        assert excinfo.value.field == 'employee'

    def test_due_before_appraisal_date(self, hr_principal, user_factory, identity_for):
        with pytest.raises(ValidationError) as excinfo:
            AppraisalService().create(
                identity_for(hr_principal),
                self._data(user_factory(), hr_principal, due_date=timezone.localdate() - timedelta(days=1)),
            )
        assert excinfo.value.field == 'due_date'

    def test_duplicate_on_same_date_conflicts(self, hr_principal, user_factory, appraisal_factory, identity_for):
        employee = user_factory()
        appraisal_factory(employee=employee)
        with pytest.raises(Conflict):
            AppraisalService().create(identity_for(hr_principal), self._data(employee, hr_principal))

    def test_cancelled_appraisal_does_not_block(self, hr_principal, user_factory, appraisal_factory, identity_for):
        employee = user_factory()
        appraisal_factory(employee=employee, status='cancelled')
        appraisal = AppraisalService().create(identity_for(hr_principal), self._data(employee, hr_principal))
        assert appraisal.status == 'draft'


# =============================================================================
# TRANSITIONS
# =============================================================================

@pytest.mark.integration
class TestAppraisalWorkflow:

    def test_full_cycle(self, appraisal_factory, appraisal_goal_factory, identity_for):
        appraisal = appraisal_factory()
        appraisal_goal_factory(appraisal=appraisal, rating=4, weightage=100)
        service = AppraisalService()

        appraisal = service.submit_self_assessment(identity_for(appraisal.employee), appraisal.pk, ' Went well ')
        assert appraisal.status == 'in_progress'
        assert appraisal.self_assessment == 'Went well'
        assert appraisal.self_assessment_date is not None

        appraisal = service.submit_review(identity_for(appraisal.reviewer), appraisal.pk, 'Solid year', 4)
        assert appraisal.status == 'completed'
        assert appraisal.completed_at is not None
        assert appraisal.duration_days == 0
        assert appraisal.overall_rating == 4

    def test_self_assessment_only_by_subject(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory()
        with pytest.raises(InsufficientRole):
            AppraisalService().submit_self_assessment(identity_for(appraisal.reviewer), appraisal.pk, 'text')

    def test_blank_self_assessment(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory()
        with pytest.raises(ValidationError):
            AppraisalService().submit_self_assessment(identity_for(appraisal.employee), appraisal.pk, '   ')

    def test_self_assessment_after_review_rejected(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory(status='needs_review')
        with pytest.raises(InvalidTransition):
            AppraisalService().submit_self_assessment(identity_for(appraisal.employee), appraisal.pk, 'late')

    def test_review_of_draft_rejected(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory()
        with pytest.raises(InvalidTransition) as excinfo:
            AppraisalService().submit_review(identity_for(appraisal.reviewer), appraisal.pk, 'Good', 4)
        assert excinfo.value.extra_data['current_state'] == 'draft'

    def test_completion_needs_goals(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory(status='in_progress', self_assessment='Done')
        with pytest.raises(PreconditionFailed) as excinfo:
            AppraisalService().submit_review(identity_for(appraisal.reviewer), appraisal.pk, 'Good', 4)

        assert excinfo.value.extra_data['missing'] == ['goals']
        appraisal.refresh_from_db()
        assert appraisal.status == 'in_progress'
        assert appraisal.rating is None

    def test_completion_needs_self_assessment(self, appraisal_factory, appraisal_goal_factory, identity_for):
        appraisal = appraisal_factory(status='in_progress')
        appraisal_goal_factory(appraisal=appraisal)
        with pytest.raises(PreconditionFailed) as excinfo:
            AppraisalService().submit_review(identity_for(appraisal.reviewer), appraisal.pk, 'Good', 4)
        assert excinfo.value.extra_data['missing'] == ['self_assessment']

    def test_needs_review_has_no_preconditions(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory(status='in_progress')
        appraisal = AppraisalService().submit_review(
            identity_for(appraisal.reviewer), appraisal.pk, 'Needs another look', 3, status='needs_review'
        )
        assert appraisal.status == 'needs_review'
        assert appraisal.completed_at is None

    @pytest.mark.parametrize('rating', [0, 6])
    def test_rating_range(self, appraisal_factory, appraisal_goal_factory, identity_for, rating):
        appraisal = appraisal_factory(status='in_progress', self_assessment='Done')
        appraisal_goal_factory(appraisal=appraisal)
        with pytest.raises(ValidationError) as excinfo:
            AppraisalService().submit_review(identity_for(appraisal.reviewer), appraisal.pk, 'Good', rating)
        assert excinfo.value.field == 'rating'

    def test_unknown_review_target(self, appraisal_factory, identity_for):
        appraisal = appraisal_factory(status='in_progress')
        with pytest.raises(InvalidTransition):
            AppraisalService().submit_review(
                identity_for(appraisal.reviewer), appraisal.pk, 'Good', 4, status='cancelled'
            )

    def test_hr_cannot_review_for_reviewer(self, hr_principal, appraisal_factory, identity_for):
        appraisal = appraisal_factory(status='in_progress', self_assessment='Done')
        with pytest.raises(InsufficientRole):
            AppraisalService().submit_review(identity_for(hr_principal), appraisal.pk, 'Good', 4)

    def test_cancel(self, hr_principal, appraisal_factory, identity_for):
        appraisal = appraisal_factory()
        cancelled = AppraisalService().cancel(identity_for(hr_principal), appraisal.pk, 'Employee left')
        assert cancelled.status == 'cancelled'
        assert cancelled.overall_comments == 'Employee left'

    def test_completed_cannot_cancel_or_edit(self, hr_principal, appraisal_factory, identity_for):
        appraisal = appraisal_factory(status='completed', completed_at=timezone.now())
        service = AppraisalService()
        with pytest.raises(InvalidTransition):
            service.cancel(identity_for(hr_principal), appraisal.pk)
        with pytest.raises(InvalidTransition):
            service.update(identity_for(hr_principal), appraisal.pk, {'cycle': 'Changed'})

    def test_update_rejects_status(self, hr_principal, appraisal_factory, identity_for):
        appraisal = appraisal_factory()
        with pytest.raises(ValidationError):
            AppraisalService().update(identity_for(hr_principal), appraisal.pk, {'status': 'completed'})

    def test_update_replaces_goals(self, hr_principal, appraisal_factory, appraisal_goal_factory, identity_for):
        appraisal = appraisal_factory()
        appraisal_goal_factory.create_batch(2, appraisal=appraisal)
        AppraisalService().update(identity_for(hr_principal), appraisal.pk, {'goals': [{'title': 'Only one'}]})
        assert list(appraisal.goals.values_list('title', flat=True)) == ['Only one']


# =============================================================================
# QUERIES AND STATS
# =============================================================================

@pytest.mark.integration
class TestAppraisalQueries:

    def test_employee_sees_own_only(self, user_factory, appraisal_factory, identity_for):
        employee = user_factory()
        mine = appraisal_factory(employee=employee)
        appraisal_factory()
        assert list(AppraisalService().visible_appraisals(identity_for(employee))) == [mine]

    def test_manager_sees_reports_and_reviews(
        self, manager_principal, employee_principal, appraisal_factory, identity_for
    ):
        of_report = appraisal_factory(employee=employee_principal)
        reviewing = appraisal_factory(reviewer=manager_principal)
        appraisal_factory()

        visible = set(AppraisalService().visible_appraisals(identity_for(manager_principal)))
        assert visible == {of_report, reviewing}

    def test_for_user_by_direct_manager(self, manager_principal, employee_principal, appraisal_factory, identity_for):
        appraisal_factory(employee=employee_principal)
        appraisals = AppraisalService().for_user(identity_for(manager_principal), employee_principal.pk)
        assert appraisals.count() == 1

    def test_for_user_by_colleague_denied(self, user_factory, employee_principal, identity_for):
        with pytest.raises(InsufficientRole):
            AppraisalService().for_user(identity_for(user_factory()), employee_principal.pk)

    def test_derived_fields(self, appraisal_factory):
        overdue = appraisal_factory(due_date=timezone.localdate() - timedelta(days=3),
                                    appraisal_date=timezone.localdate() - timedelta(days=10))
        assert overdue.is_overdue
        assert overdue.days_remaining == 0

        upcoming = appraisal_factory(due_date=timezone.localdate() + timedelta(days=5))
        assert not upcoming.is_overdue
        assert upcoming.days_remaining == 5

    def test_stats(self, hr_principal, appraisal_factory, identity_for):
        appraisal_factory(status='completed', rating=4, completed_at=timezone.now())
        appraisal_factory(status='completed', rating=2, completed_at=timezone.now())
        appraisal_factory(due_date=timezone.localdate() + timedelta(days=10))
        appraisal_factory(
            appraisal_date=timezone.localdate() - timedelta(days=20),
            due_date=timezone.localdate() - timedelta(days=1),
        )

        summary = appraisal_summary(identity_for(hr_principal))

        assert summary['total'] == 4
        assert summary['by_status']['completed'] == {
            'count': 2, 'avg_rating': 3.0, 'min_rating': 2, 'max_rating': 4,
        }
        assert len(summary['overdue']) == 1
        assert len(summary['upcoming']) == 1

    def test_employee_cannot_see_stats(self, employee_principal, identity_for):
        with pytest.raises(InsufficientRole):
            appraisal_summary(identity_for(employee_principal))


# =============================================================================
# API
# =============================================================================

@pytest.mark.api
class TestAppraisalViewSet:
    """Tests for AppraisalViewSet."""

    def test_create(self, client_for, manager_principal, employee_principal):
        response = client_for(manager_principal).post(reverse('api_v1:appraisals:appraisal-list'), {
            'employee': employee_principal.pk,
            'reviewer': manager_principal.pk,
            'due_date': (timezone.localdate() + timedelta(days=30)).isoformat(),
            'cycle': 'Q4 2026',
            'goals': [{'title': 'Mentor a new hire', 'weightage': 60}],
            'kpis': [{'name': 'Tickets closed', 'target': '40.00'}],
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.data['data']
        assert data['status'] == 'draft'
        assert len(data['goals']) == 1
        assert len(data['kpis']) == 1

    def test_duplicate_create_returns_conflict(self, client_for, hr_principal, appraisal_factory):
        existing = appraisal_factory()
        response = client_for(hr_principal).post(reverse('api_v1:appraisals:appraisal-list'), {
            'employee': existing.employee_id,
            'reviewer': hr_principal.pk,
            'due_date': (timezone.localdate() + timedelta(days=30)).isoformat(),
            'cycle': 'Q4 2026',
        }, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_self_assessment_then_review(self, client_for, appraisal_factory, appraisal_goal_factory):
        appraisal = appraisal_factory()
        appraisal_goal_factory(appraisal=appraisal)

        response = client_for(appraisal.employee).post(
            reverse('api_v1:appraisals:appraisal-self-assessment', args=[appraisal.pk]),
            {'self_assessment': 'I shipped the migration.'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['status'] == 'in_progress'

        response = client_for(appraisal.reviewer).post(
            reverse('api_v1:appraisals:appraisal-review', args=[appraisal.pk]),
            {'review': 'Great work', 'rating': 5},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['status'] == 'completed'
        assert response.data['data']['overall_rating'] == 5

    def test_review_missing_goals_is_unprocessable(self, client_for, appraisal_factory):
        appraisal = appraisal_factory(status='in_progress', self_assessment='Done')
        response = client_for(appraisal.reviewer).post(
            reverse('api_v1:appraisals:appraisal-review', args=[appraisal.pk]),
            {'review': 'Great work', 'rating': 5},
            format='json',
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.data['error']['code'] == 'PRECONDITION_FAILED'
        assert response.data['error']['details']['missing'] == ['goals']

    def test_me(self, client_for, user_factory, appraisal_factory):
        employee = user_factory()
        appraisal_factory(employee=employee)
        appraisal_factory()
        response = client_for(employee).get(reverse('api_v1:appraisals:appraisal-me'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1

    def test_user_route(self, client_for, hr_principal, appraisal_factory):
        appraisal = appraisal_factory()
        response = client_for(hr_principal).get(
            reverse('api_v1:appraisals:appraisal-user', kwargs={'user_id': appraisal.employee_id})
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1

    def test_stats_forbidden_for_employee(self, client_for, employee_principal):
        response = client_for(employee_principal).get(reverse('api_v1:appraisals:appraisal-stats'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cancel(self, client_for, hr_principal, appraisal_factory):
        appraisal = appraisal_factory()
        response = client_for(hr_principal).post(
            reverse('api_v1:appraisals:appraisal-cancel', args=[appraisal.pk]), {'reason': 'Reorg'}, format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['status'] == 'cancelled'
