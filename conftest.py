"""
Workforce Test Configuration - pytest fixtures and factories

This module provides:
- factory_boy factories for principals, employees, warnings, appraisals,
  projects and documents
- Principals for each role and helpers turning them into identities
- An isolated blob store on a temporary directory
- API clients authenticated as a given principal

RUNNING TESTS:
# Run all tests
pytest tests/ -v

# Run by module
pytest tests/test_access.py -v

# Run by marker
pytest -m api -v
"""

import uuid
from datetime import timedelta

import pytest
from django.core.files.storage import FileSystemStorage
from django.utils import timezone

import factory
from factory.django import DjangoModelFactory


def _role(name):
    from accounts.models import Role
    return Role.default_for(name)


# ============================================================================
# PRINCIPAL FACTORIES
# ============================================================================

class UserFactory(DjangoModelFactory):
    """Factory for principals. Employee role unless ``role_name`` says otherwise."""

    class Meta:
        model = 'accounts.User'
        django_get_or_create = ('email',)

    class Params:
        role_name = 'employee'

    username = factory.LazyAttribute(lambda o: f"user_{uuid.uuid4().hex[:8]}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = 'testpass123'
    role = factory.LazyAttribute(lambda o: _role(o.role_name))
    status = 'active'
    department = 'Engineering'
    is_active = True

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to handle password properly."""
        password = kwargs.pop('password', None)
        user = super()._create(model_class, *args, **kwargs)
        if password:
            user.set_password(password)
            user.save()
        return user


class AdminFactory(UserFactory):
    class Params:
        role_name = 'admin'

    department = 'Management'
    is_staff = True


class HRFactory(UserFactory):
    class Params:
        role_name = 'hr'

    department = 'HR'


class ManagerFactory(UserFactory):
    class Params:
        role_name = 'manager'


# ============================================================================
# HR FACTORIES
# ============================================================================

class EmployeeProfileFactory(DjangoModelFactory):
    """Factory for employee profiles. Active unless told otherwise."""

    class Meta:
        model = 'hr_core.EmployeeProfile'

    user = factory.SubFactory(UserFactory)
    employee_id = factory.Sequence(lambda n: f"EMP{n:05d}")
    status = 'active'
    employment_type = 'full-time'
    designation = factory.Faker('job')
    joining_date = factory.LazyFunction(lambda: timezone.localdate() - timedelta(days=365))
    is_probation = False


class OnboardingProfileFactory(EmployeeProfileFactory):
    status = 'onboarding'
    is_probation = True
    joining_date = factory.LazyFunction(timezone.localdate)
    probation_end_date = factory.LazyFunction(lambda: timezone.localdate() + timedelta(days=90))


class EmployeeDocumentFactory(DjangoModelFactory):
    class Meta:
        model = 'hr_core.EmployeeDocument'

    profile = factory.SubFactory(OnboardingProfileFactory)
    document_type = 'id_proof'
    file_id = factory.LazyFunction(lambda: uuid.uuid4().hex)
    filename = 'passport.pdf'
    status = 'pending'


class WarningFactory(DjangoModelFactory):
    """Factory for active disciplinary warnings valid for 90 days."""

    class Meta:
        model = 'disciplinary.DisciplinaryWarning'

    employee = factory.SubFactory(EmployeeProfileFactory)
    type = 'conduct'
    title = factory.Faker('sentence', nb_words=4)
    description = factory.Faker('paragraph')
    severity = 'medium'
    status = 'active'
    date_issued = factory.LazyFunction(timezone.now)
    valid_until = factory.LazyAttribute(lambda o: o.date_issued + timedelta(days=90))


# ============================================================================
# APPRAISAL FACTORIES
# ============================================================================

class AppraisalFactory(DjangoModelFactory):
    """Factory for draft appraisals reviewed by a manager."""

    class Meta:
        model = 'appraisals.Appraisal'

    employee = factory.SubFactory(UserFactory)
    reviewer = factory.SubFactory(ManagerFactory)
    appraisal_date = factory.LazyFunction(timezone.localdate)
    due_date = factory.LazyFunction(lambda: timezone.localdate() + timedelta(days=30))
    cycle = 'Annual 2026'
    status = 'draft'


class AppraisalGoalFactory(DjangoModelFactory):
    class Meta:
        model = 'appraisals.AppraisalGoal'

    appraisal = factory.SubFactory(AppraisalFactory)
    title = factory.Faker('sentence', nb_words=3)
    weightage = 50
    status = 'in_progress'


class AppraisalKPIFactory(DjangoModelFactory):
    class Meta:
        model = 'appraisals.AppraisalKPI'

    appraisal = factory.SubFactory(AppraisalFactory)
    name = factory.Faker('word')
    target = 100


# ============================================================================
# PROJECT FACTORIES
# ============================================================================

class ProjectFactory(DjangoModelFactory):
    """Factory for projects. The manager is added to the team at 100%."""

    class Meta:
        model = 'projects.Project'
        skip_postgeneration_save = True

    name = factory.Faker('catch_phrase')
    description = factory.Faker('paragraph')
    status = 'in_progress'
    priority = 'medium'
    start_date = factory.LazyFunction(lambda: timezone.localdate() - timedelta(days=10))
    manager = factory.SubFactory(ManagerFactory)

    @factory.post_generation
    def manager_membership(obj, create, extracted, **kwargs):
        if not create or extracted is False:
            return
        from projects.models import ProjectMember
        ProjectMember.objects.create(project=obj, user=obj.manager, role='manager', allocation=100)


class ProjectMemberFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.ProjectMember'

    project = factory.SubFactory(ProjectFactory)
    user = factory.SubFactory(UserFactory)
    role = 'developer'
    allocation = 50
    is_active = True


class ProjectTaskFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.ProjectTask'

    project = factory.SubFactory(ProjectFactory)
    name = factory.Faker('sentence', nb_words=3)
    status = 'not_started'


# ============================================================================
# DOCUMENT FACTORIES
# ============================================================================

class DocumentFactory(DjangoModelFactory):
    """Factory for document metadata. No bytes are written to a blob store."""

    class Meta:
        model = 'documents.Document'

    file_id = factory.LazyFunction(lambda: uuid.uuid4().hex)
    filename = 'report.pdf'
    mimetype = 'application/pdf'
    size = 1024
    document_type = 'report'
    uploaded_by = factory.SubFactory(UserFactory)
    department = factory.LazyAttribute(lambda o: o.uploaded_by.department)
    is_public = False


class DocumentShareFactory(DjangoModelFactory):
    class Meta:
        model = 'documents.DocumentShare'

    document = factory.SubFactory(DocumentFactory)
    user = factory.SubFactory(UserFactory)
    permission = 'view'


class ProjectDocumentFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.ProjectDocument'

    project = factory.SubFactory(ProjectFactory)
    document = factory.SubFactory(DocumentFactory)
    added_by = factory.LazyAttribute(lambda o: o.project.manager)


# ============================================================================
# FACTORY FIXTURES
# ============================================================================

@pytest.fixture
def user_factory(db):
    """Provide UserFactory for tests."""
    return UserFactory


@pytest.fixture
def admin_factory(db):
    return AdminFactory


@pytest.fixture
def hr_factory(db):
    return HRFactory


@pytest.fixture
def manager_factory(db):
    return ManagerFactory


@pytest.fixture
def employee_profile_factory(db):
    """Provide EmployeeProfileFactory for tests."""
    return EmployeeProfileFactory


@pytest.fixture
def onboarding_profile_factory(db):
    return OnboardingProfileFactory


@pytest.fixture
def employee_document_factory(db):
    return EmployeeDocumentFactory


@pytest.fixture
def warning_factory(db):
    """Provide WarningFactory for tests."""
    return WarningFactory


@pytest.fixture
def appraisal_factory(db):
    """Provide AppraisalFactory for tests."""
    return AppraisalFactory


@pytest.fixture
def appraisal_goal_factory(db):
    return AppraisalGoalFactory


@pytest.fixture
def appraisal_kpi_factory(db):
    return AppraisalKPIFactory


@pytest.fixture
def project_factory(db):
    """Provide ProjectFactory for tests."""
    return ProjectFactory


@pytest.fixture
def project_member_factory(db):
    return ProjectMemberFactory


@pytest.fixture
def project_task_factory(db):
    return ProjectTaskFactory


@pytest.fixture
def document_factory(db):
    """Provide DocumentFactory for tests."""
    return DocumentFactory


@pytest.fixture
def document_share_factory(db):
    return DocumentShareFactory


@pytest.fixture
def project_document_factory(db):
    return ProjectDocumentFactory


# ============================================================================
# PRINCIPAL FIXTURES
# ============================================================================

@pytest.fixture
def admin_principal(admin_factory):
    return admin_factory()


@pytest.fixture
def hr_principal(hr_factory):
    return hr_factory()


@pytest.fixture
def manager_principal(manager_factory):
    return manager_factory()


@pytest.fixture
def employee_principal(user_factory, manager_principal):
    """Employee reporting to ``manager_principal``."""
    return user_factory(manager=manager_principal)


@pytest.fixture
def identity_for(db):
    """Build the access-engine identity of a principal."""
    from accounts.services import IdentityResolver

    def _identity_for(user):
        user.refresh_from_db()
        return IdentityResolver.identity_for(user)

    return _identity_for


# ============================================================================
# BLOB STORE
# ============================================================================

@pytest.fixture
def blob_store(tmp_path):
    """Open blob store on a per-test directory, closed afterwards."""
    from core.storage import BlobStore

    with BlobStore(storage=FileSystemStorage(location=str(tmp_path)), prefix='blobs') as store:
        yield store


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client(db):
    """Return an unauthenticated API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def client_for(db):
    """Return a function producing an API client authenticated as a principal."""
    from rest_framework.test import APIClient

    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client_for
