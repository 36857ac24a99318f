# Generated manually for projects, team members and tasks

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


PRIORITY_CHOICES = [
    ('low', 'Low'),
    ('medium', 'Medium'),
    ('high', 'High'),
    ('critical', 'Critical'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(max_length=2000)),
                ('status', models.CharField(
                    choices=[
                        ('planning', 'Planning'),
                        ('in_progress', 'In Progress'),
                        ('on_hold', 'On Hold'),
                        ('completed', 'Completed'),
                        ('cancelled', 'Cancelled'),
                    ],
                    db_index=True,
                    default='planning',
                    max_length=20,
                )),
                ('priority', models.CharField(choices=PRIORITY_CHOICES, db_index=True, default='medium', max_length=20)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField(blank=True, null=True)),
                ('budget', models.DecimalField(
                    blank=True, decimal_places=2, max_digits=14, null=True,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ('client', models.CharField(blank=True, max_length=200)),
                ('settings', models.JSONField(
                    blank=True, default=dict,
                    help_text='Flags such as is_public, allow_team_chat, notify_on_update',
                )),
                ('created_by', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='created_projects', to=settings.AUTH_USER_MODEL,
                )),
                ('deleted_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='projects_project_deleted', to=settings.AUTH_USER_MODEL,
                    verbose_name='Deleted by',
                )),
                ('manager', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='managed_projects', to=settings.AUTH_USER_MODEL,
                )),
                ('updated_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='updated_projects', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Project',
                'verbose_name_plural': 'Projects',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['manager', 'status'], name='project_manager_status_idx')],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('end_date__isnull', True), ('end_date__gte', models.F('start_date')), _connector='OR'),
                        name='projects_project_end_after_start',
                    ),
                    models.CheckConstraint(
                        condition=models.Q(('budget__isnull', True), ('budget__gte', 0), _connector='OR'),
                        name='projects_project_budget_non_negative',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProjectMember',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('role', models.CharField(
                    choices=[
                        ('manager', 'Manager'),
                        ('developer', 'Developer'),
                        ('designer', 'Designer'),
                        ('tester', 'Tester'),
                        ('analyst', 'Analyst'),
                        ('other', 'Other'),
                    ],
                    default='developer',
                    max_length=20,
                )),
                ('allocation', models.PositiveSmallIntegerField(
                    default=100,
                    help_text='Percentage of working time, 1-100',
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(100),
                    ],
                )),
                ('start_date', models.DateField(default=django.utils.timezone.localdate)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('project', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='members', to='projects.project',
                )),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='project_memberships', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Project Member',
                'verbose_name_plural': 'Project Members',
                'ordering': ['start_date'],
                'constraints': [
                    models.UniqueConstraint(fields=('project', 'user'), name='projects_member_unique_per_project'),
                    models.CheckConstraint(
                        condition=models.Q(('allocation__gte', 1), ('allocation__lte', 100)),
                        name='projects_member_allocation_range',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProjectTask',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(
                    choices=[
                        ('not_started', 'Not Started'),
                        ('in_progress', 'In Progress'),
                        ('review', 'Review'),
                        ('completed', 'Completed'),
                        ('blocked', 'Blocked'),
                    ],
                    db_index=True,
                    default='not_started',
                    max_length=20,
                )),
                ('priority', models.CharField(choices=PRIORITY_CHOICES, default='medium', max_length=20)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('assignee', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='project_tasks', to=settings.AUTH_USER_MODEL,
                )),
                ('completed_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='completed_project_tasks', to=settings.AUTH_USER_MODEL,
                )),
                ('project', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='tasks', to='projects.project',
                )),
            ],
            options={
                'verbose_name': 'Project Task',
                'verbose_name_plural': 'Project Tasks',
                'ordering': ['created_at'],
            },
        ),
    ]
