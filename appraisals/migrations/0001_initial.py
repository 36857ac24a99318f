# Generated manually for appraisals, goals and KPIs

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Appraisal',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('appraisal_date', models.DateField(default=django.utils.timezone.localdate)),
                ('due_date', models.DateField()),
                ('cycle', models.CharField(help_text="e.g. 'Q1 2024', 'Annual 2024'", max_length=100)),
                ('status', models.CharField(
                    choices=[
                        ('draft', 'Draft'),
                        ('in_progress', 'In Progress'),
                        ('needs_review', 'Needs Review'),
                        ('completed', 'Completed'),
                        ('cancelled', 'Cancelled'),
                    ],
                    db_index=True,
                    default='draft',
                    max_length=20,
                )),
                ('self_assessment', models.TextField(blank=True)),
                ('self_assessment_date', models.DateTimeField(blank=True, null=True)),
                ('review', models.TextField(blank=True)),
                ('review_date', models.DateTimeField(blank=True, null=True)),
                ('rating', models.PositiveSmallIntegerField(
                    blank=True, null=True,
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(5),
                    ],
                )),
                ('overall_comments', models.TextField(blank=True)),
                ('competencies', models.JSONField(blank=True, default=list)),
                ('development_needs', models.JSONField(blank=True, default=list)),
                ('career_aspirations', models.TextField(blank=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='created_appraisals', to=settings.AUTH_USER_MODEL,
                )),
                ('deleted_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='appraisals_appraisal_deleted', to=settings.AUTH_USER_MODEL,
                    verbose_name='Deleted by',
                )),
                ('employee', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='appraisals', to=settings.AUTH_USER_MODEL,
                )),
                ('reviewer', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='appraisals_to_review', to=settings.AUTH_USER_MODEL,
                )),
                ('updated_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='updated_appraisals', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Appraisal',
                'verbose_name_plural': 'Appraisals',
                'ordering': ['-appraisal_date'],
                'indexes': [
                    models.Index(fields=['reviewer', 'status'], name='appraisal_reviewer_status_idx'),
                    models.Index(fields=['due_date'], name='appraisal_due_date_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('is_deleted', False), models.Q(('status', 'cancelled'), _negated=True)),
                        fields=('employee', 'appraisal_date'),
                        name='appraisals_one_open_per_employee_date',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppraisalGoal',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(
                    choices=[
                        ('not_started', 'Not Started'),
                        ('in_progress', 'In Progress'),
                        ('completed', 'Completed'),
                        ('exceeded', 'Exceeded'),
                    ],
                    default='not_started',
                    max_length=20,
                )),
                ('weightage', models.PositiveSmallIntegerField(
                    default=0, validators=[django.core.validators.MaxValueValidator(100)],
                )),
                ('rating', models.PositiveSmallIntegerField(
                    blank=True, null=True,
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(5),
                    ],
                )),
                ('comments', models.TextField(blank=True)),
                ('reviewer_comments', models.TextField(blank=True)),
                ('appraisal', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='goals', to='appraisals.appraisal',
                )),
            ],
            options={
                'verbose_name': 'Appraisal Goal',
                'verbose_name_plural': 'Appraisal Goals',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='AppraisalKPI',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('name', models.CharField(max_length=200)),
                ('target', models.DecimalField(decimal_places=2, max_digits=12)),
                ('actual', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('comments', models.TextField(blank=True)),
                ('appraisal', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='kpis', to='appraisals.appraisal',
                )),
            ],
            options={
                'verbose_name': 'Appraisal KPI',
                'verbose_name_plural': 'Appraisal KPIs',
                'ordering': ['created_at'],
            },
        ),
    ]
