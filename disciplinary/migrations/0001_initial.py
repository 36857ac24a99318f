# Generated manually for disciplinary warnings

import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('hr_core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DisciplinaryWarning',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('type', models.CharField(max_length=100)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('severity', models.CharField(
                    choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')],
                    db_index=True,
                    default='medium',
                    max_length=20,
                )),
                ('status', models.CharField(
                    choices=[
                        ('active', 'Active'),
                        ('resolved', 'Resolved'),
                        ('escalated', 'Escalated'),
                        ('withdrawn', 'Withdrawn'),
                    ],
                    db_index=True,
                    default='active',
                    max_length=20,
                )),
                ('date_issued', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('valid_until', models.DateTimeField()),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('resolution_notes', models.TextField(blank=True)),
                ('escalated', models.BooleanField(default=False)),
                ('escalation_date', models.DateTimeField(blank=True, null=True)),
                ('escalation_notes', models.TextField(blank=True)),
                ('created_by', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='issued_warnings', to=settings.AUTH_USER_MODEL,
                )),
                ('deleted_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='disciplinary_disciplinarywarning_deleted', to=settings.AUTH_USER_MODEL,
                    verbose_name='Deleted by',
                )),
                ('employee', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='warnings', to='hr_core.employeeprofile',
                )),
                ('updated_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='updated_warnings', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'db_table': 'disciplinary_warning',
                'verbose_name': 'Warning',
                'verbose_name_plural': 'Warnings',
                'ordering': ['-date_issued'],
                'indexes': [models.Index(fields=['employee', 'status'], name='disc_warning_emp_status_idx')],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('valid_until__gt', models.F('date_issued'))),
                        name='disciplinary_warning_valid_after_issue',
                    ),
                ],
            },
        ),
    ]
