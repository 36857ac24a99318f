# Generated manually for employee profiles, status history and onboarding documents

import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


EMPLOYMENT_STATUS_CHOICES = [
    ('onboarding', 'Onboarding'),
    ('active', 'Active'),
    ('on_leave', 'On Leave'),
    ('inactive', 'Inactive'),
    ('terminated', 'Terminated'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='EmployeeProfile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('employee_id', models.CharField(help_text='Internal employee ID', max_length=50, unique=True)),
                ('status', models.CharField(choices=EMPLOYMENT_STATUS_CHOICES, db_index=True, default='onboarding', max_length=20)),
                ('employment_type', models.CharField(
                    choices=[
                        ('full-time', 'Full-time'),
                        ('part-time', 'Part-time'),
                        ('contract', 'Contract'),
                        ('internship', 'Internship'),
                        ('temporary', 'Temporary'),
                    ],
                    default='full-time',
                    max_length=20,
                )),
                ('designation', models.CharField(max_length=200)),
                ('joining_date', models.DateField()),
                ('is_probation', models.BooleanField(default=True)),
                ('probation_end_date', models.DateField(blank=True, null=True)),
                ('last_working_day', models.DateField(blank=True, null=True)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(
                    blank=True,
                    choices=[
                        ('male', 'Male'),
                        ('female', 'Female'),
                        ('other', 'Other'),
                        ('prefer_not_to_say', 'Prefer not to say'),
                    ],
                    max_length=20,
                )),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('address', models.JSONField(blank=True, default=dict)),
                ('emergency_contact', models.JSONField(blank=True, default=dict)),
                ('skills', models.JSONField(blank=True, default=list)),
                ('created_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='created_employee_profiles', to=settings.AUTH_USER_MODEL,
                )),
                ('deleted_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='hr_core_employeeprofile_deleted', to=settings.AUTH_USER_MODEL,
                    verbose_name='Deleted by',
                )),
                ('updated_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='updated_employee_profiles', to=settings.AUTH_USER_MODEL,
                )),
                ('user', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='employee_profile', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Employee Profile',
                'verbose_name_plural': 'Employee Profiles',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'is_deleted'], name='hr_profile_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='EmploymentStatusChange',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('from_status', models.CharField(choices=EMPLOYMENT_STATUS_CHOICES, max_length=20)),
                ('to_status', models.CharField(choices=EMPLOYMENT_STATUS_CHOICES, max_length=20)),
                ('effective_date', models.DateField(default=django.utils.timezone.localdate)),
                ('reason', models.TextField(blank=True)),
                ('changed_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='+', to=settings.AUTH_USER_MODEL,
                )),
                ('profile', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='status_history', to='hr_core.employeeprofile',
                )),
            ],
            options={
                'verbose_name': 'Employment Status Change',
                'verbose_name_plural': 'Employment Status Changes',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='EmployeeDocument',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('document_type', models.CharField(
                    choices=[
                        ('id_proof', 'ID Proof'),
                        ('address_proof', 'Address Proof'),
                        ('qualification', 'Qualification'),
                        ('experience', 'Experience'),
                        ('other', 'Other'),
                    ],
                    default='other',
                    max_length=20,
                )),
                ('file_id', models.CharField(max_length=64)),
                ('filename', models.CharField(max_length=255)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(
                    choices=[('pending', 'Pending'), ('verified', 'Verified'), ('rejected', 'Rejected')],
                    db_index=True,
                    default='pending',
                    max_length=20,
                )),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('profile', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='documents', to='hr_core.employeeprofile',
                )),
                ('uploaded_by', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='uploaded_employee_documents', to=settings.AUTH_USER_MODEL,
                )),
                ('verified_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='verified_employee_documents', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Employee Document',
                'verbose_name_plural': 'Employee Documents',
                'ordering': ['-created_at'],
            },
        ),
    ]
