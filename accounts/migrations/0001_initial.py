# Generated manually for the principal, role and permission models

import accounts.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Permission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('codename', models.CharField(
                    choices=[
                        ('manage_all', 'Manage everything'),
                        ('manage_employees', 'Manage employees'),
                        ('view_employees', 'View employees'),
                        ('manage_projects', 'Manage projects'),
                        ('view_projects', 'View projects'),
                        ('verify_documents', 'Verify documents'),
                        ('upload_documents', 'Upload documents'),
                        ('view_documents', 'View documents'),
                        ('issue_warnings', 'Issue warnings'),
                        ('terminate_employees', 'Terminate employees'),
                        ('appraise_employees', 'Appraise employees'),
                        ('view_appraisals', 'View appraisals'),
                        ('view_reports', 'View reports'),
                        ('export_reports', 'Export reports'),
                    ],
                    max_length=50,
                    unique=True,
                )),
                ('description', models.CharField(blank=True, max_length=255)),
            ],
            options={
                'verbose_name': 'Permission',
                'verbose_name_plural': 'Permissions',
                'ordering': ['codename'],
            },
        ),
        migrations.CreateModel(
            name='Role',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(
                    choices=[
                        ('admin', 'Administrator'),
                        ('manager', 'Manager'),
                        ('hr', 'Human Resources'),
                        ('employee', 'Employee'),
                    ],
                    db_index=True,
                    max_length=20,
                )),
                ('description', models.CharField(blank=True, max_length=255)),
                ('is_default', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('permissions', models.ManyToManyField(blank=True, related_name='roles', to='accounts.permission')),
            ],
            options={
                'verbose_name': 'Role',
                'verbose_name_plural': 'Roles',
                'ordering': ['name'],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('is_default', True)),
                        fields=('name',),
                        name='accounts_role_one_default_per_name',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(
                    default=False,
                    help_text='Designates that this user has all permissions without explicitly assigning them.',
                    verbose_name='superuser status',
                )),
                ('username', models.CharField(
                    error_messages={'unique': 'A user with that username already exists.'},
                    help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.',
                    max_length=150,
                    unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name='username',
                )),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(
                    default=False,
                    help_text='Designates whether the user can log into this admin site.',
                    verbose_name='staff status',
                )),
                ('is_active', models.BooleanField(
                    default=True,
                    help_text='Designates whether this user should be treated as active. '
                              'Unselect this instead of deleting accounts.',
                    verbose_name='active',
                )),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(db_index=True, help_text='Email address (used for login)', max_length=254, unique=True)),
                ('status', models.CharField(
                    choices=[
                        ('active', 'Active'),
                        ('onboarding', 'Onboarding'),
                        ('suspended', 'Suspended'),
                        ('terminated', 'Terminated'),
                    ],
                    db_index=True,
                    default='active',
                    max_length=20,
                )),
                ('department', models.CharField(
                    choices=[
                        ('Engineering', 'Engineering'),
                        ('HR', 'HR'),
                        ('Management', 'Management'),
                        ('Operations', 'Operations'),
                        ('Finance', 'Finance'),
                        ('Other', 'Other'),
                    ],
                    db_index=True,
                    default='Other',
                    max_length=20,
                )),
                ('position', models.CharField(blank=True, max_length=100)),
                ('last_seen', models.DateTimeField(blank=True, null=True)),
                ('is_deleted', models.BooleanField(db_index=True, default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('groups', models.ManyToManyField(
                    blank=True,
                    help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.',
                    related_name='user_set',
                    related_query_name='user',
                    to='auth.group',
                    verbose_name='groups',
                )),
                ('user_permissions', models.ManyToManyField(
                    blank=True,
                    help_text='Specific permissions for this user.',
                    related_name='user_set',
                    related_query_name='user',
                    to='auth.permission',
                    verbose_name='user permissions',
                )),
                ('manager', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='direct_reports',
                    to='accounts.user',
                )),
                ('role', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='users',
                    to='accounts.role',
                )),
            ],
            options={
                'verbose_name': 'User',
                'verbose_name_plural': 'Users',
                'indexes': [models.Index(fields=['department', 'status'], name='accounts_user_dept_status_idx')],
            },
            managers=[
                ('objects', accounts.models.PrincipalManager()),
            ],
        ),
    ]
