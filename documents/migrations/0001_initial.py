# Generated manually for documents and document shares

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
            name='Document',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('version', models.PositiveIntegerField(
                    default=1, help_text='Record version for optimistic locking.', verbose_name='Version',
                )),
                ('file_id', models.CharField(db_index=True, max_length=64)),
                ('filename', models.CharField(max_length=255)),
                ('mimetype', models.CharField(max_length=100)),
                ('size', models.PositiveBigIntegerField()),
                ('document_type', models.CharField(
                    choices=[
                        ('contract', 'Contract'),
                        ('resume', 'Resume'),
                        ('id_proof', 'ID Proof'),
                        ('address_proof', 'Address Proof'),
                        ('certificate', 'Certificate'),
                        ('offer_letter', 'Offer Letter'),
                        ('nda', 'NDA'),
                        ('policy', 'Policy'),
                        ('report', 'Report'),
                        ('presentation', 'Presentation'),
                        ('other', 'Other'),
                    ],
                    db_index=True,
                    default='other',
                    max_length=20,
                )),
                ('description', models.TextField(blank=True, max_length=1000)),
                ('is_public', models.BooleanField(default=False)),
                ('department', models.CharField(db_index=True, max_length=20)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('deleted_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='documents_document_deleted', to=settings.AUTH_USER_MODEL,
                    verbose_name='Deleted by',
                )),
                ('uploaded_by', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='uploaded_documents', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Document',
                'verbose_name_plural': 'Documents',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['uploaded_by', 'is_deleted'], name='document_uploader_idx'),
                    models.Index(fields=['document_type', 'is_deleted'], name='document_type_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DocumentShare',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('permission', models.CharField(
                    choices=[('view', 'View'), ('comment', 'Comment'), ('edit', 'Edit')],
                    default='view',
                    max_length=10,
                )),
                ('shared_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('document', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='shares', to='documents.document',
                )),
                ('shared_by', models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='granted_document_shares', to=settings.AUTH_USER_MODEL,
                )),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='document_shares', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Document Share',
                'verbose_name_plural': 'Document Shares',
                'ordering': ['shared_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('document', 'user'), name='documents_share_unique_per_user'),
                ],
            },
        ),
    ]
