# Generated migration: MediaAsset

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MediaAsset',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('s3_key', models.CharField(help_text='raw bucket object key', max_length=1024, unique=True)),
                ('upload_type', models.CharField(choices=[('avatar', 'avatar'), ('video', 'video'), ('thumbnail', 'thumbnail'), ('course_resource', 'course_resource'), ('chat_attachment', 'chat_attachment'), ('report', 'report')], db_index=True, max_length=32)),
                ('user_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('parent_entity_id', models.CharField(blank=True, default='', max_length=64)),
                ('status', models.CharField(choices=[('uploading', '업로드 중'), ('processing', '처리중'), ('completed', '완료'), ('failed', '실패')], db_index=True, default='uploading', max_length=20)),
                ('processed_urls', models.JSONField(blank=True, default=dict, help_text='rendition name -> public URL (e.g. small/medium/large, master, final)')),
                ('error_message', models.TextField(blank=True, null=True)),
            ],
            options={
                'db_table': 'media_asset',
                'indexes': [models.Index(fields=['status', 'updated_at'], name='media_asset_status_upd_idx')],
            },
        ),
    ]
