import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BankQuestion',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('exam', models.CharField(choices=[('SAT', 'SAT'), ('ACT', 'ACT'), ('AP', 'AP')], max_length=3)),
                ('topic', models.CharField(max_length=100)),
                ('difficulty', models.CharField(choices=[('easy', 'Easy'), ('medium', 'Medium'), ('hard', 'Hard')], default='medium', max_length=10)),
                ('text', models.TextField()),
                ('options', models.JSONField(help_text='Answer options, at least two')),
                ('correct_index', models.PositiveIntegerField(default=0)),
                ('explanation', models.TextField(blank=True, default='')),
                ('passage', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Learner',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('full_name', models.CharField(max_length=255)),
                ('xp', models.PositiveIntegerField(default=0)),
                ('level', models.PositiveIntegerField(default=1)),
                ('tests_taken', models.PositiveIntegerField(default=0)),
                ('average_score', models.PositiveIntegerField(default=0)),
                ('last_test_taken', models.DateTimeField(blank=True, null=True)),
                ('login_streak', models.PositiveIntegerField(default=0)),
                ('last_login', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='learner', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='LearnerBadge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('badge_id', models.CharField(choices=[('first_test', 'First Step'), ('daily_login', 'Daily Dedication'), ('streak_3', 'On a Roll'), ('streak_7', 'Week Warrior'), ('perfect_score', 'Perfectionist'), ('level_5', 'Level 5 Reached')], max_length=32)),
                ('unlocked_on', models.DateTimeField(auto_now_add=True)),
                ('learner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='badges', to='testprep.learner')),
            ],
            options={
                'ordering': ['unlocked_on'],
                'unique_together': {('learner', 'badge_id')},
            },
        ),
        migrations.CreateModel(
            name='TestSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('test_kind', models.CharField(max_length=64)),
                ('questions', models.JSONField(default=list)),
                ('answers', models.JSONField(blank=True, default=dict)),
                ('is_diagnostic', models.BooleanField(default=False)),
                ('is_adaptive', models.BooleanField(default=False)),
                ('topic', models.CharField(blank=True, default='', max_length=255)),
                ('completed', models.BooleanField(db_index=True, default=False)),
                ('claimed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sessions', to='testprep.learner')),
            ],
        ),
        migrations.CreateModel(
            name='TestResult',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('session_id', models.UUIDField(unique=True)),
                ('test_kind', models.CharField(max_length=64)),
                ('is_diagnostic', models.BooleanField(default=False)),
                ('taken_at', models.DateTimeField()),
                ('overall_score', models.PositiveSmallIntegerField()),
                ('summary', models.TextField()),
                ('answers', models.JSONField(default=list)),
                ('questions', models.JSONField(default=list)),
                ('question_analysis', models.JSONField(default=list)),
                ('topic_performance', models.JSONField(default=list)),
                ('xp_gained', models.PositiveIntegerField(default=0)),
                ('graded_by', models.CharField(choices=[('ai', 'AI'), ('local', 'Local')], default='local', max_length=8)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='results', to='testprep.learner')),
            ],
            options={
                'ordering': ['-taken_at'],
                'indexes': [models.Index(fields=['owner', '-taken_at'], name='idx_result_owner_taken')],
            },
        ),
    ]
