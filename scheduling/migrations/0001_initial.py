from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Camp',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('start_date', models.DateField(help_text='First day of the camp')),
                ('end_date', models.DateField(help_text='Last day of the camp')),
                ('capacity', models.PositiveIntegerField(help_text='Default capacity of every session')),
                ('is_deleted', models.BooleanField(default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='camps', to='scheduling.organization')),
            ],
            options={
                'ordering': ['start_date', 'name'],
                'indexes': [models.Index(fields=['organization', 'is_deleted'], name='camp_org_deleted_idx')],
            },
        ),
        migrations.CreateModel(
            name='OrganizationMember',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('camp_creator', 'Camp Creator'), ('manager', 'Manager'), ('coach', 'Coach'), ('volunteer', 'Volunteer')], default='manager', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='scheduling.organization')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='organization_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('organization', 'user'), name='unique_organization_member')],
            },
        ),
        migrations.CreateModel(
            name='RecurrencePattern',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, default='', max_length=200)),
                ('frequency', models.CharField(choices=[('daily', 'Daily'), ('weekly', 'Weekly'), ('biweekly', 'Every two weeks'), ('monthly', 'Monthly')], default='weekly', max_length=20)),
                ('interval', models.PositiveIntegerField(default=1, help_text='Number of frequency units between repetitions')),
                ('weekdays', models.JSONField(blank=True, default=list, help_text='Weekdays for weekly patterns (0=Monday, 6=Sunday)')),
                ('start_date', models.DateField(help_text='First date this pattern is active')),
                ('end_date', models.DateField(blank=True, help_text='Last date this pattern is active (exclusive with max_occurrences)', null=True)),
                ('max_occurrences', models.PositiveIntegerField(blank=True, help_text='Number of candidate dates (exclusive with end_date)', null=True)),
                ('start_time', models.TimeField(help_text='Default session start time')),
                ('end_time', models.TimeField(help_text='Default session end time')),
                ('capacity', models.PositiveIntegerField(blank=True, help_text='Capacity of generated sessions (null = camp capacity)', null=True)),
                ('is_active', models.BooleanField(default=True, help_text='Whether sessions are generated from this pattern')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('camp', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recurrence_patterns', to='scheduling.camp')),
            ],
            options={
                'ordering': ['camp', 'start_date', 'start_time'],
                'indexes': [models.Index(fields=['camp', 'is_active'], name='pattern_camp_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='ScheduleException',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('exception_date', models.DateField()),
                ('exception_type', models.CharField(choices=[('cancel', 'Cancel'), ('time_change', 'Time change'), ('add', 'Additional session')], max_length=20)),
                ('start_time', models.TimeField(blank=True, help_text='Replacement start time (time_change and add only)', null=True)),
                ('end_time', models.TimeField(blank=True, help_text='Replacement end time (time_change and add only)', null=True)),
                ('reason', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('camp', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedule_exceptions', to='scheduling.camp')),
            ],
            options={
                'ordering': ['exception_date'],
                'constraints': [models.UniqueConstraint(fields=('camp', 'exception_date'), name='unique_exception_per_camp_date')],
            },
        ),
        migrations.CreateModel(
            name='CampSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('capacity', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('cancelled', 'Cancelled')], default='scheduled', max_length=20)),
                ('is_exception', models.BooleanField(default=False, help_text='True if staff modified this session after it was generated')),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('camp', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sessions', to='scheduling.camp')),
                ('recurrence_pattern', models.ForeignKey(blank=True, help_text='Pattern that generated this session', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sessions', to='scheduling.recurrencepattern')),
                ('schedule_exception', models.OneToOneField(blank=True, help_text="The 'add' exception this session was created for", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='added_session', to='scheduling.scheduleexception')),
            ],
            options={
                'ordering': ['session_date', 'start_time'],
                'indexes': [
                    models.Index(fields=['camp', 'session_date'], name='session_camp_date_idx'),
                    models.Index(fields=['recurrence_pattern', 'session_date'], name='session_pattern_date_idx'),
                    models.Index(fields=['status'], name='session_status_idx'),
                ],
                'constraints': [models.UniqueConstraint(condition=models.Q(('recurrence_pattern__isnull', False)), fields=('recurrence_pattern', 'session_date'), name='unique_session_per_pattern_date')],
            },
        ),
    ]
