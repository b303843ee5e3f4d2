from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from testprep.models import Learner


class Command(BaseCommand):
    help = 'Create a learner account for development/testing'

    def add_arguments(self, parser):
        parser.add_argument('--username', type=str, default='dev', help='Login name (default: dev)')
        parser.add_argument('--password', type=str, default='devpass123', help='Password (default: devpass123)')
        parser.add_argument('--full-name', type=str, default='Dev Learner', help='Display name')

    def handle(self, *args, **options):
        username = options['username']

        user, created = User.objects.get_or_create(username=username)
        user.set_password(options['password'])
        user.save()

        learner, _ = Learner.objects.get_or_create(
            user=user,
            defaults={'full_name': options['full_name']},
        )

        if created:
            self.stdout.write(self.style.SUCCESS(f'Created learner: {username}'))
        else:
            self.stdout.write(self.style.WARNING(f'Reset password for existing learner: {username}'))

        self.stdout.write(f'  Learner: {learner.full_name} ({learner.id})')
        self.stdout.write(f'  Level: {learner.level}, XP: {learner.xp}')
