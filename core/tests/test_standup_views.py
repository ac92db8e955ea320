"""Tests for the daily standup pages and JSON endpoint."""

import json
from datetime import date

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from core.models import DailyStandup, Profile
from core.services.standups import INVALID_ITEMS_MESSAGE, NO_ITEMS_MESSAGE
from core.services.view_state import Mode

PASSWORD = 'S3cure-pass-123'


class StandupViewTests(TestCase):

    def setUp(self) -> None:
        self.user = User.objects.create_user('jane@example.com', 'jane@example.com', PASSWORD)
        Profile.objects.create(user=self.user, name='Jane', verified=True)
        self.other = User.objects.create_user('john@example.com', 'john@example.com', PASSWORD)
        Profile.objects.create(user=self.other, name='John', verified=True)
        self.items = [{'title': 'Today', 'subtitles': [], 'contents': [{'text': 'Review PRs'}]}]
        self.mine = DailyStandup.objects.create(user=self.user, standup_date=date(2024, 3, 1), items=self.items)
        self.theirs = DailyStandup.objects.create(user=self.other, standup_date=date(2024, 3, 1), items=self.items)
        self.client.force_login(self.user)

    def test_mine_and_all_views(self) -> None:
        response = self.client.get(reverse('standups'))
        self.assertEqual([s.pk for s in response.context['standups']], [self.mine.pk])
        self.assertContains(response, 'Review PRs')

        response = self.client.get(reverse('standups'), {'view': 'all'})
        groups = response.context['standup_groups']
        self.assertEqual(len(groups), 1)
        self.assertEqual(sorted(s.user_name for s in groups[0]['standups']), ['Jane', 'John'])

    def test_edit_modal_prefills_outline(self) -> None:
        response = self.client.get(reverse('standups'), {'edit': self.mine.pk})

        self.assertIs(response.context['view_state'].mode, Mode.EDIT)
        self.assertEqual(response.context['form'].initial['outline'], '# Today\n- Review PRs')

    def test_outline_post_creates_standup(self) -> None:
        response = self.client.post(reverse('standup_save'), {
            'standup_date': '2024-03-02',
            'outline': '# Yesterday\n- Shipped release\n## Blockers\n- None',
        })

        self.assertRedirects(response, reverse('standups'), fetch_redirect_response=False)
        standup = DailyStandup.objects.get(user=self.user, standup_date=date(2024, 3, 2))
        self.assertEqual(standup.items[0]['title'], 'Yesterday')
        self.assertEqual(standup.items[0]['subtitles'][0]['subtitle'], 'Blockers')

    def test_saving_same_day_replaces_items(self) -> None:
        response = self.client.post(
            reverse('standup_save'),
            {'standup_date': '2024-03-01', 'items': json.dumps([{'title': 'Today', 'contents': [{'text': 'Pairing'}]}])},
            HTTP_ACCEPT='application/json',
        )

        payload = response.json()
        self.assertTrue(payload['success'])
        self.assertEqual(payload['data']['id'], self.mine.pk)
        self.assertEqual(DailyStandup.objects.filter(user=self.user).count(), 1)
        self.mine.refresh_from_db()
        self.assertEqual(self.mine.items[0]['contents'], [{'text': 'Pairing'}])

    def test_empty_outline_keeps_modal_open(self) -> None:
        response = self.client.post(reverse('standup_save'), {'standup_date': '2024-03-02', 'outline': '# Empty\n'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['view_state'].error, NO_ITEMS_MESSAGE)
        self.assertIs(response.context['view_state'].mode, Mode.CREATE)
        self.assertFalse(DailyStandup.objects.filter(standup_date=date(2024, 3, 2)).exists())

    def test_malformed_items_json(self) -> None:
        response = self.client.post(
            reverse('standup_save'),
            {'standup_date': '2024-03-02', 'items': '{broken'},
            HTTP_ACCEPT='application/json',
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': INVALID_ITEMS_MESSAGE})

    def test_delete_only_own_standup(self) -> None:
        response = self.client.post(reverse('standup_delete', args=[self.theirs.pk]))
        self.assertRedirects(response, reverse('standups'), fetch_redirect_response=False)
        self.assertTrue(DailyStandup.objects.filter(pk=self.theirs.pk).exists())

        response = self.client.get(reverse('standup_delete', args=[self.mine.pk]))
        self.assertTemplateUsed(response, 'confirm_delete.html')

        self.client.post(reverse('standup_delete', args=[self.mine.pk]))
        self.assertFalse(DailyStandup.objects.filter(pk=self.mine.pk).exists())

    def test_api_standups(self) -> None:
        mine = self.client.get(reverse('api_standups')).json()
        everyone = self.client.get(reverse('api_standups'), {'view': 'all'}).json()

        self.assertEqual([row['id'] for row in mine['data']], [self.mine.pk])
        self.assertEqual(len(everyone['data']), 2)
        self.assertIn('user_name', everyone['data'][0])
