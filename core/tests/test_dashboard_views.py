"""Tests for the interview dashboard pages and JSON endpoints."""

import time
from datetime import date
from io import BytesIO

from django.contrib.auth.models import User
from django.contrib.messages import get_messages
from django.test import TestCase
from django.urls import reverse
from openpyxl import load_workbook

from core.models import Interview, Profile
from core.services.view_state import Mode, ViewState, save_state, session_key
from core.views import DASHBOARD_VIEW, FORM_ERROR_MESSAGE

PASSWORD = 'S3cure-pass-123'


def messages_of(response) -> list:
    return [str(message) for message in get_messages(response.wsgi_request)]


class DashboardTestCase(TestCase):

    def setUp(self) -> None:
        self.user = User.objects.create_user('jane@example.com', 'jane@example.com', PASSWORD)
        Profile.objects.create(user=self.user, name='Jane', verified=True)
        self.other = User.objects.create_user('john@example.com', 'john@example.com', PASSWORD)
        Profile.objects.create(user=self.other, name='John', verified=True)
        self.phone = Interview.objects.create(
            user=self.user, profile='alex', company='Acme', step='Phone Screen',
            interview_date=date(2024, 1, 10), state='Ongoing', interview_type='Remote',
        )
        self.onsite = Interview.objects.create(
            user=self.user, profile='alex', company='Acme', step='Onsite',
            interview_date=date(2024, 1, 20), state='Offer', interview_type='Onsite',
            script='Q: Tell me about yourself.\nA: ...',
        )
        self.globex = Interview.objects.create(
            user=self.user, profile='sam', company='Globex', step='Recruiter call',
            interview_date=date(2024, 2, 1), state='Rejected',
        )
        self.foreign = Interview.objects.create(
            user=self.other, profile='alex', company='Acme', step='Final',
            interview_date=date(2024, 1, 25), state='Ongoing',
        )
        self.client.force_login(self.user)

    def form_data(self, **overrides) -> dict:
        data = {
            'profile': 'alex',
            'company': 'Initech',
            'step': 'Phone Screen',
            'interview_date': '2024-03-01',
            'interview_type': 'Remote',
            'note': '',
            'script': '',
        }
        data.update(overrides)
        return data

    def set_state(self, state: ViewState) -> None:
        session = self.client.session
        save_state(session, DASHBOARD_VIEW, state)
        session.save()


class DashboardPageTests(DashboardTestCase):

    def test_groups_only_own_interviews(self) -> None:
        response = self.client.get(reverse('dashboard'))

        self.assertEqual(response.status_code, 200)
        groups = response.context['groups']
        self.assertEqual([g.display_key for g in groups], ['sam-Globex', 'alex-Acme'])
        self.assertEqual(groups[1].latest_status, 'Offer')
        self.assertEqual(response.context['total_count'], 3)
        self.assertEqual(response.context['profiles'], ['alex', 'sam'])

    def test_status_filter_is_group_aware(self) -> None:
        response = self.client.get(reverse('dashboard'), {'status': 'Ongoing'})

        self.assertEqual(response.context['groups'], [])
        self.assertEqual(response.context['filtered_count'], 0)

    def test_expanded_group_lists_steps(self) -> None:
        response = self.client.get(reverse('dashboard'), {'expand': 'alex-Acme'})

        self.assertContains(response, 'Phone Screen')
        self.assertContains(response, 'Onsite')
        self.assertNotContains(response, 'Recruiter call')

    def test_query_opens_one_modal(self) -> None:
        response = self.client.get(reverse('dashboard'), {'edit': self.phone.pk})

        state = response.context['view_state']
        self.assertIs(state.mode, Mode.EDIT)
        self.assertEqual(response.context['form'].instance.pk, self.phone.pk)

        response = self.client.get(reverse('dashboard'), {'status_for': self.phone.pk})
        self.assertIs(response.context['view_state'].mode, Mode.STATUS)
        self.assertIsNone(response.context['form'])

        response = self.client.get(reverse('dashboard'))
        self.assertIs(response.context['view_state'].mode, Mode.IDLE)

    def test_cannot_open_edit_for_foreign_interview(self) -> None:
        response = self.client.get(reverse('dashboard'), {'edit': self.foreign.pk})

        self.assertIs(response.context['view_state'].mode, Mode.IDLE)


class InterviewMutationViewTests(DashboardTestCase):

    def test_create_redirects_back_with_filters(self) -> None:
        data = self.form_data(return_query='company=Init')

        response = self.client.post(reverse('interview_create'), data)

        self.assertRedirects(response, reverse('dashboard') + '?company=Init', fetch_redirect_response=False)
        created = Interview.objects.get(company='Initech')
        self.assertEqual(created.user, self.user)
        self.assertEqual(created.state, 'Ongoing')
        self.assertEqual(self.client.session[session_key(DASHBOARD_VIEW)]['mode'], 'idle')

    def test_invalid_create_keeps_modal_open_with_error(self) -> None:
        response = self.client.post(reverse('interview_create'), self.form_data(company=''))

        self.assertEqual(response.status_code, 200)
        state = response.context['view_state']
        self.assertIs(state.mode, Mode.CREATE)
        self.assertEqual(state.error, FORM_ERROR_MESSAGE)
        self.assertIn('company', response.context['form'].errors)
        self.assertFalse(Interview.objects.filter(step='Phone Screen', company='').exists())

    def test_duplicate_submission_is_rejected(self) -> None:
        self.set_state(ViewState(mode=Mode.SUBMITTING, origin=Mode.CREATE, started_at=time.time()))

        response = self.client.post(reverse('interview_create'), self.form_data())

        self.assertEqual(response.status_code, 302)
        self.assertFalse(Interview.objects.filter(company='Initech').exists())

        response = self.client.post(
            reverse('interview_create'), self.form_data(), HTTP_ACCEPT='application/json',
        )
        self.assertEqual(response.status_code, 409)
        self.assertIn('error', response.json())

    def test_edit_returns_row_and_groups_as_json(self) -> None:
        response = self.client.post(
            reverse('interview_edit', args=[self.phone.pk]),
            self.form_data(company='Acme', step='Phone Screen (rescheduled)', interview_date='2024-01-10'),
            HTTP_ACCEPT='application/json',
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload['success'])
        self.assertEqual(payload['data']['id'], self.phone.pk)
        self.assertEqual(payload['data']['step'], 'Phone Screen (rescheduled)')
        acme = next(g for g in payload['groups'] if g['key'] == 'alex-Acme')
        self.assertEqual([i['step'] for i in acme['interviews']], ['Phone Screen (rescheduled)', 'Onsite'])

    def test_invalid_edit_reports_field_errors_as_json(self) -> None:
        response = self.client.post(
            reverse('interview_edit', args=[self.phone.pk]),
            self.form_data(step=''),
            HTTP_ACCEPT='application/json',
        )

        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertEqual(payload['error'], FORM_ERROR_MESSAGE)
        self.assertIn('step', payload['errors'])

    def test_edit_of_foreign_interview_is_refused(self) -> None:
        response = self.client.post(reverse('interview_edit', args=[self.foreign.pk]), self.form_data())

        self.assertEqual(response.status_code, 302)
        self.foreign.refresh_from_db()
        self.assertEqual(self.foreign.company, 'Acme')

    def test_status_change(self) -> None:
        response = self.client.post(reverse('interview_status', args=[self.globex.pk]), {'state': 'Offer'})

        self.assertEqual(response.status_code, 302)
        self.globex.refresh_from_db()
        self.assertEqual(self.globex.state, 'Offer')

    def test_invalid_status_is_flashed(self) -> None:
        response = self.client.post(reverse('interview_status', args=[self.globex.pk]), {'state': 'Hired'})

        self.assertEqual(response.status_code, 302)
        self.assertIn('Error: Please choose a valid status.', messages_of(response))
        self.globex.refresh_from_db()
        self.assertEqual(self.globex.state, 'Rejected')

    def test_delete_requires_confirmation(self) -> None:
        url = reverse('interview_delete', args=[self.globex.pk])

        response = self.client.get(url)
        self.assertTemplateUsed(response, 'confirm_delete.html')
        self.assertTrue(Interview.objects.filter(pk=self.globex.pk).exists())

        response = self.client.post(url)
        self.assertRedirects(response, reverse('dashboard'), fetch_redirect_response=False)
        self.assertFalse(Interview.objects.filter(pk=self.globex.pk).exists())
        groups = self.client.get(reverse('dashboard')).context['groups']
        self.assertNotIn(self.globex.pk, [i.pk for g in groups for i in g.interviews])

    def test_delete_of_foreign_interview_is_refused(self) -> None:
        response = self.client.post(
            reverse('interview_delete', args=[self.foreign.pk]), HTTP_ACCEPT='application/json',
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Interview not found'})
        self.assertTrue(Interview.objects.filter(pk=self.foreign.pk).exists())


class InterviewListEndpointTests(DashboardTestCase):

    def test_api_interviews_shape(self) -> None:
        response = self.client.get(reverse('api_interviews'), {'profile': 'alex'})

        payload = response.json()
        self.assertTrue(payload['success'])
        self.assertEqual({row['id'] for row in payload['data']}, {self.phone.pk, self.onsite.pk})
        self.assertEqual(payload['groups'][0]['key'], 'alex-Acme')
        self.assertEqual(payload['groups'][0]['latestStatus'], 'Offer')

    def test_api_all_interviews_groups_by_user(self) -> None:
        response = self.client.get(reverse('api_interviews_all'), {'user': 'John'})

        payload = response.json()
        self.assertEqual(payload['user_names'], ['Jane', 'John'])
        self.assertEqual([g['key'] for g in payload['groups']], ['John-alex-Acme'])
        self.assertEqual(payload['groups'][0]['userName'], 'John')

    def test_all_interviews_page_resets_profiles_on_user_change(self) -> None:
        response = self.client.get(
            reverse('interviews_all'), {'user': 'John', 'prev_user': 'Jane', 'profile': 'sam'},
        )

        self.assertEqual(response.context['filters'].profiles, frozenset())
        self.assertEqual(response.context['profiles'], ['alex'])
        self.assertEqual([g.display_key for g in response.context['groups']], ['John-alex-Acme'])

    def test_export_contains_filtered_rows(self) -> None:
        response = self.client.get(reverse('interviews_export'), {'company': 'acme'})

        self.assertEqual(
            response['Content-Type'],
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        )
        worksheet = load_workbook(BytesIO(response.content)).active
        rows = list(worksheet.iter_rows(values_only=True))
        self.assertEqual(rows[0][:5], ('Profile', 'Company', 'Step', 'Date', 'Status'))
        self.assertEqual(sorted(row[2] for row in rows[1:]), ['Onsite', 'Phone Screen'])
