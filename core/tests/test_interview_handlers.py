"""Tests for the interview mutation handlers and screenshot storage."""

import os
import shutil
import tempfile
from datetime import date
from io import BytesIO
from unittest import mock

from django.contrib.auth.models import AnonymousUser, User
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase, override_settings
from PIL import Image

from core.models import ActivityLog, Interview, Profile
from core.services.errors import StoreError, UnauthorizedError, ValidationError
from core.services.interview_groups import InterviewFilters, build_grouped_view
from core.services.interviews import (
    create_interview,
    delete_interview,
    get_all_interviews,
    get_interview,
    get_interviews,
    update_interview,
    update_interview_status,
)

MEDIA_ROOT = tempfile.mkdtemp(prefix='interview-tracker-tests-')


def make_upload(width=2400, height=1200, name='shot.png') -> SimpleUploadedFile:
    buffer = BytesIO()
    Image.new('RGBA', (width, height), (20, 120, 200, 255)).save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


def stored_files() -> list:
    found = []
    for root, _, files in os.walk(MEDIA_ROOT):
        found.extend(os.path.join(root, name) for name in files)
    return found


@override_settings(MEDIA_ROOT=MEDIA_ROOT, INTERVIEW_IMAGE_MAX_WIDTH=1200, INTERVIEW_IMAGE_QUALITY=80)
class InterviewHandlerTests(TestCase):

    @classmethod
    def tearDownClass(cls) -> None:
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self) -> None:
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        os.makedirs(MEDIA_ROOT, exist_ok=True)
        self.user = User.objects.create_user('jane@example.com', 'jane@example.com', 'S3cure-pass-123')
        Profile.objects.create(user=self.user, name='Jane', verified=True)
        self.other = User.objects.create_user('john@example.com', 'john@example.com', 'S3cure-pass-123')
        Profile.objects.create(user=self.other, name='', verified=True)
        self.data = {
            'profile': 'alex',
            'company': 'Acme',
            'step': 'Phone Screen',
            'interview_date': '2024-01-10',
            'interview_type': 'Remote',
            'note': '  ',
        }

    def test_create_defaults_and_logs(self) -> None:
        interview = create_interview(self.user, self.data)

        self.assertEqual(interview.state, Interview.State.ONGOING)
        self.assertEqual(interview.interview_date, date(2024, 1, 10))
        self.assertIsNone(interview.note)
        self.assertIsNone(interview.image_path)
        self.assertTrue(ActivityLog.objects.filter(user=self.user, action='Created interview').exists())

    def test_required_fields_are_validated(self) -> None:
        with self.assertRaises(ValidationError):
            create_interview(self.user, dict(self.data, company='  '))
        with self.assertRaises(ValidationError):
            create_interview(self.user, dict(self.data, interview_date='10/01/2024'))
        self.assertFalse(Interview.objects.exists())

    def test_anonymous_callers_are_unauthorized(self) -> None:
        interview = create_interview(self.user, self.data)

        for call in (
            lambda: create_interview(AnonymousUser(), self.data),
            lambda: update_interview(None, interview.pk, {'step': 'x'}),
            lambda: update_interview_status(AnonymousUser(), interview.pk, 'Bogus'),
            lambda: delete_interview(None, interview.pk),
            lambda: get_interviews(None),
        ):
            with self.assertRaises(UnauthorizedError):
                call()

    def test_other_owner_cannot_update_or_delete(self) -> None:
        interview = create_interview(self.user, self.data)

        with self.assertRaisesMessage(StoreError, 'Interview not found'):
            update_interview(self.other, interview.pk, {'step': 'Hijacked'})
        with self.assertRaisesMessage(StoreError, 'Interview not found'):
            update_interview_status(self.other, interview.pk, 'Offer')
        with self.assertRaisesMessage(StoreError, 'Interview not found'):
            delete_interview(self.other, interview.pk)
        with self.assertRaises(StoreError):
            get_interview(self.other, interview.pk)

        interview.refresh_from_db()
        self.assertEqual(interview.step, 'Phone Screen')
        self.assertEqual(interview.state, 'Ongoing')

    def test_status_update_validates_choice(self) -> None:
        interview = create_interview(self.user, self.data)

        with self.assertRaises(ValidationError):
            update_interview_status(self.user, interview.pk, 'Hired')
        updated = update_interview_status(self.user, interview.pk, 'Offer')

        self.assertEqual(updated.state, 'Offer')
        self.assertEqual(updated.step, 'Phone Screen')

    def test_lists_are_scoped_and_refreshed(self) -> None:
        mine = create_interview(self.user, self.data)
        self.assertEqual([i.pk for i in get_interviews(self.user)], [mine.pk])

        theirs = create_interview(self.other, dict(self.data, profile='sam'))
        update_interview(self.user, mine.pk, {'step': 'Onsite'})

        self.assertEqual([i.step for i in get_interviews(self.user)], ['Onsite'])
        everyone = {i.pk: i.user_name for i in get_all_interviews(self.user)}
        self.assertEqual(everyone, {mine.pk: 'Jane', theirs.pk: 'Unknown'})

    def test_lists_see_changes_made_outside_the_handlers(self) -> None:
        mine = create_interview(self.user, self.data)
        theirs = create_interview(self.other, dict(self.data, profile='sam'))
        self.assertEqual(len(get_interviews(self.user)), 1)
        self.assertEqual(len(get_all_interviews(self.user)), 2)

        Interview.objects.filter(pk=mine.pk).delete()
        Profile.objects.filter(user=self.other).update(name='Janet')

        self.assertEqual(get_interviews(self.user), [])
        everyone = {i.pk: i.user_name for i in get_all_interviews(self.user)}
        self.assertEqual(everyone, {theirs.pk: 'Janet'})

    def test_image_is_resized_and_stored_under_owner(self) -> None:
        interview = create_interview(self.user, self.data, image=make_upload())

        self.assertTrue(interview.image_path.startswith(f'interview-images/{self.user.pk}/'))
        self.assertTrue(interview.image_path.endswith('.jpg'))
        with default_storage.open(interview.image_path) as stored, Image.open(stored) as image:
            self.assertEqual(image.format, 'JPEG')
            self.assertEqual(image.size, (1200, 600))

    def test_small_images_are_not_enlarged(self) -> None:
        interview = create_interview(self.user, self.data, image=make_upload(400, 300))

        with default_storage.open(interview.image_path) as stored, Image.open(stored) as image:
            self.assertEqual(image.size, (400, 300))

    def test_invalid_image_is_rejected(self) -> None:
        upload = SimpleUploadedFile('fake.png', b'not an image', content_type='image/png')

        with self.assertRaises(ValidationError):
            create_interview(self.user, self.data, image=upload)
        self.assertFalse(Interview.objects.exists())
        self.assertEqual(stored_files(), [])

    def test_oversized_image_is_rejected(self) -> None:
        with mock.patch.object(Image, 'MAX_IMAGE_PIXELS', 1000):
            with self.assertRaises(ValidationError):
                create_interview(self.user, self.data, image=make_upload(100, 100))

        self.assertFalse(Interview.objects.exists())
        self.assertEqual(stored_files(), [])

    def test_failed_insert_removes_uploaded_image(self) -> None:
        with mock.patch.object(Interview.objects, 'create', side_effect=DatabaseError('insert failed')):
            with self.assertRaisesMessage(StoreError, 'insert failed'):
                create_interview(self.user, self.data, image=make_upload())

        self.assertEqual(stored_files(), [])

    def test_new_image_replaces_old_one(self) -> None:
        interview = create_interview(self.user, self.data, image=make_upload())
        old_path = interview.image_path

        updated = update_interview(self.user, interview.pk, {'note': 'retake'}, image=make_upload(800, 600))

        self.assertNotEqual(updated.image_path, old_path)
        self.assertFalse(default_storage.exists(old_path))
        self.assertTrue(default_storage.exists(updated.image_path))
        self.assertEqual(updated.note, 'retake')

    def test_delete_removes_row_and_image(self) -> None:
        interview = create_interview(self.user, self.data, image=make_upload())
        image_path = interview.image_path
        self.assertEqual(len(get_interviews(self.user)), 1)

        delete_interview(self.user, interview.pk)

        self.assertFalse(default_storage.exists(image_path))
        self.assertEqual(get_interviews(self.user), [])
        self.assertEqual(get_all_interviews(self.user), [])

    def test_alex_acme_pipeline_is_grouped(self) -> None:
        create_interview(self.user, dict(self.data, state='Ongoing'))
        create_interview(self.user, dict(self.data, step='Onsite', interview_date='2024-01-20', state='Offer'))

        _, groups = build_grouped_view(get_interviews(self.user), InterviewFilters())

        self.assertEqual(len(groups), 1)
        payload = groups[0].as_dict()
        self.assertEqual(payload['key'], 'alex-Acme')
        self.assertEqual(payload['latestStatus'], 'Offer')
        self.assertEqual([i['step'] for i in payload['interviews']], ['Phone Screen', 'Onsite'])
