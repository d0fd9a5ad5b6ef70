from unittest.mock import patch

from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.models import AdminAuditLog, User
from premium import services
from premium.exceptions import INVALID_CODE_MESSAGE
from premium.models import CLIENT_ID_MAX_LENGTH, AccessGrant, FailedCodeAttempt, PremiumCode

from .helpers import bearer_for, make_admin, post_json

REDEEM_URL = '/premium/codes/redeem/'
ACCESS_URL = '/premium/access/'


class RedeemViewTests(TestCase):
    def setUp(self):
        cache.clear()
        services.issue_code('geo-101', 'ABC123')

    def redeem(self, client_id, code='ABC123', resource_id='geo-101'):
        return post_json(self.client, REDEEM_URL, {'resource_id': resource_id, 'code': code, 'client_id': client_id})

    def test_walkthrough_over_http(self):
        response = self.redeem('client-x')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'valid': True, 'success': True})

        response = self.client.get(ACCESS_URL, {'client_id': 'client-x', 'resource_id': 'geo-101'})
        self.assertEqual(response.json(), {'has_access': True})

        response = self.redeem('client-y')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'valid': False, 'error': 'Invalid or already used code'})

        response = self.client.get(ACCESS_URL, {'client_id': 'client-y', 'resource_id': 'geo-101'})
        self.assertEqual(response.json(), {'has_access': False})

    def test_form_encoded_body_is_accepted(self):
        response = self.client.post(REDEEM_URL, {'resource_id': 'geo-101', 'code': 'ABC123', 'client_id': 'client-x'})
        self.assertEqual(response.json(), {'valid': True, 'success': True})

    def test_failed_attempt_is_recorded(self):
        self.redeem('client-x', code='WRONG')

        attempt = FailedCodeAttempt.objects.get()
        self.assertEqual((attempt.resource_id, attempt.code_value, attempt.client_id, attempt.reason), ('geo-101', 'WRONG', 'client-x', 'invalid'))
        self.assertEqual(attempt.ip_address, '127.0.0.1')

    def test_missing_client_id(self):
        response = post_json(self.client, REDEEM_URL, {'resource_id': 'geo-101', 'code': 'ABC123'})
        self.assertEqual(response.status_code, 400)
        self.assertIsNone(PremiumCode.objects.get().redeemed_by)

    def test_malformed_json(self):
        response = self.client.post(REDEEM_URL, data='{"code": ', content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['valid'])

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(REDEEM_URL).status_code, 405)

    @override_settings(CODE_RATE_LIMIT_ATTEMPTS=2)
    def test_repeated_failures_lock_out_client(self):
        self.redeem('client-x', code='WRONG-1')
        self.redeem('client-x', code='WRONG-2')

        response = self.redeem('client-x')

        self.assertEqual(response.status_code, 429)
        self.assertFalse(response.json()['valid'])
        self.assertIsNone(PremiumCode.objects.get().redeemed_by)
        self.assertEqual(FailedCodeAttempt.objects.filter(reason='locked').count(), 1)

    @override_settings(CODE_RATE_LIMIT_ATTEMPTS=2)
    def test_success_clears_failure_count(self):
        self.redeem('client-x', code='WRONG-1')
        self.assertTrue(self.redeem('client-x').json()['valid'])

        response = self.redeem('client-x', code='WRONG-2')

        self.assertEqual(response.status_code, 200)

    def test_long_client_id_rejected(self):
        response = self.redeem('c' * (CLIENT_ID_MAX_LENGTH + 1))

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['valid'])
        self.assertIsNone(PremiumCode.objects.get().redeemed_by)

    def test_longest_client_id_redeems(self):
        client_id = 'c' * CLIENT_ID_MAX_LENGTH

        response = self.redeem(client_id)

        self.assertEqual(response.json(), {'valid': True, 'success': True})
        self.assertEqual(PremiumCode.objects.get().redeemed_by, client_id)
        self.assertTrue(services.has_access(client_id, 'geo-101'))

    def test_failed_attempt_write_error_keeps_json_result(self):
        with patch.object(FailedCodeAttempt.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertLogs('premium.security', level='ERROR') as logs:
                response = self.redeem('client-x', code='WRONG')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'valid': False, 'error': INVALID_CODE_MESSAGE})
        self.assertIn('premium_failed_attempt_not_recorded', logs.output[0])

    @override_settings(CODE_RATE_LIMIT_ATTEMPTS=1)
    def test_failed_attempt_write_error_keeps_lockout_response(self):
        self.redeem('client-x', code='WRONG')

        with patch.object(FailedCodeAttempt.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertLogs('premium.security', level='ERROR'):
                response = self.redeem('client-x')

        self.assertEqual(response.status_code, 429)
        self.assertFalse(response.json()['valid'])

    def test_storage_failure_is_500(self):
        with patch.object(PremiumCode.objects, 'matching', side_effect=DatabaseError('connection reset')):
            response = self.redeem('client-x')
        self.assertEqual(response.status_code, 500)
        self.assertFalse(response.json()['valid'])


class AccessViewTests(TestCase):
    def test_missing_client_id_means_no_access(self):
        response = self.client.get(ACCESS_URL, {'resource_id': 'geo-101'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'has_access': False})

    def test_storage_failure_is_500(self):
        with patch.object(AccessGrant.objects, 'for_pair', side_effect=DatabaseError('connection reset')):
            response = self.client.get(ACCESS_URL, {'client_id': 'client-x', 'resource_id': 'geo-101'})
        self.assertEqual(response.status_code, 500)


class CodeAdminViewTests(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = make_admin()
        self.headers = bearer_for(self.admin)

    def test_issue_code_with_value(self):
        response = post_json(self.client, reverse('premium:issue_code', args=['geo-101']), {'code': 'ABC123'}, headers=self.headers)

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['code']['code'], 'ABC123')
        self.assertIsNone(body['code']['redeemed_by'])
        code = PremiumCode.objects.get()
        self.assertEqual(code.created_by_admin, self.admin)
        self.assertTrue(AdminAuditLog.objects.filter(admin_user=self.admin, event='premium_code_issued').exists())

    @override_settings(PREMIUM_CODE_GENERATED_LENGTH=10)
    def test_issue_code_generates_value_when_omitted(self):
        response = post_json(self.client, reverse('premium:issue_code', args=['geo-101']), {}, headers=self.headers)

        self.assertEqual(response.status_code, 201)
        value = response.json()['code']['code']
        self.assertEqual(len(value), 10)
        self.assertTrue(value.isalnum())

    def test_issue_blank_code_rejected(self):
        response = post_json(self.client, reverse('premium:issue_code', args=['geo-101']), {'code': ''}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(PremiumCode.objects.exists())

    def test_list_codes(self):
        services.issue_code('geo-101', 'OLD')
        services.issue_code('geo-101', 'NEW')
        services.redeem('geo-101', 'OLD', 'client-x')

        response = self.client.get(reverse('premium:list_codes', args=['geo-101']), headers=self.headers)

        self.assertEqual(response.status_code, 200)
        codes = response.json()['codes']
        self.assertEqual([c['code'] for c in codes], ['NEW', 'OLD'])
        self.assertEqual(codes[1]['redeemed_by'], 'client-x')
        self.assertIsNotNone(codes[1]['redeemed_at'])

    def test_delete_code(self):
        code = services.issue_code('geo-101', 'ABC123')
        services.redeem('geo-101', 'ABC123', 'client-x')

        response = self.client.post(reverse('premium:delete_code', args=[code.id]), headers=self.headers)

        self.assertEqual(response.json(), {'success': True, 'deleted': True})
        self.assertFalse(PremiumCode.objects.exists())
        self.assertTrue(AdminAuditLog.objects.filter(event='premium_code_deleted').exists())
        self.assertTrue(services.has_access('client-x', 'geo-101'))

    def test_delete_missing_code_is_not_an_error(self):
        response = self.client.post(reverse('premium:delete_code', args=[424242]), headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'deleted': False})
        self.assertFalse(AdminAuditLog.objects.filter(event='premium_code_deleted').exists())

    def test_admin_endpoints_reject_anonymous(self):
        code = services.issue_code('geo-101', 'ABC123')

        self.assertEqual(post_json(self.client, reverse('premium:issue_code', args=['geo-101']), {'code': 'X'}).status_code, 403)
        self.assertEqual(self.client.get(reverse('premium:list_codes', args=['geo-101'])).status_code, 403)
        self.assertEqual(self.client.post(reverse('premium:delete_code', args=[code.id])).status_code, 403)
        self.assertEqual(PremiumCode.objects.count(), 1)

    def test_admin_endpoints_reject_regular_users(self):
        user = User.objects.create_user('reader', 'lantern-orchard-4417')

        response = self.client.get(reverse('premium:list_codes', args=['geo-101']), headers=bearer_for(user))

        self.assertEqual(response.status_code, 403)
