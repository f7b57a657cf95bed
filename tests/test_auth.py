import pytest
from django.core.management import call_command
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from apps.users.models import CustomUser

pytestmark = pytest.mark.django_db


@pytest.fixture
def manager():
    return CustomUser.objects.create_user('desk@hotel.test', 'frontdesk-pass', role=CustomUser.MANAGER)


def obtain(client, email, password):
    return client.post('/api/auth/token/', {'email': email, 'password': password}, format='json')


class TestTokenFlow:
    def test_token_carries_role(self, manager):
        response = obtain(APIClient(), 'desk@hotel.test', 'frontdesk-pass')

        assert response.status_code == 200
        body = response.json()
        assert body['role'] == 'manager'
        assert body['email'] == 'desk@hotel.test'
        assert AccessToken(body['access'])['role'] == 'manager'

    def test_bad_password(self, manager):
        response = obtain(APIClient(), 'desk@hotel.test', 'wrong')
        assert response.status_code == 401

    def test_bearer_credential_opens_the_api(self, manager):
        client = APIClient()
        access = obtain(client, 'desk@hotel.test', 'frontdesk-pass').json()['access']
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')

        assert client.get('/api/rooms/').status_code == 200
        assert client.get('/api/customers/').status_code == 403
        verify = client.get('/api/auth/verify/').json()
        assert verify == {'valid': True, 'email': 'desk@hotel.test', 'role': 'manager'}

    def test_garbage_credential(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        assert client.get('/api/rooms/').status_code == 401

    def test_inactive_user_rejected(self, manager):
        client = APIClient()
        access = obtain(client, 'desk@hotel.test', 'frontdesk-pass').json()['access']
        manager.is_active = False
        manager.save()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
        assert client.get('/api/rooms/').status_code == 401

    def test_logout_blacklists_refresh(self, manager):
        client = APIClient()
        refresh = obtain(client, 'desk@hotel.test', 'frontdesk-pass').json()['refresh']
        assert client.post('/api/auth/logout/', {'refresh': refresh}, format='json').status_code == 200
        assert client.post('/api/auth/token/refresh/', {'refresh': refresh}, format='json').status_code == 401


class TestUserModel:
    def test_superuser_is_owner(self):
        user = CustomUser.objects.create_superuser('boss@hotel.test', 'owner-pass')
        assert user.role == CustomUser.OWNER
        assert user.is_owner

    def test_create_terminal_user_command(self):
        call_command('create_terminal_user', 'owner@hotel.test', 'owner-pass', '--role', 'owner')
        user = CustomUser.objects.get(email='owner@hotel.test')
        assert user.role == CustomUser.OWNER
        assert user.check_password('owner-pass')
