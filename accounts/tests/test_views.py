from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model

User = get_user_model()


class AuthViewTests(APITestCase):
    def setUp(self):
        self.signup_url = reverse('signup')
        self.login_url = reverse('token_obtain_pair')
        self.logout_url = reverse('logout')
        self.profile_url = reverse('profile')
        self.user_data = {
            "username": "sarah",
            "password": "Testpass123!",
            "display_name": "Sarah Miller",
            "email": "sarah@example.com",
        }

    def test_signup(self):
        response = self.client.post(self.signup_url, self.user_data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['display_name'], "Sarah Miller")

    def test_signup_duplicate_username(self):
        self.client.post(self.signup_url, self.user_data, format='json')
        response = self.client.post(self.signup_url, self.user_data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('username', response.data)

    def test_signup_weak_password(self):
        data = {**self.user_data, "password": "123"}
        response = self.client.post(self.signup_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(username="sarah").exists())

    def test_login(self):
        self.client.post(self.signup_url, self.user_data, format='json')
        login_data = {
            "username": "sarah",
            "password": "Testpass123!"
        }
        response = self.client.post(self.login_url, login_data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        self.client.post(self.signup_url, self.user_data, format='json')
        response = self.client.post(self.login_url, {"username": "sarah", "password": "nope"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_logout(self):
        signup_resp = self.client.post(self.signup_url, self.user_data, format='json')
        refresh_token = signup_resp.data['refresh']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {signup_resp.data["access"]}')

        logout_resp = self.client.post(self.logout_url, {'refresh': refresh_token}, format='json')
        self.assertEqual(logout_resp.status_code, status.HTTP_205_RESET_CONTENT)

        # blacklisted token cannot be reused
        again = self.client.post(self.logout_url, {'refresh': refresh_token}, format='json')
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

    def test_logout_without_token(self):
        signup_resp = self.client.post(self.signup_url, self.user_data, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {signup_resp.data["access"]}')
        response = self.client.post(self.logout_url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_profile_update(self):
        signup_resp = self.client.post(self.signup_url, self.user_data, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {signup_resp.data["access"]}')

        response = self.client.patch(self.profile_url, {"display_name": "Sarah M."}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(User.objects.get(username="sarah").matcher_name, "Sarah M.")

    def test_profile_requires_auth(self):
        response = self.client.get(self.profile_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
