from unittest import mock

from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from cards.models import ProfileCard
from match.models import PotentialMatch
from match.tests.helpers import make_card, make_matcher


@override_settings(MATCH_ORACLE_BACKEND="match.oracle.PreferenceOverlapOracle")
class ProfileCardAPITests(APITestCase):
    def setUp(self):
        self.sarah = make_matcher("sarah", "Sarah Miller")
        self.david = make_matcher("david", "David Chen")
        self.client.force_authenticate(self.sarah)
        self.list_url = reverse('card-list')

    def test_create_card(self):
        payload = {
            'friend_name': "Emma",
            'bio': "Weekend hiker",
            'friend_age': 29,
            'friend_gender': 'woman',
            'interests': ["hiking", "jazz"],
            'preferred_age_min': 27,
            'preferred_age_max': 35,
            'preferred_gender': 'men',
            'match_attempts': 7,
        }
        response = self.client.post(self.list_url, payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['matcher_name'], "Sarah Miller")
        self.assertEqual(response.data['matcher_id'], self.sarah.id)
        self.assertEqual(response.data['match_attempts'], 0)
        self.assertEqual(response.data['match_status'], ProfileCard.STATUS_AVAILABLE)

    def test_create_rejects_inverted_age_range(self):
        payload = {'friend_name': "Emma", 'bio': "x", 'preferred_age_min': 40, 'preferred_age_max': 30}
        response = self.client.post(self.list_url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_scopes(self):
        make_card(self.sarah, "Emma")
        make_card(self.david, "Liam")

        mine = self.client.get(self.list_url)
        self.assertEqual([c['friend_name'] for c in mine.data], ["Emma"])

        everyone = self.client.get(self.list_url, {'scope': 'all'})
        self.assertEqual(len(everyone.data), 2)

    def test_edit_own_card(self):
        card = make_card(self.sarah, "Emma")
        response = self.client.patch(reverse('card-detail', args=[card.id]), {'occupation': "Architect"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['occupation'], "Architect")

    def test_edit_other_matchers_card(self):
        card = make_card(self.david, "Liam")
        response = self.client.patch(reverse('card-detail', args=[card.id]), {'bio': "hacked"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_edit_matched_card(self):
        card = make_card(self.sarah, "Emma")
        ProfileCard.objects.filter(pk=card.pk).update(match_status=ProfileCard.STATUS_MATCHED)
        response = self.client.patch(reverse('card-detail', args=[card.id]), {'bio': "new"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_card(self):
        card = make_card(self.sarah, "Emma")
        response = self.client.delete(reverse('card-detail', args=[card.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProfileCard.objects.filter(pk=card.pk).exists())

    def test_find_matches(self):
        emma = make_card(self.sarah, "Emma", interests=["jazz"])
        make_card(self.david, "Liam", interests=["jazz"])
        url = reverse('card-find-matches', args=[emma.id])

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['outcome'], 'created')
        self.assertEqual(len(response.data['matches']), 1)
        self.assertEqual(response.data['matches'][0]['my_roles'], ['A'])

        again = self.client.post(url)
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertEqual(again.data['outcome'], 'no_new_matches')
        self.assertEqual(PotentialMatch.objects.count(), 1)

    def test_find_matches_with_nobody_else(self):
        emma = make_card(self.sarah, "Emma")
        response = self.client.post(reverse('card-find-matches', args=[emma.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['outcome'], 'no_candidates')

    def test_find_matches_for_someone_elses_card(self):
        liam = make_card(self.david, "Liam")
        response = self.client.post(reverse('card-find-matches', args=[liam.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_find_matches_unknown_card(self):
        response = self.client.post(reverse('card-find-matches', args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_auth(self):
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_advice_without_history(self):
        emma = make_card(self.sarah, "Emma")
        response = self.client.get(reverse('card-advice', args=[emma.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['card_id'], emma.id)
        self.assertEqual(response.data['feedback_count'], 0)
        self.assertIn("Run a match search to gather feedback", response.data['advice_tags'])

    def test_advice_uses_past_rejections(self):
        emma = make_card(self.sarah, "Emma")
        liam = make_card(self.david, "Liam")
        PotentialMatch.objects.create(
            profile_card_a=emma, profile_card_b=liam, matcher_a=self.sarah, matcher_b=self.david,
            compatibility_score=30, status_matcher_a=PotentialMatch.REJECTED,
        )
        response = self.client.get(reverse('card-advice', args=[emma.id]))
        self.assertEqual(response.data['feedback_count'], 1)
        self.assertIn("Tighten preferences to reflect past rejections", response.data['advice_tags'])
        self.assertIn("Favour candidates with shared interests", response.data['advice_tags'])

    def test_advice_for_someone_elses_card(self):
        liam = make_card(self.david, "Liam")
        response = self.client.get(reverse('card-advice', args=[liam.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_advice_service_failure_maps_to_502(self):
        emma = make_card(self.sarah, "Emma")
        with mock.patch('match.advice.FeedbackHeuristicAdvisor.advise', side_effect=RuntimeError("down")):
            response = self.client.get(reverse('card-advice', args=[emma.id]))
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
