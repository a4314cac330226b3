from unittest import mock

from django.core import mail
from django.db import OperationalError
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from cards.models import ProfileCard
from match.models import PotentialMatch
from match.tests.helpers import make_card, make_matcher


class PotentialMatchAPITests(APITestCase):
    def setUp(self):
        self.sarah = make_matcher("sarah", "Sarah Miller")
        self.david = make_matcher("david", "David Chen")
        self.maria = make_matcher("maria", "Maria Garcia")
        self.emma = make_card(self.sarah, "Emma", interests=["jazz"])
        self.liam = make_card(self.david, "Liam", interests=["jazz"])
        self.match = PotentialMatch.objects.create(
            profile_card_a=self.emma, profile_card_b=self.liam,
            matcher_a=self.sarah, matcher_b=self.david,
            compatibility_score=82, compatibility_reason="Both love jazz.",
        )
        ProfileCard.objects.filter(pk__in=[self.emma.pk, self.liam.pk]).update(match_attempts=1)

    def as_user(self, user):
        self.client.force_authenticate(user)

    def url(self, name):
        return reverse(name, args=[self.match.id])

    def decide(self, user, decision='accepted'):
        self.as_user(user)
        return self.client.post(self.url('match-decision'), {'decision': decision}, format='json')

    def test_list_and_detail(self):
        self.as_user(self.david)
        response = self.client.get(reverse('match-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['my_roles'], ['B'])
        self.assertEqual(response.data[0]['stage'], PotentialMatch.STAGE_AWAITING_MATCHERS)
        self.assertEqual(response.data[0]['profile_card_a']['friend_name'], "Emma")

        detail = self.client.get(self.url('match-detail'))
        self.assertEqual(detail.data['compatibility_score'], 82)

    def test_list_filtered_by_stage(self):
        self.as_user(self.sarah)
        response = self.client.get(reverse('match-list'), {'stage': PotentialMatch.STAGE_MUTUAL})
        self.assertEqual(response.data, [])

        bad = self.client.get(reverse('match-list'), {'stage': 'whenever'})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)

    def test_outsider_cannot_see_or_decide(self):
        self.as_user(self.maria)
        self.assertEqual(self.client.get(reverse('match-list')).data, [])
        self.assertEqual(self.client.get(self.url('match-detail')).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.decide(self.maria).status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_match(self):
        self.as_user(self.sarah)
        response = self.client.get(reverse('match-detail', args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_invalid_decision_payload(self):
        response = self.decide(self.sarah, decision='pending')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_full_lifecycle(self):
        self.assertEqual(self.decide(self.sarah).status_code, status.HTTP_200_OK)
        response = self.decide(self.david)
        self.assertEqual(response.data['stage'], PotentialMatch.STAGE_READY_TO_INTRODUCE)
        self.assertFalse(response.data['friend_email_sent'])

        preview = self.client.get(self.url('match-introduction'))
        self.assertEqual(preview.status_code, status.HTTP_200_OK)
        self.assertIn("[Other Friend's Name]", preview.data['email_body'])

        dispatch = self.client.post(self.url('match-dispatch'))
        self.assertEqual(dispatch.status_code, status.HTTP_200_OK)
        self.assertEqual(dispatch.data['outcome'], 'dispatched')
        self.assertEqual(dispatch.data['delivered'], 2)
        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(dispatch.data['match']['status_friend_a'], PotentialMatch.PENDING)

        repeat = self.client.post(self.url('match-dispatch'))
        self.assertEqual(repeat.data['outcome'], 'already_dispatched')
        self.assertEqual(len(mail.outbox), 2)

        locked = self.decide(self.david, 'rejected')
        self.assertEqual(locked.status_code, status.HTTP_400_BAD_REQUEST)

        self.as_user(self.sarah)
        wrong_side = self.client.post(self.url('match-friend-decision'),
                                      {'friend_role': 'B', 'decision': 'accepted'}, format='json')
        self.assertEqual(wrong_side.status_code, status.HTTP_403_FORBIDDEN)
        self.client.post(self.url('match-friend-decision'), {'friend_role': 'A', 'decision': 'accepted'}, format='json')

        self.as_user(self.david)
        final = self.client.post(self.url('match-friend-decision'),
                                 {'friend_role': 'B', 'decision': 'accepted'}, format='json')
        self.assertEqual(final.status_code, status.HTTP_200_OK)
        self.assertEqual(final.data['stage'], PotentialMatch.STAGE_MUTUAL)

        mutual = self.client.get(reverse('match-mutual'))
        self.assertEqual([m['id'] for m in mutual.data], [self.match.id])
        self.assertEqual(
            set(ProfileCard.objects.values_list('match_status', flat=True)), {ProfileCard.STATUS_MATCHED}
        )

    def test_dispatch_before_acceptance(self):
        self.decide(self.sarah)
        response = self.client.post(self.url('match-dispatch'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_friend_decision_before_dispatch(self):
        self.as_user(self.sarah)
        response = self.client.post(self.url('match-friend-decision'),
                                    {'friend_role': 'A', 'decision': 'accepted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_store_failure_maps_to_503(self):
        self.as_user(self.sarah)
        with mock.patch('match.store.PotentialMatchStore.for_matcher', side_effect=OperationalError("locked")):
            response = self.client.get(reverse('match-list'))
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_oracle_failure_maps_to_502(self):
        self.as_user(self.sarah)
        with mock.patch('match.oracle.PreferenceOverlapOracle.suggest', side_effect=RuntimeError("down")):
            response = self.client.post(reverse('card-find-matches', args=[self.emma.id]))
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(PotentialMatch.objects.count(), 1)
