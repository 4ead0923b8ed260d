import unittest
from decimal import Decimal
from unittest.mock import patch

import pytest

from cryptocasino.models import GameSession, Transaction
from cryptocasino.error_codes import ErrorCodes
from cryptocasino.utils import slots_helper
from cryptocasino.tests.test_api import BaseTestCase

SEVEN, BAG, STAR, CHERRY, LEMON, GRAPE = "7️⃣", "💰", "⭐", "🍒", "🍋", "🍇"


@pytest.mark.parametrize("reels, expected", [
    ([SEVEN, SEVEN, SEVEN], 100),
    ([BAG, BAG, BAG], 50),
    ([STAR, STAR, STAR], 25),
    ([CHERRY, CHERRY, CHERRY], 10),
    ([CHERRY, CHERRY, LEMON], 2),
    ([LEMON, CHERRY, LEMON], 2),
    ([CHERRY, LEMON, GRAPE], 0),
])
def test_raw_multiplier(reels, expected):
    assert slots_helper.get_raw_multiplier(reels) == expected


def test_raw_multiplier_requires_three_reels():
    with pytest.raises(ValueError):
        slots_helper.get_raw_multiplier([SEVEN, SEVEN])


def test_spin_reels_draws_known_symbols():
    reels = slots_helper.spin_reels()
    assert len(reels) == 3
    assert all(symbol in slots_helper.SYMBOLS for symbol in reels)


def test_resolve_spin_applies_edge_to_multiplier():
    outcome = slots_helper.resolve_spin(1000, Decimal('50'), reels=[SEVEN, SEVEN, SEVEN])
    assert outcome['raw_multiplier'] == 100
    assert outcome['multiplier'] == Decimal('50')
    assert outcome['win_amount'] == 50000
    assert outcome['net_win'] == 49000


def test_resolve_spin_pair_at_half_edge_breaks_even():
    outcome = slots_helper.resolve_spin(1000, Decimal('50'), reels=[CHERRY, CHERRY, LEMON])
    assert outcome['multiplier'] == Decimal('1')
    assert outcome['net_win'] == 0


def test_resolve_spin_loss_is_minus_bet():
    outcome = slots_helper.resolve_spin(1000, Decimal('50'), reels=[CHERRY, LEMON, GRAPE])
    assert outcome['multiplier'] == Decimal('0')
    assert outcome['win_amount'] == 0
    assert outcome['net_win'] == -1000


class SlotsApiTestCase(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.user = self._create_user(username='spinner', balance='100.00')
        self.game = self._create_game(name='Crypto Slots', game_type='slots', house_edge=50)
        self.headers = self._auth_headers(self.user)

    def _play(self, bet, reels, game_id=None):
        with patch.object(slots_helper, 'spin_reels', return_value=reels):
            return self.client.post('/api/games/slots/play', headers=self.headers,
                                    json={'gameId': game_id or self.game.id, 'bet': bet})

    def test_pair_at_half_edge_leaves_balance_unchanged(self):
        response = self._play(10, [CHERRY, CHERRY, LEMON])
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['reels'], [CHERRY, CHERRY, LEMON])
        self.assertEqual(data['bet'], 10.0)
        self.assertEqual(data['win'], 0.0)
        self.assertEqual(data['multiplier'], 1.0)
        self.assertEqual(data['balance'], '100.00')
        self.assertEqual(self._balance_cents(self.user.id), 10000)

    def test_triple_seven_pays_edge_scaled_multiplier(self):
        response = self._play(1, [SEVEN, SEVEN, SEVEN])
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['multiplier'], 50.0)
        self.assertEqual(data['win'], 49.0)
        self.assertEqual(data['balance'], '149.00')

    def test_losing_spin_records_session_and_loss(self):
        response = self._play(10, [CHERRY, LEMON, GRAPE])
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['win'], -10.0)
        self.assertEqual(data['balance'], '90.00')

        session = GameSession.query.one()
        self.assertEqual(session.bet, 1000)
        self.assertEqual(session.win, -1000)
        self.assertEqual(session.result['reels'], [CHERRY, LEMON, GRAPE])
        transaction = Transaction.query.one()
        self.assertEqual(transaction.transaction_type, 'loss')
        self.assertEqual(transaction.status, 'completed')
        self.assertEqual(transaction.amount, -1000)
        self.assertEqual(transaction.game_session_id, session.id)

    def test_bet_above_balance_is_rejected_without_side_effects(self):
        response = self._play(100.01, [SEVEN, SEVEN, SEVEN])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.INSUFFICIENT_FUNDS)
        self.assertEqual(self._balance_cents(self.user.id), 10000)
        self.assertEqual(GameSession.query.count(), 0)
        self.assertEqual(Transaction.query.count(), 0)

    def test_bet_outside_limits_is_400(self):
        response = self._play(0.5, [SEVEN, SEVEN, SEVEN])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.VALIDATION_ERROR)

    def test_oversized_bet_is_400(self):
        response = self._play(1e30, [SEVEN, SEVEN, SEVEN])
        self.assertEqual(response.status_code, 400)
        self.assertIn('bet', response.get_json()['errors'])
        self.assertEqual(self._balance_cents(self.user.id), 10000)
        self.assertEqual(GameSession.query.count(), 0)

    def test_inactive_game_is_404(self):
        inactive = self._create_game(name='Retired Slots', game_type='slots', is_active=False)
        response = self._play(1, [SEVEN, SEVEN, SEVEN], game_id=inactive.id)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.GAME_INACTIVE)

    def test_unknown_game_is_404(self):
        response = self._play(1, [SEVEN, SEVEN, SEVEN], game_id=9999)
        self.assertEqual(response.status_code, 404)

    def test_wrong_game_type_is_rejected(self):
        roulette = self._create_game(name='Crypto Roulette', game_type='roulette')
        response = self._play(1, [SEVEN, SEVEN, SEVEN], game_id=roulette.id)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.GAME_TYPE_MISMATCH)

    def test_missing_fields_is_400(self):
        response = self.client.post('/api/games/slots/play', headers=self.headers, json={'bet': 1})
        self.assertEqual(response.status_code, 400)
        self.assertIn('gameId', response.get_json()['errors'])

    def test_requires_authentication(self):
        response = self.client.post('/api/games/slots/play', json={'gameId': self.game.id, 'bet': 1})
        self.assertEqual(response.status_code, 401)


if __name__ == '__main__':
    unittest.main()
