import unittest

from cryptocasino.models import db, User
from cryptocasino.exceptions import InsufficientFundsException, NotFoundException, InactiveGameException, \
    ValidationException
from cryptocasino.services import ledger
from cryptocasino.tests.test_api import BaseTestCase


class LedgerTestCase(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.user = self._create_user(username='ledger', balance='10.00')

    def test_apply_balance_delta_credit_and_debit(self):
        self.assertEqual(ledger.apply_balance_delta(self.user.id, 500), 1500)
        self.assertEqual(ledger.apply_balance_delta(self.user.id, -1500), 0)
        db.session.commit()
        self.assertEqual(self._balance_cents(self.user.id), 0)

    def test_debit_below_zero_is_refused(self):
        with self.assertRaises(InsufficientFundsException) as ctx:
            ledger.apply_balance_delta(self.user.id, -1001)
        self.assertEqual(ctx.exception.details['balance'], '10.00')
        self.assertEqual(ledger.get_balance(self.user.id), 1000)

    def test_cached_user_sees_new_balance(self):
        user = db.session.get(User, self.user.id)
        self.assertEqual(user.balance, 1000)
        ledger.apply_balance_delta(self.user.id, 250)
        self.assertEqual(user.balance, 1250)

    def test_unknown_user(self):
        with self.assertRaises(NotFoundException):
            ledger.apply_balance_delta(9999, 100)

    def test_get_playable_game_checks(self):
        active = self._create_game(name='Crypto Slots', game_type='slots')
        inactive = self._create_game(name='Old Slots', game_type='slots', is_active=False)

        self.assertEqual(ledger.get_playable_game(active.id, 'slots').id, active.id)
        with self.assertRaises(InactiveGameException):
            ledger.get_playable_game(inactive.id, 'slots')
        with self.assertRaises(ValidationException):
            ledger.get_playable_game(active.id, 'roulette')
        with self.assertRaises(NotFoundException):
            ledger.get_playable_game(9999, 'slots')

    def test_validate_bet_limits(self):
        game = self._create_game(name='Crypto Slots', min_bet='1.00', max_bet='10.00')
        ledger.validate_bet_limits(game, 100)
        ledger.validate_bet_limits(game, 1000)
        with self.assertRaises(ValidationException):
            ledger.validate_bet_limits(game, 99)
        with self.assertRaises(ValidationException):
            ledger.validate_bet_limits(game, 1001)

    def test_transition_transaction_status_happens_once(self):
        transaction = ledger.record_transaction(self.user.id, -500, 'withdrawal', 'pending')
        db.session.commit()
        self.assertTrue(ledger.transition_transaction_status(transaction.id, 'withdrawal', 'pending', 'rejected'))
        self.assertFalse(ledger.transition_transaction_status(transaction.id, 'withdrawal', 'pending', 'rejected'))
        db.session.commit()
        self.assertEqual(ledger.get_transaction_or_404(transaction.id).status, 'rejected')


if __name__ == '__main__':
    unittest.main()
