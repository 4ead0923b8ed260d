import unittest

from cryptocasino.models import Game, User
from cryptocasino.services.seed import run_seed, DEFAULT_GAMES
from cryptocasino.tests.test_api import BaseTestCase


class SeedTestCase(BaseTestCase):

    def test_seed_creates_catalogue_and_accounts(self):
        games, accounts = run_seed()
        self.assertEqual(len(games), len(DEFAULT_GAMES))
        self.assertEqual(len(accounts), 2)

        slots = Game.query.filter_by(name='Crypto Slots').one()
        self.assertEqual(slots.game_type, 'slots')
        self.assertEqual((slots.min_bet, slots.max_bet), (100, 100000))
        roulette = Game.query.filter_by(name='Crypto Roulette').one()
        self.assertEqual(roulette.max_bet, 50000)
        blackjack = Game.query.filter_by(name='Blackjack Pro').one()
        self.assertEqual(blackjack.min_bet, 500)
        self.assertEqual(float(blackjack.house_edge), 50.0)

        owner = User.query.filter_by(username=self.app.config['OWNER_USERNAME']).one()
        self.assertTrue(owner.is_admin)
        admin = User.query.filter_by(username=self.app.config['ADMIN_USERNAME']).one()
        self.assertTrue(admin.is_admin)

    def test_seed_is_idempotent(self):
        run_seed()
        games, accounts = run_seed()
        self.assertEqual(games, [])
        self.assertEqual(accounts, [])
        self.assertEqual(Game.query.count(), len(DEFAULT_GAMES))
        self.assertEqual(User.query.count(), 2)

    def test_seed_keeps_existing_game_settings(self):
        self._create_game(name='Crypto Slots', game_type='slots', house_edge=5)
        run_seed()
        self.assertEqual(float(Game.query.filter_by(name='Crypto Slots').one().house_edge), 5.0)

    def test_seed_cli_command(self):
        runner = self.app.test_cli_runner()
        result = runner.invoke(args=['seed'])
        self.assertEqual(result.exit_code, 0)
        self.assertIn('Created 3 game(s)', result.output)


if __name__ == '__main__':
    unittest.main()
