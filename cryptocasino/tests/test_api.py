import os
import unittest
from decimal import Decimal

from flask_jwt_extended import create_access_token

from cryptocasino.app import create_app, db
from cryptocasino.models import User, Game, Transaction
from cryptocasino.config import TestingConfig
from cryptocasino.error_codes import ErrorCodes
from cryptocasino.utils.money import to_cents


class BaseTestCase(unittest.TestCase):
    """
    Builds a fresh app and database for each test method.
    """

    def setUp(self):
        self.app, _ = create_app(TestingConfig)
        self.test_db_file = self.app.config.get('DATABASE_FILE_PATH', 'test_cryptocasino_isolated.db')

        self.app_context = self.app.app_context()
        self.app_context.push()

        db.drop_all()
        db.create_all()

        self.client = self.app.test_client()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

        if os.path.exists(self.test_db_file):
            try:
                os.remove(self.test_db_file)
            except OSError as e:
                print(f"Error removing test database file {self.test_db_file}: {e}")

    def _create_user(self, username="testuser", email=None, password="Passw0rd123", balance="0.00",
                     is_admin=False):
        """Creates a user directly in the DB. ``balance`` is in USDT."""
        user = User(
            username=username,
            email=email or f"{username.lower()}@example.com",
            password=User.hash_password(password),
            balance=to_cents(balance),
            is_admin=is_admin,
        )
        db.session.add(user)
        db.session.commit()
        db.session.refresh(user)
        return user

    def _create_game(self, name="Test Slots", game_type="slots", min_bet="1.00", max_bet="1000.00",
                     house_edge=50, is_active=True):
        game = Game(
            name=name,
            game_type=game_type,
            description=f"{game_type} test game",
            min_bet=to_cents(min_bet),
            max_bet=to_cents(max_bet),
            house_edge=Decimal(str(house_edge)),
            is_active=is_active,
        )
        db.session.add(game)
        db.session.commit()
        db.session.refresh(game)
        return game

    def _auth_headers(self, user):
        token = create_access_token(identity=user)
        return {'Authorization': f'Bearer {token}'}

    def _balance_cents(self, user_id):
        db.session.expire_all()
        return db.session.get(User, user_id).balance


class AuthApiTestCase(BaseTestCase):

    def test_register_creates_user_with_zero_balance(self):
        response = self.client.post('/api/register', json={
            'username': 'new_player',
            'email': 'new_player@example.com',
            'password': 'StrongPass1',
        })
        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertTrue(data['status'])
        self.assertEqual(data['user']['username'], 'new_player')
        self.assertEqual(data['user']['balance'], '0.00')
        self.assertIn('access_token', data)
        self.assertIsNotNone(User.query.filter_by(username='new_player').first())

    def test_register_rejects_duplicate_username(self):
        self._create_user(username='taken')
        response = self.client.post('/api/register', json={
            'username': 'taken',
            'email': 'other@example.com',
            'password': 'StrongPass1',
        })
        self.assertEqual(response.status_code, 400)
        data = response.get_json()
        self.assertFalse(data['status'])
        self.assertEqual(data['error_code'], ErrorCodes.VALIDATION_ERROR)
        self.assertIn('username', data['details'])

    def test_register_weak_password_is_400_with_errors(self):
        response = self.client.post('/api/register', json={
            'username': 'weakling',
            'email': 'weak@example.com',
            'password': 'short',
        })
        self.assertEqual(response.status_code, 400)
        data = response.get_json()
        self.assertEqual(data['error_code'], ErrorCodes.VALIDATION_ERROR)
        self.assertIn('password', data['errors'])

    def test_login_success_returns_token(self):
        self._create_user(username='player1', password='Passw0rd123', balance='12.50')
        response = self.client.post('/api/login', json={'username': 'player1', 'password': 'Passw0rd123'})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['status'])
        self.assertEqual(data['user']['balance'], '12.50')
        self.assertTrue(data['access_token'])

    def test_login_wrong_password_is_401(self):
        self._create_user(username='player1', password='Passw0rd123')
        response = self.client.post('/api/login', json={'username': 'player1', 'password': 'Wrong0ne!'})
        self.assertEqual(response.status_code, 401)
        data = response.get_json()
        self.assertEqual(data['error_code'], ErrorCodes.UNAUTHENTICATED)
        self.assertEqual(data['message'], 'Invalid username or password.')

    def test_get_user_requires_token(self):
        response = self.client.get('/api/user')
        self.assertEqual(response.status_code, 401)

    def test_get_user_returns_profile(self):
        user = self._create_user(username='player1', balance='100.00')
        response = self.client.get('/api/user', headers=self._auth_headers(user))
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['user']['username'], 'player1')
        self.assertEqual(data['user']['balance'], '100.00')
        self.assertFalse(data['user']['isAdmin'])

    def test_logout_revokes_token(self):
        user = self._create_user(username='player1')
        headers = self._auth_headers(user)
        response = self.client.post('/api/logout', headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['status'])

        response = self.client.get('/api/user', headers=headers)
        self.assertEqual(response.status_code, 401)
        data = response.get_json()
        self.assertFalse(data['status'])
        self.assertEqual(data['error_code'], ErrorCodes.UNAUTHENTICATED)
        self.assertEqual(data['message'], 'Token has been revoked.')
        self.assertIn('request_id', data)

    def test_malformed_token_uses_error_envelope(self):
        response = self.client.get('/api/user', headers={'Authorization': 'Bearer not-a-jwt'})
        self.assertEqual(response.status_code, 401)
        data = response.get_json()
        self.assertEqual(data['error_code'], ErrorCodes.UNAUTHENTICATED)
        self.assertEqual(data['message'], 'Invalid authorization token.')
        self.assertNotIn('msg', data)

    def test_deactivated_user_token_rejected(self):
        user = self._create_user(username='player1')
        headers = self._auth_headers(user)
        user.is_active = False
        db.session.commit()
        response = self.client.get('/api/user', headers=headers)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['message'], 'User not found or inactive.')


class GamesApiTestCase(BaseTestCase):

    def test_list_games_only_active(self):
        self._create_game(name='Crypto Slots', game_type='slots')
        self._create_game(name='Old Roulette', game_type='roulette', is_active=False)
        response = self.client.get('/api/games')
        self.assertEqual(response.status_code, 200)
        games = response.get_json()
        self.assertEqual([g['name'] for g in games], ['Crypto Slots'])
        self.assertEqual(games[0]['type'], 'slots')
        self.assertEqual(games[0]['houseEdge'], 50.0)
        self.assertEqual(games[0]['minBet'], 1.0)
        self.assertEqual(games[0]['maxBet'], 1000.0)
        self.assertTrue(games[0]['isActive'])

    def test_recent_wins_lists_positive_rounds_only(self):
        from cryptocasino.services.settlement import settle
        user = self._create_user(username='lucky', balance='100.00')
        game = self._create_game(name='Crypto Slots')
        settle(user.id, game, 1000, {'reels': []}, 1500)
        settle(user.id, game, 1000, {'reels': []}, -1000)

        response = self.client.get('/api/recent-wins')
        self.assertEqual(response.status_code, 200)
        wins = response.get_json()
        self.assertEqual(len(wins), 1)
        self.assertEqual(wins[0]['username'], 'lucky')
        self.assertEqual(wins[0]['gameName'], 'Crypto Slots')
        self.assertEqual(wins[0]['amount'], 15.0)
        self.assertIn('createdAt', wins[0])


class TransactionsApiTestCase(BaseTestCase):

    def test_deposit_credits_balance(self):
        user = self._create_user(balance='10.00')
        response = self.client.post('/api/transactions/deposit', headers=self._auth_headers(user),
                                    json={'amount': 25.5, 'txHash': '0xabc'})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['balance'], '35.50')
        self.assertEqual(data['transaction']['type'], 'deposit')
        self.assertEqual(data['transaction']['status'], 'completed')
        self.assertEqual(data['transaction']['amount'], '25.50')
        self.assertEqual(data['transaction']['txHash'], '0xabc')

    def test_deposit_rejects_non_positive_amount(self):
        user = self._create_user(balance='10.00')
        response = self.client.post('/api/transactions/deposit', headers=self._auth_headers(user),
                                    json={'amount': 0})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self._balance_cents(user.id), 1000)

    def test_deposit_rejects_sub_cent_amount(self):
        user = self._create_user(balance='10.00')
        response = self.client.post('/api/transactions/deposit', headers=self._auth_headers(user),
                                    json={'amount': 1.005})
        self.assertEqual(response.status_code, 400)

    def test_deposit_rejects_oversized_amount(self):
        user = self._create_user(balance='10.00')
        headers = self._auth_headers(user)
        for amount in (1e30, '100000000000000000'):
            response = self.client.post('/api/transactions/deposit', headers=headers, json={'amount': amount})
            self.assertEqual(response.status_code, 400)
            data = response.get_json()
            self.assertEqual(data['error_code'], ErrorCodes.VALIDATION_ERROR)
            self.assertIn('amount', data['errors'])
        self.assertEqual(self._balance_cents(user.id), 1000)
        self.assertEqual(Transaction.query.count(), 0)

    def test_withdraw_debits_and_creates_pending(self):
        user = self._create_user(balance='100.00')
        response = self.client.post('/api/transactions/withdraw', headers=self._auth_headers(user),
                                    json={'amount': 50, 'address': 'TXyz123'})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['balance'], '50.00')
        self.assertEqual(data['transaction']['status'], 'pending')
        self.assertEqual(data['transaction']['type'], 'withdrawal')
        self.assertEqual(data['transaction']['amount'], '-50.00')
        self.assertEqual(data['transaction']['address'], 'TXyz123')

    def test_withdraw_more_than_balance_is_rejected(self):
        user = self._create_user(balance='20.00')
        response = self.client.post('/api/transactions/withdraw', headers=self._auth_headers(user),
                                    json={'amount': 20.01, 'address': 'TXyz123'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.INSUFFICIENT_FUNDS)
        self.assertEqual(self._balance_cents(user.id), 2000)
        self.assertEqual(Transaction.query.count(), 0)

    def test_list_transactions_newest_first(self):
        user = self._create_user(balance='0.00')
        headers = self._auth_headers(user)
        self.client.post('/api/transactions/deposit', headers=headers, json={'amount': 10})
        self.client.post('/api/transactions/deposit', headers=headers, json={'amount': 20})

        response = self.client.get('/api/transactions', headers=headers)
        self.assertEqual(response.status_code, 200)
        amounts = [tx['amount'] for tx in response.get_json()]
        self.assertEqual(amounts, ['20.00', '10.00'])


if __name__ == '__main__':
    unittest.main()
