import unittest

from cryptocasino.error_codes import ErrorCodes
from cryptocasino.services import wallet
from cryptocasino.tests.test_api import BaseTestCase


class AdminOwnerApiTestCase(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.player = self._create_user(username='player', balance='100.00')
        self.admin = self._create_user(username='admin', is_admin=True)
        self.owner = self._create_user(username='Owner', is_admin=True)
        self.game = self._create_game(name='Crypto Slots', game_type='slots', house_edge=50)

    # --- access control ---

    def test_admin_routes_forbidden_for_players(self):
        response = self.client.get('/api/admin/transactions', headers=self._auth_headers(self.player))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.FORBIDDEN)

    def test_admin_routes_require_token(self):
        response = self.client.get('/api/admin/transactions')
        self.assertEqual(response.status_code, 401)

    def test_owner_routes_forbidden_for_plain_admin(self):
        response = self.client.post('/api/owner/set-global-house-edge', headers=self._auth_headers(self.admin),
                                    json={'houseEdge': 10})
        self.assertEqual(response.status_code, 403)

    def test_owner_routes_forbidden_for_players(self):
        response = self.client.post('/api/owner/set-profit-target', headers=self._auth_headers(self.player),
                                    json={'targetProfitPercent': 10})
        self.assertEqual(response.status_code, 403)

    # --- admin ---

    def test_list_transactions_with_status_filter(self):
        wallet.deposit(self.player.id, 10)
        wallet.withdraw(self.player.id, 30, 'TAddr1')
        response = self.client.get('/api/admin/transactions?status=pending', headers=self._auth_headers(self.admin))
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['username'], 'player')
        self.assertEqual(data[0]['type'], 'withdrawal')
        self.assertEqual(data[0]['amount'], '-30.00')

    def test_list_transactions_rejects_unknown_status(self):
        response = self.client.get('/api/admin/transactions?status=lost', headers=self._auth_headers(self.admin))
        self.assertEqual(response.status_code, 400)

    def test_reject_withdrawal_refunds(self):
        transaction, _ = wallet.withdraw(self.player.id, 50, 'TAddr1')
        response = self.client.post(f'/api/admin/transactions/{transaction.id}/reject',
                                    headers=self._auth_headers(self.admin))
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['success'])
        self.assertEqual(data['transaction']['status'], 'rejected')
        self.assertEqual(data['balance'], '100.00')

        response = self.client.post(f'/api/admin/transactions/{transaction.id}/reject',
                                    headers=self._auth_headers(self.admin))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error_code'], ErrorCodes.INVALID_TRANSACTION_STATE)
        self.assertEqual(self._balance_cents(self.player.id), 10000)

    def test_approve_withdrawal(self):
        transaction, _ = wallet.withdraw(self.player.id, 50, 'TAddr1')
        response = self.client.post(f'/api/admin/transactions/{transaction.id}/approve',
                                    headers=self._auth_headers(self.admin))
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['success'])
        self.assertEqual(data['transaction']['status'], 'completed')
        self.assertEqual(self._balance_cents(self.player.id), 5000)

    def test_approve_unknown_transaction_is_404(self):
        response = self.client.post('/api/admin/transactions/9999/approve', headers=self._auth_headers(self.admin))
        self.assertEqual(response.status_code, 404)

    def test_admin_sets_game_edge(self):
        response = self.client.post(f'/api/admin/games/{self.game.id}/edge', headers=self._auth_headers(self.admin),
                                    json={'houseEdge': 3.5})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['id'], self.game.id)
        self.assertEqual(data['houseEdge'], 3.5)

    def test_admin_edge_out_of_range_is_400(self):
        response = self.client.post(f'/api/admin/games/{self.game.id}/edge', headers=self._auth_headers(self.admin),
                                    json={'houseEdge': 120})
        self.assertEqual(response.status_code, 400)

    # --- owner ---

    def test_owner_sets_global_edge(self):
        self._create_game(name='Crypto Roulette', game_type='roulette')
        response = self.client.post('/api/owner/set-global-house-edge', headers=self._auth_headers(self.owner),
                                    json={'houseEdge': 10})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['success'])
        self.assertEqual(len(data['games']), 2)
        self.assertTrue(all(g['houseEdge'] == 10.0 for g in data['games']))

    def test_owner_profit_target_calculate(self):
        response = self.client.post('/api/owner/set-profit-target', headers=self._auth_headers(self.owner),
                                    json={'targetProfitPercent': 10})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {
            'success': True,
            'message': 'Calculated house edge',
            'calculatedHouseEdge': '9.09%',
            'targetProfitPercent': '10%',
        })

    def test_owner_profit_target_apply(self):
        response = self.client.post('/api/owner/set-profit-target', headers=self._auth_headers(self.owner),
                                    json={'targetProfitPercent': 25, 'applyToAllGames': True})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['appliedHouseEdge'], '20.00%')
        self.assertEqual(data['message'], 'Profit target of 25% applied to all games')

        games = self.client.get('/api/games').get_json()
        self.assertEqual(games[0]['houseEdge'], 20.0)

    def test_owner_deactivates_game(self):
        response = self.client.post(f'/api/admin/games/{self.game.id}/status', headers=self._auth_headers(self.owner),
                                    json={'isActive': False})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()['isActive'])
        self.assertEqual(self.client.get('/api/games').get_json(), [])

    def test_game_status_toggle_forbidden_for_plain_admin(self):
        response = self.client.post(f'/api/admin/games/{self.game.id}/status', headers=self._auth_headers(self.admin),
                                    json={'isActive': False})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(len(self.client.get('/api/games').get_json()), 1)


if __name__ == '__main__':
    unittest.main()
