"""
Tests for the flask CLI commands.
"""
from harvest_loyalty.models import LoyaltyAccount, Promotion


class TestLoyaltyCommands:

    def test_catalog(self, app):
        result = app.test_cli_runner().invoke(args=['loyalty', 'catalog'])

        assert result.exit_code == 0
        assert 'discount-100' in result.output
        assert '6 rewards' in result.output

    def test_status(self, app, award):
        award('user-1', 'order-1', '1500')
        result = app.test_cli_runner().invoke(args=['loyalty', 'status', 'user-1'])

        assert result.exit_code == 0
        assert 'Points:    15' in result.output

    def test_verify_ok(self, app, award):
        award('user-1', 'order-1', '1500')
        result = app.test_cli_runner().invoke(args=['loyalty', 'verify', 'user-1'])

        assert result.exit_code == 0
        assert 'Ledger OK' in result.output

    def test_verify_inconsistent(self, app, award, db):
        award('user-1', 'order-1', '1500')
        LoyaltyAccount.query.filter_by(user_id='user-1').one().points = 1
        db.session.commit()

        result = app.test_cli_runner().invoke(args=['loyalty', 'verify', 'user-1'])
        assert result.exit_code != 0

    def test_prune_monthly(self, app):
        result = app.test_cli_runner().invoke(args=['loyalty', 'prune-monthly'])

        assert result.exit_code == 0
        assert 'Removed 0' in result.output


class TestPromoCommands:

    def test_create_and_list(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'promos', 'create', 'harvest10',
            '--name', 'Harvest 10%', '--type', 'Percentage', '--value', '10', '--limit', '5',
        ])

        assert result.exit_code == 0
        promo = Promotion.query.filter_by(code='HARVEST10').one()
        assert promo.limit == 5

        listing = runner.invoke(args=['promos', 'list'])
        assert 'HARVEST10' in listing.output

    def test_percentage_capped_at_100(self, app):
        app.test_cli_runner().invoke(args=[
            'promos', 'create', 'HALFOFF', '--name', 'Too much', '--type', 'Percentage', '--value', '150',
        ])
        assert Promotion.query.filter_by(code='HALFOFF').one().value == 100
