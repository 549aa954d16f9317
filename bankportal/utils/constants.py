"""
Table names and enumerated column values shared by the service layer.

These mirror CHECK constraints and defaults in the hosted database.
"""

TABLES = {
    'ACCOUNTS': 'accounts',
    'TRANSACTIONS': 'transactions',
    'CARDS': 'cards',
    'CARD_TRANSACTIONS': 'card_transactions',
    'PROFILES': 'profiles',
    'NOTIFICATIONS': 'notifications',
    'BANNERS': 'banners',
    'FINANCIAL_GOALS': 'user_financial_goals',
    'UPCOMING_BILLS': 'user_upcoming_bills',
    'STATISTICS_CARDS': 'user_statistics_cards',
}

ACCOUNT_TYPES = ('checking', 'savings', 'investment', 'escrow')

TRANSACTION_TYPES = ('deposit', 'withdrawal', 'transfer')

NOTIFICATION_TYPES = ('info', 'warning', 'success', 'error')

# Routing number assigned to accounts created without one
DEFAULT_ROUTING_NUMBER = '074000078'

ACCOUNT_NUMBER_LENGTH = 10
