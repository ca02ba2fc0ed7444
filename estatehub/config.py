import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or (
        'dev-secret-key-change-in-production'
    )
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or (
        'sqlite:///estatehub.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Midtrans config.
    # Sandbox keys are placeholders; real keys must come from the env.
    MIDTRANS_SERVER_KEY = os.environ.get(
        'MIDTRANS_SERVER_KEY', 'SB-Mid-server-key')
    MIDTRANS_CLIENT_KEY = os.environ.get(
        'MIDTRANS_CLIENT_KEY', 'SB-Mid-client-key')
    MIDTRANS_IS_PRODUCTION = (
        os.environ.get('MIDTRANS_IS_PRODUCTION', 'false').lower() == 'true'
    )

    # Subscription config (amounts in the smallest currency unit)
    DEFAULT_CURRENCY = 'IDR'
    SUBSCRIPTION_DEFAULT_DAYS = int(
        os.environ.get('SUBSCRIPTION_DEFAULT_DAYS', 30))
    SUBSCRIPTION_PRICE = int(os.environ.get('SUBSCRIPTION_PRICE', 100000))

    # Listing rules
    MIN_LISTING_IMAGES = 5

    # Pagination configuration
    ITEMS_PER_PAGE = 50
    MAX_ITEMS_PER_PAGE = 100


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    MIDTRANS_SERVER_KEY = 'SB-Mid-server-test'
