import os

# Must be set before cryptocasino.config is imported so the validator runs in testing mode
os.environ.setdefault('TESTING', 'True')
os.environ.setdefault('FLASK_ENV', 'testing')
