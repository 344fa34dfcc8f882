# Overview: Flask extension instances for database, migrations and the notification feed.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .notification_feed import NotificationFeed

db = SQLAlchemy()
migrate = Migrate()
notification_feed = NotificationFeed()
