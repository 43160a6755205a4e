from models.user import User
from models.category import Category
from models.event import Event
from models.review import Review
from models.notification import Notification

__all__ = ["User", "Category", "Event", "Review", "Notification"]
