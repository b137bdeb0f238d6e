from .columns import utc_now
from .profile import Profile
from .push_config import VAPID_CONFIG_ID, PushConfig
from .push_subscription import PushSubscription
from .user_key import UserKey

__all__ = [
    "Profile",
    "PushConfig",
    "PushSubscription",
    "UserKey",
    "VAPID_CONFIG_ID",
    "utc_now",
]
