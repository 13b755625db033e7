from .auth import get_current_user
