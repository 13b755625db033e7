from .file import File, FileGrant, FileInvite
from .user import User
